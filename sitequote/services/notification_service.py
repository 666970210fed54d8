# sitequote/services/notification_service.py
import logging
from typing import Iterable, Optional

from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..models.notification import Notification
from ..models.user import User
from .email_service import send_email

log = logging.getLogger(__name__)

FEED_LIMIT = 20


def notify(user_id: int, message: str, link: Optional[str] = None) -> Optional[Notification]:
    """Store an in-app notification and email the recipient.

    Fire-and-forget: the caller's write has already been committed, so any
    failure here is logged and swallowed.
    """
    try:
        n = Notification(user_id=user_id, message=message[:500], link=link)
        db.session.add(n)
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        log.warning("notify: could not store notification for user %s: %s", user_id, e)
        return None

    user = User.query.get(user_id)
    if user and user.email:
        send_email(
            to=user.email,
            subject="SiteQuote: " + message[:80],
            template="notification.html",
            user=user,
            notification=n,
        )
    return n


def latest_for_user(user: User, limit: int = FEED_LIMIT) -> list[Notification]:
    return (Notification.query
            .filter_by(user_id=user.id)
            .order_by(Notification.created_at.desc(), Notification.id.desc())
            .limit(limit)
            .all())


def has_unread(user: User) -> bool:
    return (Notification.query
            .filter_by(user_id=user.id, read=False)
            .first()) is not None


def mark_read(user: User, ids: Optional[Iterable[int]] = None) -> int:
    """Mark the caller's notifications as read; other users' ids are ignored."""
    qry = Notification.query.filter(Notification.user_id == user.id,
                                    Notification.read.is_(False))
    if ids is not None:
        wanted = [int(i) for i in ids]
        if not wanted:
            return 0
        qry = qry.filter(Notification.id.in_(wanted))
    count = qry.update({"read": True}, synchronize_session=False)
    db.session.commit()
    return count
