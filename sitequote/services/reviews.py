# sitequote/services/reviews.py
import logging
from typing import Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models.purchase import Purchase
from ..models.review import Review
from ..models.user import User
from .errors import Duplicate, InvalidState, NotFound, Unauthorized, ValidationFailure
from .lifecycle import get_requirement

log = logging.getLogger(__name__)

MAX_COMMENT = 2000


def _parse_rating(raw) -> int:
    """Whole stars only; 4.9, "4.5", inf and booleans are rejected."""
    if isinstance(raw, str) and raw.strip().isdecimal():
        raw = int(raw.strip())
    elif isinstance(raw, float) and raw.is_integer():
        raw = int(raw)
    stars = raw if isinstance(raw, int) and not isinstance(raw, bool) else 0
    if stars < 1 or stars > 5:
        raise ValidationFailure("rating", "Please select a rating between 1 and 5 stars.")
    return stars


def _parse_comment(raw) -> Optional[str]:
    comment = (raw or "").strip() if isinstance(raw, str) else ""
    if len(comment) > MAX_COMMENT:
        raise ValidationFailure("comment", "Comment is too long.")
    return comment or None


def review_for_requirement(requirement_id) -> Optional[Review]:
    return (Review.query
            .join(Purchase, Review.purchase_id == Purchase.id)
            .filter(Purchase.requirement_id == requirement_id)
            .first())


def add_review(homeowner: User, requirement_id, rating, comment=None) -> Review:
    """Homeowner rates the shop whose quotation they purchased."""
    req = get_requirement(requirement_id)
    if not getattr(homeowner, "is_authenticated", False) or req.homeowner_id != homeowner.id:
        raise Unauthorized("Only the homeowner who made this purchase can review it.")

    purchase = req.purchase
    if purchase is None:
        raise InvalidState("You can review a shop only after purchasing its quotation.")
    if review_for_requirement(req.id) is not None:
        raise Duplicate("You have already reviewed this purchase. Edit your review instead.")

    r = Review(
        purchase_id=purchase.id,
        shop_owner_id=purchase.shop_owner_id,
        customer_id=homeowner.id,
        customer_name=homeowner.display_name,
        rating=_parse_rating(rating),
        comment=_parse_comment(comment),
    )
    db.session.add(r)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise Duplicate("You have already reviewed this purchase. Edit your review instead.")
    log.info("Review #%s (%s stars) for shop owner %s", r.id, r.rating, r.shop_owner_id)
    return r


def update_review(homeowner: User, review_id, rating=None, comment=None) -> Review:
    r = Review.query.get(review_id)
    if r is None:
        raise NotFound(f"Review {review_id} was not found.")
    if not getattr(homeowner, "is_authenticated", False) or r.customer_id != homeowner.id:
        raise Unauthorized("You can only edit your own reviews.")
    if rating is not None:
        r.rating = _parse_rating(rating)
    if comment is not None:
        r.comment = _parse_comment(comment)
    db.session.commit()
    return r


def reviews_for_shop(shop_owner_id) -> list[Review]:
    return (Review.query
            .filter_by(shop_owner_id=shop_owner_id)
            .order_by(Review.created_at.desc())
            .all())


def shop_rating(shop_owner_id) -> dict:
    avg, cnt = (db.session.query(func.coalesce(func.avg(Review.rating), 0.0), func.count(Review.id))
                .filter(Review.shop_owner_id == shop_owner_id)
                .one())
    return {"average_rating": round(float(avg or 0.0), 1), "review_count": int(cnt or 0)}
