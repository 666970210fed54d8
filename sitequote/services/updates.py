# sitequote/services/updates.py
import logging

from ..extensions import db
from ..models.update import Update
from ..models.user import Role, User
from .errors import NotFound, Unauthorized, ValidationFailure
from .storage_service import delete_upload

log = logging.getLogger(__name__)


def _clean(fields: dict, name: str) -> str:
    raw = fields.get(name)
    value = raw.strip() if isinstance(raw, str) else ""
    if not value:
        raise ValidationFailure(name, f"{name.capitalize()} is required.")
    return value


def ensure_can_modify(actor: User, post: Update):
    if not getattr(actor, "is_authenticated", False):
        raise Unauthorized("You need to sign in first.")
    if post.author_id != actor.id and actor.role != Role.ADMIN:
        raise Unauthorized("Only the author or an admin can change this post.")


def list_updates() -> list[Update]:
    return Update.query.order_by(Update.created_at.desc(), Update.id.desc()).all()


def get_update(update_id) -> Update:
    post = Update.query.get(update_id)
    if post is None:
        raise NotFound(f"Update {update_id} was not found.")
    return post


def create_update(author: User, fields: dict, image_url: str | None = None) -> Update:
    if not getattr(author, "is_authenticated", False):
        raise Unauthorized("You need to sign in first.")
    post = Update(
        author_id=author.id,
        author_name=author.display_name,
        author_role=author.role,
        title=_clean(fields, "title"),
        content=_clean(fields, "content"),
        image_url=image_url,
    )
    db.session.add(post)
    db.session.commit()
    return post


def edit_update(actor: User, update_id, fields: dict, image_url: str | None = None) -> Update:
    """``image_url`` replaces the current image; ``fields["remove_image"]`` drops it."""
    post = get_update(update_id)
    ensure_can_modify(actor, post)

    values = {name: _clean(fields, name) for name in ("title", "content") if name in fields}
    for name, value in values.items():
        setattr(post, name, value)

    remove = str(fields.get("remove_image", "")).strip().lower() in {"1", "true", "yes", "on"}
    stale = None
    if image_url or remove:
        stale = post.image_url
        post.image_url = image_url or None

    db.session.commit()
    # only once the row no longer points at it
    if stale and stale != post.image_url:
        delete_upload(stale)
    return post


def delete_update(actor: User, update_id) -> None:
    post = get_update(update_id)
    ensure_can_modify(actor, post)
    image_url = post.image_url
    db.session.delete(post)
    db.session.commit()
    if image_url:
        delete_upload(image_url)
    log.info("Update #%s deleted by user %s", update_id, actor.id)
