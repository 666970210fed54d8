# sitequote/services/lifecycle.py
"""
Requirement -> Quotation -> Purchase lifecycle.

A Requirement starts Open and moves to Purchased exactly once, when its
homeowner accepts one Quotation. Quotations may be submitted and edited only
while their Requirement is Open. The homeowner's private contact details are
disclosed only to the shop owner whose quotation was purchased.
"""
from __future__ import annotations

import logging
import math
from collections import Counter
from datetime import date, datetime
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import joinedload

from ..extensions import db
from ..models.user import Role, User
from ..models.requirement import Requirement, RequirementStatus
from ..models.quotation import Quotation
from ..models.purchase import Purchase
from .errors import Duplicate, InvalidState, NotFound, Unauthorized, ValidationFailure
from .notification_service import notify

log = logging.getLogger(__name__)

REQUIREMENT_TEXT_FIELDS = ("title", "category", "location", "description")
QUOTATION_FIELDS = ("amount", "terms", "delivery_date")
# structured material details; brand and steel rows drive the Cement and Steel forms
MATERIAL_FIELDS = ("brands", "flexible_brand", "steel_details", "steel_brands", "flexible_steel_brand")

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"", "0", "false", "no", "off"}


# -----------------
# Helpers
# -----------------

def _is_signed_in(actor) -> bool:
    return actor is not None and bool(getattr(actor, "is_authenticated", False))


def _require_role(actor, *roles: Role):
    if not _is_signed_in(actor):
        raise Unauthorized("You need to sign in first.")
    if actor.role not in roles:
        wanted = " or ".join(r.value for r in roles)
        raise Unauthorized(f"This action needs a {wanted} account.")


def _label(field: str) -> str:
    return field.replace("_", " ").capitalize()


def _clean_text(fields: dict, name: str) -> str:
    raw = fields.get(name)
    value = raw.strip() if isinstance(raw, str) else ""
    if not value:
        raise ValidationFailure(name, f"{_label(name)} is required.")
    return value


def _clean_photos(raw) -> list[str]:
    if raw is None:
        return []
    if isinstance(raw, str) or not isinstance(raw, (list, tuple)):
        raise ValidationFailure("photos", "Photos must be a list of URLs.")
    urls = []
    for item in raw:
        if not isinstance(item, str) or not item.strip():
            raise ValidationFailure("photos", "Every photo must be a non-empty URL.")
        urls.append(item.strip())
    return urls


def _parse_amount(raw) -> float:
    if isinstance(raw, bool) or raw is None:
        raise ValidationFailure("amount", "Amount is required.")
    if isinstance(raw, str):
        raw = raw.replace(",", "").replace(" ", "")
    try:
        amount = float(raw)
    except (TypeError, ValueError, OverflowError):
        raise ValidationFailure("amount", f"Amount must be a number. Got: {raw}")
    if not math.isfinite(amount) or amount <= 0:
        raise ValidationFailure("amount", "Amount must be a positive number.")
    return amount


def _parse_delivery_date(raw, today: date) -> date:
    if isinstance(raw, datetime):
        value = raw.date()
    elif isinstance(raw, date):
        value = raw
    elif isinstance(raw, str) and raw.strip():
        text = raw.strip()
        try:
            # Accept both YYYY-MM-DD and full ISO strings
            value = datetime.fromisoformat(text).date()
        except ValueError:
            raise ValidationFailure("delivery_date", "Delivery date must be an ISO date (YYYY-MM-DD).")
    else:
        raise ValidationFailure("delivery_date", "Delivery date is required.")

    if value < today:
        raise ValidationFailure("delivery_date", "Delivery date cannot be in the past.")
    return value


def _parse_quantity(raw, field: str, minimum: float):
    if isinstance(raw, str):
        raw = raw.strip()
    if isinstance(raw, bool) or raw is None or raw == "":
        raise ValidationFailure(field, "Quantity must be a number.")
    try:
        qty = float(raw)
    except (TypeError, ValueError, OverflowError):
        raise ValidationFailure(field, f"Quantity must be a number. Got: {raw}")
    if not math.isfinite(qty) or qty < minimum:
        raise ValidationFailure(field, f"Quantity must be at least {minimum:g}.")
    return int(qty) if qty.is_integer() else qty


def _parse_flag(raw, field: str) -> bool:
    if raw is None or isinstance(raw, bool):
        return bool(raw)
    if isinstance(raw, str) and raw.strip().lower() in _TRUE | _FALSE:
        return raw.strip().lower() in _TRUE
    raise ValidationFailure(field, f"{_label(field)} must be true or false.")


def _clean_brands(raw) -> list[dict]:
    """[{"id": "UltraTech", "quantity": 20}, ...]; quantity is optional."""
    if raw is None:
        return []
    if not isinstance(raw, (list, tuple)):
        raise ValidationFailure("brands", "Brands must be a list.")
    brands, seen = [], set()
    for item in raw:
        if not isinstance(item, dict):
            raise ValidationFailure("brands", "Every brand needs an id.")
        brand_id = item.get("id")
        brand_id = brand_id.strip() if isinstance(brand_id, str) else ""
        if not brand_id:
            raise ValidationFailure("brands", "Every brand needs an id.")
        if brand_id in seen:
            raise ValidationFailure("brands", f"Brand {brand_id} is listed twice.")
        seen.add(brand_id)
        entry = {"id": brand_id}
        if item.get("quantity") not in (None, ""):
            entry["quantity"] = _parse_quantity(item["quantity"], "brands", 0)
        brands.append(entry)
    return brands


def _clean_steel_details(raw) -> list[dict]:
    """[{"size": "12mm", "quantity": 40}, ...]"""
    if raw is None:
        return []
    if not isinstance(raw, (list, tuple)):
        raise ValidationFailure("steel_details", "Steel details must be a list.")
    rows = []
    for item in raw:
        size = item.get("size") if isinstance(item, dict) else None
        size = size.strip() if isinstance(size, str) else ""
        if not size:
            raise ValidationFailure("steel_details", "Size is required.")
        rows.append({"size": size, "quantity": _parse_quantity(item.get("quantity"), "steel_details", 1)})
    return rows


def _clean_names(raw, field: str) -> list[str]:
    if raw is None:
        return []
    if not isinstance(raw, (list, tuple)):
        raise ValidationFailure(field, f"{_label(field)} must be a list.")
    names = []
    for item in raw:
        if not isinstance(item, str) or not item.strip():
            raise ValidationFailure(field, f"{_label(field)} must be non-empty names.")
        if item.strip() not in names:
            names.append(item.strip())
    return names


def _material_values(fields: dict, only_present: bool = False) -> dict:
    cleaners = {
        "brands": _clean_brands,
        "flexible_brand": lambda raw: _parse_flag(raw, "flexible_brand"),
        "steel_details": _clean_steel_details,
        "steel_brands": lambda raw: _clean_names(raw, "steel_brands"),
        "flexible_steel_brand": lambda raw: _parse_flag(raw, "flexible_steel_brand"),
    }
    return {
        name: clean(fields.get(name))
        for name, clean in cleaners.items()
        if not only_present or name in fields
    }


def _today(today: Optional[date]) -> date:
    return today or datetime.utcnow().date()


# -----------------
# Requirements
# -----------------

def get_requirement(requirement_id) -> Requirement:
    req = Requirement.query.get(requirement_id) if requirement_id is not None else None
    if req is None:
        raise NotFound(f"Requirement {requirement_id} was not found.")
    return req


def create_requirement(homeowner: User, fields: dict) -> Requirement:
    _require_role(homeowner, Role.HOMEOWNER)

    values = {name: _clean_text(fields, name) for name in REQUIREMENT_TEXT_FIELDS}
    values.update(_material_values(fields))
    req = Requirement(
        homeowner_id=homeowner.id,
        homeowner_name=homeowner.display_name,
        photos=_clean_photos(fields.get("photos")),
        status=RequirementStatus.OPEN,
        created_at=datetime.utcnow(),
        **values,
    )
    db.session.add(req)
    db.session.commit()
    log.info("Requirement #%s created by homeowner %s (category=%s)", req.id, homeowner.id, req.category)
    return req


def update_requirement(homeowner: User, requirement_id, fields: dict) -> Requirement:
    """Edit text fields, material details and/or photos of an Open requirement (owner or admin)."""
    if not _is_signed_in(homeowner):
        raise Unauthorized("You need to sign in first.")
    req = get_requirement(requirement_id)
    if not (homeowner.role == Role.ADMIN or req.homeowner_id == homeowner.id):
        raise Unauthorized("Only the homeowner who posted this requirement can edit it.")
    if not req.is_open:
        raise InvalidState("A purchased requirement can no longer be edited.")

    # validate everything before touching the row
    values = {name: _clean_text(fields, name) for name in REQUIREMENT_TEXT_FIELDS if name in fields}
    values.update(_material_values(fields, only_present=True))
    if "photos" in fields:
        values["photos"] = _clean_photos(fields.get("photos"))
    for name, value in values.items():
        setattr(req, name, value)

    db.session.commit()
    return req


def add_requirement_photos(homeowner: User, requirement_id, urls: list[str]) -> Requirement:
    req = get_requirement(requirement_id)
    if not _is_signed_in(homeowner) or req.homeowner_id != homeowner.id:
        raise Unauthorized("Only the homeowner who posted this requirement can add photos.")
    if not req.is_open:
        raise InvalidState("A purchased requirement can no longer be edited.")
    req.photos = list(req.photos or []) + _clean_photos(urls)
    db.session.commit()
    return req


def list_requirements_for_homeowner(homeowner: User) -> list[Requirement]:
    return (Requirement.query
            .filter_by(homeowner_id=homeowner.id)
            .order_by(Requirement.created_at.desc(), Requirement.id.desc())
            .all())


def list_open_requirements(category: Optional[str] = None,
                           location: Optional[str] = None) -> list[Requirement]:
    rows = (Requirement.query
            .filter_by(status=RequirementStatus.OPEN)
            .order_by(Requirement.created_at.desc(), Requirement.id.desc())
            .all())

    cat = (category or "").strip().lower()
    loc = (location or "").strip().lower()
    return [
        r for r in rows
        if (not cat or cat in (r.category or "").lower())
        and (not loc or loc in (r.location or "").lower())
    ]


def open_requirement_counts_by_category() -> dict[str, int]:
    rows = Requirement.query.filter_by(status=RequirementStatus.OPEN).all()
    return dict(Counter(r.category for r in rows if r.category))


# -----------------
# Quotations
# -----------------

def get_quotation(quotation_id) -> Quotation:
    q = Quotation.query.get(quotation_id) if quotation_id is not None else None
    if q is None:
        raise NotFound(f"Quotation {quotation_id} was not found.")
    return q


def quotation_for_requirement_by_shop(requirement_id, shop_owner_id) -> Optional[Quotation]:
    return (Quotation.query
            .filter_by(requirement_id=requirement_id, shop_owner_id=shop_owner_id)
            .first())


def list_quotations_for_requirement(requirement_id) -> list[Quotation]:
    return (Quotation.query
            .filter_by(requirement_id=requirement_id)
            .order_by(Quotation.created_at.desc(), Quotation.id.desc())
            .all())


def list_quotations_by_shop_owner(shop_owner: User) -> list[Quotation]:
    return (Quotation.query
            .options(joinedload(Quotation.requirement))
            .filter_by(shop_owner_id=shop_owner.id)
            .order_by(Quotation.created_at.desc(), Quotation.id.desc())
            .all())


def submit_quotation(shop_owner: User, requirement_id, fields: dict,
                     today: Optional[date] = None) -> Quotation:
    _require_role(shop_owner, Role.SHOP_OWNER)
    req = get_requirement(requirement_id)

    if not req.is_open:
        raise InvalidState("This requirement has already been purchased and no longer accepts quotations.")

    existing = quotation_for_requirement_by_shop(req.id, shop_owner.id)
    if existing is not None:
        raise Duplicate("You have already quoted on this requirement. Edit your existing quotation instead.",
                        quotation_id=existing.id)

    amount = _parse_amount(fields.get("amount"))
    terms = _clean_text(fields, "terms")
    delivery = _parse_delivery_date(fields.get("delivery_date"), _today(today))

    prof = shop_owner.shop_owner_profile
    q = Quotation(
        requirement_id=req.id,
        shop_owner_id=shop_owner.id,
        shop_owner_name=(prof.name if prof and prof.name else shop_owner.display_name),
        shop_name=(prof.shop_name if prof and prof.shop_name else "Unnamed Shop"),
        shop_phone=shop_owner.phone,
        shop_address=(prof.address if prof else None),
        amount=amount,
        terms=terms,
        delivery_date=delivery,
        created_at=datetime.utcnow(),
    )
    db.session.add(q)
    try:
        db.session.commit()
    except IntegrityError:
        # lost a race against our own earlier submission
        db.session.rollback()
        raise Duplicate("You have already quoted on this requirement. Edit your existing quotation instead.")

    log.info("Quotation #%s submitted on requirement #%s by shop owner %s", q.id, req.id, shop_owner.id)
    notify(
        req.homeowner_id,
        f'{q.shop_name} sent you a quotation for "{req.title}".',
        link=f"/homeowner/requirements/{req.id}",
    )
    return q


def edit_quotation(shop_owner: User, quotation_id, fields: dict,
                   today: Optional[date] = None) -> Quotation:
    q = get_quotation(quotation_id)
    if not _is_signed_in(shop_owner) or q.shop_owner_id != shop_owner.id:
        raise Unauthorized("Only the shop owner who wrote this quotation can edit it.")
    if not q.requirement.is_open:
        raise InvalidState("The requirement has been purchased; quotations can no longer be edited.")

    values = {}
    if "amount" in fields:
        values["amount"] = _parse_amount(fields.get("amount"))
    if "terms" in fields:
        values["terms"] = _clean_text(fields, "terms")
    if "delivery_date" in fields:
        values["delivery_date"] = _parse_delivery_date(fields.get("delivery_date"), _today(today))
    for name, value in values.items():
        setattr(q, name, value)

    q.updated_at = datetime.utcnow()
    db.session.commit()
    log.info("Quotation #%s edited by shop owner %s", q.id, shop_owner.id)
    return q


# -----------------
# Purchase
# -----------------

def accept_quotation(homeowner: User, requirement_id, quotation_id) -> Requirement:
    """Mark ``quotation_id`` as purchased for ``requirement_id``.

    The Open -> Purchased switch is a conditional UPDATE on ``status = Open``;
    of two concurrent accepts only one row update can match, the other gets
    InvalidState.
    """
    if not _is_signed_in(homeowner):
        raise Unauthorized("You need to sign in first.")
    req = get_requirement(requirement_id)
    if not (homeowner.role == Role.ADMIN
            or (homeowner.role == Role.HOMEOWNER and req.homeowner_id == homeowner.id)):
        raise Unauthorized("Only the homeowner who posted this requirement can accept a quotation.")

    quote = get_quotation(quotation_id)
    if quote.requirement_id != req.id:
        raise InvalidState("That quotation does not belong to this requirement.")
    if not req.is_open:
        raise InvalidState("You have already marked a quotation as purchased for this requirement.")

    now = datetime.utcnow()
    matched = (Requirement.query
               .filter(Requirement.id == req.id, Requirement.status == RequirementStatus.OPEN)
               .update({
                   "status": RequirementStatus.PURCHASED,
                   "purchased_at": now,
                   "purchased_quotation_id": quote.id,
                   "purchased_shop_owner_id": quote.shop_owner_id,
                   "purchased_shop_owner_name": quote.shop_owner_name,
                   "purchased_shop_name": quote.shop_name,
                   "purchased_amount": quote.amount,
               }, synchronize_session=False))
    if matched != 1:
        db.session.rollback()
        raise InvalidState("You have already marked a quotation as purchased for this requirement.")

    purchase = Purchase(
        requirement_id=req.id,
        quotation_id=quote.id,
        homeowner_id=req.homeowner_id,
        shop_owner_id=quote.shop_owner_id,
        amount=quote.amount,
        material=req.category,
        homeowner_name=req.homeowner_name,
        shop_owner_name=quote.shop_owner_name,
        shop_name=quote.shop_name,
        created_at=now,
    )
    db.session.add(purchase)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise InvalidState("You have already marked a quotation as purchased for this requirement.")

    db.session.refresh(req)
    log.info("Requirement #%s purchased: quotation #%s from shop owner %s",
             req.id, quote.id, quote.shop_owner_id)
    notify(
        quote.shop_owner_id,
        f'Your quotation for "{req.title}" was accepted by {req.homeowner_name}.',
        link=f"/shop-owner/requirements/{req.id}",
    )
    return req


# -----------------
# Contact disclosure
# -----------------

def can_view_homeowner_contact(shop_owner: User, requirement_id) -> bool:
    if not _is_signed_in(shop_owner):
        return False
    req = Requirement.query.get(requirement_id)
    if req is None:
        return False
    return (req.status == RequirementStatus.PURCHASED
            and req.purchased_shop_owner_id is not None
            and req.purchased_shop_owner_id == shop_owner.id)


def homeowner_contact(shop_owner: User, requirement_id) -> dict:
    req = get_requirement(requirement_id)
    if not can_view_homeowner_contact(shop_owner, req.id):
        raise Unauthorized("Contact details are shared only with the shop whose quotation was purchased.")

    owner = req.homeowner
    prof = owner.homeowner_profile
    return {
        "homeowner_id": owner.id,
        "name": (prof.name if prof and prof.name else owner.display_name),
        "phone": owner.phone,
        "address": (prof.address if prof else None),
    }
