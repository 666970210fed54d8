# sitequote/blueprints/homeowner/routes.py
from flask import jsonify, abort
from flask_babel import gettext as _
from flask_login import login_required, current_user

from . import homeowner_bp
from ..utils import request_data, uploaded_files
from ...extensions import db
from ...models.user import Role, HomeownerProfile
from ...security import roles_required
from ...services import lifecycle, reviews
from ...services.errors import LifecycleError, ValidationFailure
from ...services.storage_service import save_photos, delete_upload


# -----------------
# Helpers
# -----------------

def _ensure_owner(req):
    if req.homeowner_id != current_user.id and current_user.role != Role.ADMIN:
        abort(403)


def _parse_id(raw) -> int:
    """Whole numbers only: JSON true or 1.9 are not quotation ids."""
    if isinstance(raw, str) and raw.strip().isdecimal():
        raw = int(raw.strip())
    if isinstance(raw, int) and not isinstance(raw, bool) and 0 < raw < 2**63:
        return raw
    raise ValidationFailure("quotation_id", "Quotation id must be a whole number.")


def _save_new_photos(req_id=None):
    subdir = f"requirements/{current_user.id}" + (f"/{req_id}" if req_id else "")
    return save_photos(uploaded_files("photos"), subdir=subdir)


def _quotation_cards(requirement):
    """Quotations with each shop's rating, winner flagged once purchased."""
    winner_id = requirement.purchased_quotation_id
    cards = []
    for q in lifecycle.list_quotations_for_requirement(requirement.id):
        card = q.to_dict()
        card.update(reviews.shop_rating(q.shop_owner_id))
        card["is_purchased"] = winner_id is not None and q.id == winner_id
        cards.append(card)
    return cards


# -----------------
# Dashboard / list
# -----------------

@homeowner_bp.get('/requirements')
@login_required
@roles_required('homeowner')
def requirements_list():
    rows = lifecycle.list_requirements_for_homeowner(current_user)
    total = len(rows)
    purchased = sum(1 for r in rows if not r.is_open)
    return jsonify({
        "requirements": [r.to_dict() for r in rows],
        "kpis": {"total": total, "open": total - purchased, "purchased": purchased},
    })


# -----------------
# Create / edit requirement
# -----------------

@homeowner_bp.post('/requirements')
@login_required
@roles_required('homeowner')
def requirement_new():
    data = request_data()
    urls = _save_new_photos()
    fields = dict(data)
    photos = data.get("photos") or []
    fields["photos"] = photos + urls if isinstance(photos, list) else photos
    try:
        req = lifecycle.create_requirement(current_user, fields)
    except LifecycleError:
        # don't leave orphaned uploads behind
        for url in urls:
            delete_upload(url)
        raise
    return jsonify({"message": _("Requirement posted."), "requirement": req.to_dict()}), 201


@homeowner_bp.get('/requirements/<int:requirement_id>')
@login_required
def requirement_view(requirement_id):
    req = lifecycle.get_requirement(requirement_id)
    _ensure_owner(req)

    review = reviews.review_for_requirement(req.id)
    return jsonify({
        "requirement": req.to_dict(),
        "quotations": _quotation_cards(req),
        "review": review.to_dict() if review else None,
    })


@homeowner_bp.put('/requirements/<int:requirement_id>')
@login_required
def requirement_edit(requirement_id):
    data = request_data()
    fields = {k: data[k] for k in (*lifecycle.REQUIREMENT_TEXT_FIELDS, *lifecycle.MATERIAL_FIELDS, "photos") if k in data}

    req = lifecycle.get_requirement(requirement_id)
    removed = []
    if "photos" in fields and isinstance(fields["photos"], list):
        removed = [u for u in (req.photos or []) if u not in fields["photos"]]

    req = lifecycle.update_requirement(current_user, requirement_id, fields)
    for url in removed:
        delete_upload(url)
    return jsonify({"message": _("Requirement updated."), "requirement": req.to_dict()})


@homeowner_bp.post('/requirements/<int:requirement_id>/photos')
@login_required
def requirement_add_photos(requirement_id):
    req = lifecycle.get_requirement(requirement_id)
    _ensure_owner(req)
    if not uploaded_files("photos"):
        raise ValidationFailure("photos", "No photos uploaded.")
    urls = _save_new_photos(req.id)
    try:
        req = lifecycle.add_requirement_photos(current_user, req.id, urls)
    except LifecycleError:
        for url in urls:
            delete_upload(url)
        raise
    return jsonify({"message": _("Uploaded %(n)d photo(s).", n=len(urls)), "requirement": req.to_dict()})


# -----------------
# Quotations -> Purchase
# -----------------

@homeowner_bp.post('/requirements/<int:requirement_id>/accept')
@login_required
def quotation_accept(requirement_id):
    data = request_data()
    quotation_id = data.get("quotation_id")
    if quotation_id in (None, ""):
        raise ValidationFailure("quotation_id", "Choose the quotation you purchased.")
    quotation_id = _parse_id(quotation_id)

    req = lifecycle.accept_quotation(current_user, requirement_id, quotation_id)
    return jsonify({
        "message": _("Purchase confirmed: you purchased the quotation from %(name)s.",
                     name=req.purchased_shop_owner_name),
        "requirement": req.to_dict(),
    })


# -----------------
# Reviews
# -----------------

@homeowner_bp.post('/requirements/<int:requirement_id>/review')
@login_required
@roles_required('homeowner')
def review_new(requirement_id):
    data = request_data()
    r = reviews.add_review(current_user, requirement_id, data.get("rating"), data.get("comment"))
    return jsonify({"message": _("Thank you for your feedback."), "review": r.to_dict()}), 201


@homeowner_bp.put('/reviews/<int:review_id>')
@login_required
@roles_required('homeowner')
def review_edit(review_id):
    data = request_data()
    r = reviews.update_review(current_user, review_id, data.get("rating"), data.get("comment"))
    return jsonify({"message": _("Your review has been updated."), "review": r.to_dict()})


# -----------------
# Profile
# -----------------

@homeowner_bp.get('/profile')
@login_required
@roles_required('homeowner')
def profile():
    return jsonify(current_user.to_dict())


@homeowner_bp.put('/profile')
@login_required
@roles_required('homeowner')
def profile_update():
    data = request_data()
    prof = current_user.homeowner_profile
    if prof is None:
        prof = HomeownerProfile(user_id=current_user.id)
        db.session.add(prof)

    if "name" in data:
        name = (data.get("name") or "").strip()
        if not name:
            raise ValidationFailure("name", "Name is required.")
        prof.name = name
    if "address" in data:
        prof.address = (data.get("address") or "").strip() or None
    if "phone" in data:
        current_user.phone = (data.get("phone") or "").strip() or None

    db.session.commit()
    return jsonify({"message": _("Profile saved."), "user": current_user.to_dict()})
