# sitequote/blueprints/shop_owner/routes.py
from flask import jsonify, request, abort
from flask_babel import gettext as _
from flask_login import login_required, current_user

from . import shop_owner_bp
from ..utils import request_data, uploaded_files
from ...extensions import db
from ...models.user import ShopOwnerProfile
from ...security import roles_required
from ...services import lifecycle, reviews
from ...services.categorization import categorize_quotation
from ...services.errors import ValidationFailure
from ...services.storage_service import save_photos


# -----------------
# Browse open requirements
# -----------------

@shop_owner_bp.get('/requirements')
@login_required
@roles_required('shop-owner')
def requirements_browse():
    rows = lifecycle.list_open_requirements(
        category=request.args.get("category"),
        location=request.args.get("location"),
    )
    mine = {q.requirement_id for q in lifecycle.list_quotations_by_shop_owner(current_user)}
    items = []
    for r in rows:
        d = r.to_dict()
        d["already_quoted"] = r.id in mine
        items.append(d)
    return jsonify({"requirements": items})


@shop_owner_bp.get('/categories')
@login_required
@roles_required('shop-owner')
def category_counts():
    return jsonify({"counts": lifecycle.open_requirement_counts_by_category()})


@shop_owner_bp.get('/requirements/<int:requirement_id>')
@login_required
@roles_required('shop-owner')
def requirement_view(requirement_id):
    req = lifecycle.get_requirement(requirement_id)
    mine = lifecycle.quotation_for_requirement_by_shop(req.id, current_user.id)
    can_contact = lifecycle.can_view_homeowner_contact(current_user, req.id)
    return jsonify({
        "requirement": req.to_dict(),
        "my_quotation": mine.to_dict() if mine else None,
        "can_view_contact": can_contact,
        "homeowner_contact": lifecycle.homeowner_contact(current_user, req.id) if can_contact else None,
    })


@shop_owner_bp.get('/requirements/<int:requirement_id>/homeowner-contact')
@login_required
@roles_required('shop-owner')
def homeowner_contact(requirement_id):
    return jsonify(lifecycle.homeowner_contact(current_user, requirement_id))


# -----------------
# Quotations
# -----------------

@shop_owner_bp.post('/requirements/<int:requirement_id>/quotations')
@login_required
@roles_required('shop-owner')
def quotation_new(requirement_id):
    q = lifecycle.submit_quotation(current_user, requirement_id, request_data())
    return jsonify({"message": _("Quotation submitted."), "quotation": q.to_dict()}), 201


@shop_owner_bp.get('/quotations')
@login_required
@roles_required('shop-owner')
def my_quotations():
    items = []
    for q in lifecycle.list_quotations_by_shop_owner(current_user):
        d = q.to_dict()
        req = q.requirement
        d["requirement"] = req.to_dict() if req else None
        d["is_purchased"] = bool(req and req.purchased_quotation_id == q.id)
        items.append(d)
    return jsonify({"quotations": items})


@shop_owner_bp.get('/quotations/<int:quotation_id>')
@login_required
@roles_required('shop-owner')
def quotation_view(quotation_id):
    q = lifecycle.get_quotation(quotation_id)
    if q.shop_owner_id != current_user.id:
        abort(403)
    d = q.to_dict()
    d["requirement"] = q.requirement.to_dict()
    d["editable"] = q.requirement.is_open
    return jsonify(d)


@shop_owner_bp.put('/quotations/<int:quotation_id>')
@login_required
@roles_required('shop-owner')
def quotation_edit(quotation_id):
    data = request_data()
    fields = {k: data[k] for k in lifecycle.QUOTATION_FIELDS if k in data}
    q = lifecycle.edit_quotation(current_user, quotation_id, fields)
    return jsonify({"message": _("Quotation updated."), "quotation": q.to_dict()})


@shop_owner_bp.post('/quotations/categorize')
@login_required
@roles_required('shop-owner')
def quotation_categorize():
    data = request_data()
    return jsonify(categorize_quotation(data.get("quotation_text"), data.get("requirement_category")))


# -----------------
# Profile
# -----------------

def _profile():
    prof = current_user.shop_owner_profile
    if prof is None:
        prof = ShopOwnerProfile(user_id=current_user.id, name=current_user.name, shop_photos=[])
        db.session.add(prof)
    return prof


@shop_owner_bp.get('/profile')
@login_required
@roles_required('shop-owner')
def profile():
    body = current_user.to_dict()
    body.update(reviews.shop_rating(current_user.id))
    return jsonify(body)


@shop_owner_bp.put('/profile')
@login_required
@roles_required('shop-owner')
def profile_update():
    data = request_data()
    prof = _profile()

    for field in ("name", "shop_name"):
        if field in data:
            value = (data.get(field) or "").strip()
            if not value:
                raise ValidationFailure(field, f"{field.replace('_', ' ').capitalize()} is required.")
            setattr(prof, field, value)
    for field in ("address", "location"):
        if field in data:
            setattr(prof, field, (data.get(field) or "").strip() or None)
    if "shop_photos" in data:
        photos = data.get("shop_photos")
        if not isinstance(photos, list) or not all(isinstance(p, str) and p for p in photos):
            raise ValidationFailure("shop_photos", "Shop photos must be a list of URLs.")
        prof.shop_photos = photos
    if "phone" in data:
        current_user.phone = (data.get("phone") or "").strip() or None

    db.session.commit()
    return jsonify({"message": _("Profile saved."), "user": current_user.to_dict()})


@shop_owner_bp.post('/profile/photos')
@login_required
@roles_required('shop-owner')
def profile_add_photos():
    files = uploaded_files("photos")
    if not files:
        raise ValidationFailure("photos", "No photos uploaded.")
    prof = _profile()
    urls = save_photos(files, subdir=f"shops/{current_user.id}")
    prof.shop_photos = list(prof.shop_photos or []) + urls
    db.session.commit()
    return jsonify({"message": _("Uploaded %(n)d photo(s).", n=len(urls)), "user": current_user.to_dict()})
