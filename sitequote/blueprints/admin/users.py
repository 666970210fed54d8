from flask import jsonify, request, abort
from flask_login import login_required
from ...security import roles_required
from ...models.user import Role, User
from ...services.dashboard import users_by_role
from ...services.reviews import shop_rating
from . import admin_bp


@admin_bp.get('/users')
@login_required
@roles_required('admin')
def users_list():
    role_raw = (request.args.get("role") or "").strip()
    if role_raw:
        try:
            role = Role(role_raw)
        except ValueError:
            abort(400, description=f"Unknown role: {role_raw}")
        rows = users_by_role(role)
    else:
        rows = User.query.order_by(User.created_at.desc()).all()

    items = []
    for u in rows:
        d = u.to_dict()
        if u.role == Role.SHOP_OWNER:
            d.update(shop_rating(u.id))
        items.append(d)
    return jsonify({"users": items})
