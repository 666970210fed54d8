from flask import jsonify
from flask_login import login_required
from ...security import roles_required
from ...models.purchase import Purchase
from ...services import lifecycle
from ...services.dashboard import admin_overview
from ...services.reviews import review_for_requirement
from . import admin_bp


@admin_bp.get('/dashboard')
@login_required
@roles_required('admin')
def dashboard():
    return jsonify(admin_overview())


@admin_bp.get('/purchases')
@login_required
@roles_required('admin')
def purchases_list():
    rows = Purchase.query.order_by(Purchase.created_at.desc()).all()
    return jsonify({"purchases": [p.to_dict() for p in rows]})


@admin_bp.get('/purchases/<int:purchase_id>')
@login_required
@roles_required('admin')
def purchase_view(purchase_id):
    p = Purchase.query.get_or_404(purchase_id)
    req = p.requirement
    owner = req.homeowner
    prof = owner.homeowner_profile
    review = review_for_requirement(req.id)
    return jsonify({
        "purchase": p.to_dict(),
        "requirement": req.to_dict(),
        "quotation": p.quotation.to_dict() if p.quotation else None,
        "quotations": [q.to_dict() for q in lifecycle.list_quotations_for_requirement(req.id)],
        "homeowner": {
            "id": owner.id,
            "name": owner.display_name,
            "phone": owner.phone,
            "address": prof.address if prof else None,
        },
        "review": review.to_dict() if review else None,
    })
