# sitequote/services/dashboard.py
from collections import defaultdict

from ..models.purchase import Purchase
from ..models.quotation import Quotation
from ..models.user import Role, User
from .lifecycle import list_open_requirements


def users_by_role(role: Role) -> list[User]:
    return User.query.filter_by(role=role).order_by(User.created_at.desc()).all()


def admin_overview() -> dict:
    """Marketplace snapshot: users, purchases and who has (not) quoted on each open requirement."""
    homeowners = users_by_role(Role.HOMEOWNER)
    shop_owners = users_by_role(Role.SHOP_OWNER)
    purchases = Purchase.query.order_by(Purchase.created_at.desc()).all()
    open_reqs = list_open_requirements()

    quotes_by_req = defaultdict(list)
    if open_reqs:
        rows = (Quotation.query
                .filter(Quotation.requirement_id.in_([r.id for r in open_reqs]))
                .order_by(Quotation.created_at.desc())
                .all())
        for q in rows:
            quotes_by_req[q.requirement_id].append(q)

    open_details = []
    for req in open_reqs:
        quotations = quotes_by_req.get(req.id, [])
        responded = {q.shop_owner_id for q in quotations}
        open_details.append({
            "requirement": req.to_dict(),
            "response_count": len(quotations),
            "quotations": [q.to_dict() for q in quotations],
            "not_responded": [
                {"id": so.id, "name": so.display_name, "phone": so.phone}
                for so in shop_owners if so.id not in responded
            ],
        })

    return {
        "counts": {
            "homeowners": len(homeowners),
            "shop_owners": len(shop_owners),
            "purchases": len(purchases),
            "open_requirements": len(open_reqs),
        },
        "purchases": [p.to_dict() for p in purchases],
        "open_requirements": open_details,
    }
