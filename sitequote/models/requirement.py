# sitequote/models/requirement.py
import enum
from datetime import datetime
from ..extensions import db
from .user import enum_column_type


class RequirementStatus(str, enum.Enum):
    OPEN = "Open"
    PURCHASED = "Purchased"


class Requirement(db.Model):
    __tablename__ = 'requirement'

    id = db.Column(db.Integer, primary_key=True)
    homeowner_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False, index=True)
    # copied at creation; renaming the user does not rewrite old requirements
    homeowner_name = db.Column(db.String(120), nullable=False)

    title = db.Column(db.String(200), nullable=False, index=True)
    category = db.Column(db.String(80), nullable=False, index=True)
    location = db.Column(db.String(160), nullable=False)
    description = db.Column(db.Text, nullable=False)
    photos = db.Column(db.JSON, default=list)  # ordered URLs

    # Cement: [{"id": brand, "quantity": n}], Steel: [{"size": "12mm", "quantity": n}]
    brands = db.Column(db.JSON, default=list)
    flexible_brand = db.Column(db.Boolean, default=False, nullable=False)
    steel_details = db.Column(db.JSON, default=list)
    steel_brands = db.Column(db.JSON, default=list)
    flexible_steel_brand = db.Column(db.Boolean, default=False, nullable=False)

    status = db.Column(enum_column_type(RequirementStatus), nullable=False,
                       default=RequirementStatus.OPEN, index=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Snapshot of the accepted quotation, written with the Open -> Purchased switch
    purchased_at = db.Column(db.DateTime)
    purchased_quotation_id = db.Column(db.Integer)
    purchased_shop_owner_id = db.Column(db.Integer, index=True)
    purchased_shop_owner_name = db.Column(db.String(120))
    purchased_shop_name = db.Column(db.String(160))
    purchased_amount = db.Column(db.Float)

    homeowner = db.relationship(
        'User',
        foreign_keys=[homeowner_id],
        backref=db.backref('requirements', lazy='dynamic'),
    )

    @property
    def is_open(self) -> bool:
        return self.status == RequirementStatus.OPEN

    @property
    def purchased_quote(self):
        if self.purchased_quotation_id is None:
            return None
        return {
            "quotation_id": self.purchased_quotation_id,
            "shop_owner_id": self.purchased_shop_owner_id,
            "shop_owner_name": self.purchased_shop_owner_name,
            "shop_name": self.purchased_shop_name,
            "amount": self.purchased_amount,
        }

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "homeowner_id": self.homeowner_id,
            "homeowner_name": self.homeowner_name,
            "title": self.title,
            "category": self.category,
            "location": self.location,
            "description": self.description,
            "photos": list(self.photos or []),
            "brands": list(self.brands or []),
            "flexible_brand": bool(self.flexible_brand),
            "steel_details": list(self.steel_details or []),
            "steel_brands": list(self.steel_brands or []),
            "flexible_steel_brand": bool(self.flexible_steel_brand),
            "status": RequirementStatus(self.status).value,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "purchased_at": self.purchased_at.isoformat() if self.purchased_at else None,
            "purchased_quote": self.purchased_quote,
        }
