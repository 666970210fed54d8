from datetime import datetime
from ..extensions import db


class Purchase(db.Model):
    __tablename__ = "purchase"

    id = db.Column(db.Integer, primary_key=True)
    # unique: a requirement is purchased at most once
    requirement_id = db.Column(db.Integer, db.ForeignKey('requirement.id'), nullable=False, unique=True)
    quotation_id = db.Column(db.Integer, db.ForeignKey('quotation.id'), nullable=False, index=True)
    homeowner_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False, index=True)
    shop_owner_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False, index=True)

    amount = db.Column(db.Float, nullable=False)
    material = db.Column(db.String(80))
    homeowner_name = db.Column(db.String(120))
    shop_owner_name = db.Column(db.String(120))
    shop_name = db.Column(db.String(160))

    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)

    requirement = db.relationship('Requirement', backref=db.backref('purchase', uselist=False))
    quotation = db.relationship('Quotation')

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "requirement_id": self.requirement_id,
            "quotation_id": self.quotation_id,
            "homeowner_id": self.homeowner_id,
            "shop_owner_id": self.shop_owner_id,
            "amount": self.amount,
            "material": self.material,
            "homeowner_name": self.homeowner_name,
            "shop_owner_name": self.shop_owner_name,
            "shop_name": self.shop_name,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
