from datetime import datetime
from ..extensions import db


class Quotation(db.Model):
    __tablename__ = 'quotation'

    id = db.Column(db.Integer, primary_key=True)
    requirement_id = db.Column(db.Integer, db.ForeignKey('requirement.id'), nullable=False, index=True)
    shop_owner_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False, index=True)

    # denormalised from the shop owner's profile at submission time
    shop_owner_name = db.Column(db.String(120), nullable=False)
    shop_name = db.Column(db.String(160), nullable=False)
    shop_phone = db.Column(db.String(50))
    shop_address = db.Column(db.String(255))

    amount = db.Column(db.Float, nullable=False)   # currency-agnostic
    terms = db.Column(db.Text, nullable=False)
    delivery_date = db.Column(db.Date, nullable=False)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    requirement = db.relationship('Requirement', lazy='joined')
    shop_owner = db.relationship('User', foreign_keys=[shop_owner_id])

    __table_args__ = (
        db.UniqueConstraint("requirement_id", "shop_owner_id", name="uq_quotation_requirement_shop"),
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "requirement_id": self.requirement_id,
            "shop_owner_id": self.shop_owner_id,
            "shop_owner_name": self.shop_owner_name,
            "shop_name": self.shop_name,
            "shop_phone": self.shop_phone,
            "shop_address": self.shop_address,
            "amount": self.amount,
            "terms": self.terms,
            "delivery_date": self.delivery_date.isoformat() if self.delivery_date else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
