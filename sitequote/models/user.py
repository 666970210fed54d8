# sitequote/models/user.py
import enum
from datetime import datetime
from werkzeug.security import generate_password_hash, check_password_hash
from flask_login import UserMixin
from ..extensions import db


class Role(str, enum.Enum):
    HOMEOWNER = "homeowner"
    SHOP_OWNER = "shop-owner"
    ADMIN = "admin"


def enum_column_type(enum_cls, length=20):
    # Store the enum *values* ("shop-owner"), not member names
    return db.Enum(
        enum_cls,
        native_enum=False,
        length=length,
        validate_strings=True,
        values_callable=lambda members: [m.value for m in members],
    )


# ------- Core Models -------

class User(UserMixin, db.Model):
    __tablename__ = "user"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False)
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    phone = db.Column(db.String(50))

    password_hash = db.Column(db.String(255))

    role = db.Column(enum_column_type(Role), nullable=False, default=Role.HOMEOWNER, index=True)

    # active|suspended
    status = db.Column(db.String(20), default="active", index=True)
    language = db.Column(db.String(10))

    last_login_at = db.Column(db.DateTime)
    deleted_at = db.Column(db.DateTime)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Profiles (one-to-one)
    homeowner_profile = db.relationship(
        "HomeownerProfile",
        backref="user",
        uselist=False,
        cascade="all, delete-orphan",
    )
    shop_owner_profile = db.relationship(
        "ShopOwnerProfile",
        backref="user",
        uselist=False,
        cascade="all, delete-orphan",
    )

    # --- Auth helpers ---
    def set_password(self, password: str):
        self.password_hash = generate_password_hash(password)

    def check_password(self, password: str) -> bool:
        return check_password_hash(self.password_hash, password)

    # --- Convenience flags ---
    @property
    def is_active_account(self) -> bool:
        return self.status == "active" and self.deleted_at is None

    @property
    def is_suspended(self) -> bool:
        return self.status == "suspended"

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    @property
    def profile(self):
        if self.role == Role.SHOP_OWNER:
            return self.shop_owner_profile
        if self.role == Role.HOMEOWNER:
            return self.homeowner_profile
        return None

    @property
    def display_name(self) -> str:
        prof = self.profile
        return (getattr(prof, "name", None) or self.name or self.phone or "Anonymous")

    def mark_login(self):
        self.last_login_at = datetime.utcnow()

    def to_dict(self) -> dict:
        prof = self.profile
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "role": Role(self.role).value,
            "status": self.status,
            "display_name": self.display_name,
            "profile": prof.to_dict() if prof else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


class HomeownerProfile(db.Model):
    __tablename__ = "homeowner_profile"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('user.id'), unique=True, index=True)
    name = db.Column(db.String(120))
    # private: only disclosed to the shop whose quotation was purchased
    address = db.Column(db.String(255))
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self) -> dict:
        return {"name": self.name, "address": self.address}


class ShopOwnerProfile(db.Model):
    __tablename__ = "shop_owner_profile"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('user.id'), unique=True, index=True)

    name = db.Column(db.String(120))
    shop_name = db.Column(db.String(160))
    address = db.Column(db.String(255))
    location = db.Column(db.String(120), index=True)
    shop_photos = db.Column(db.JSON, default=list)   # URLs only

    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "shop_name": self.shop_name,
            "address": self.address,
            "location": self.location,
            "shop_photos": list(self.shop_photos or []),
        }
