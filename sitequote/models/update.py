# sitequote/models/update.py
from datetime import datetime
from ..extensions import db
from .user import Role, enum_column_type


class Update(db.Model):
    """A post on the shared updates feed."""
    __tablename__ = "update_post"

    id = db.Column(db.Integer, primary_key=True)
    author_id = db.Column(db.Integer, db.ForeignKey("user.id"), nullable=False, index=True)
    author_name = db.Column(db.String(120), nullable=False)
    author_role = db.Column(enum_column_type(Role), nullable=False)

    title = db.Column(db.String(200), nullable=False)
    content = db.Column(db.Text, nullable=False)
    image_url = db.Column(db.String(512))

    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "author_id": self.author_id,
            "author_name": self.author_name,
            "author_role": Role(self.author_role).value,
            "title": self.title,
            "content": self.content,
            "image_url": self.image_url or None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
