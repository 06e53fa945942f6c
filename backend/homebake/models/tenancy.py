from __future__ import annotations

from ..extensions import db
from homebake.time_utils import to_utc_z


class Bakery(db.Model):
    """
    Tenant root. Every user, bread type, batch and log row belongs to one bakery.

    The first user registered for a bakery becomes its owner; everyone else
    joins through an owner-issued invite.
    """
    __tablename__ = "bakeries"
    __table_args__ = (
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(128), nullable=False)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
        }
