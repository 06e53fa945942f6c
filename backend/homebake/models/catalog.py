from __future__ import annotations

from ..extensions import db
from homebake.time_utils import to_utc_z


class BreadType(db.Model):
    """
    Product catalog entry. Created and priced by the owner; referenced by
    batches, production logs and sales logs.
    """
    __tablename__ = "bread_types"
    __table_args__ = (
        db.UniqueConstraint("bakery_id", "name", name="uq_bread_types_bakery_name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    bakery_id = db.Column(db.Integer, db.ForeignKey("bakeries.id"), nullable=False, index=True)

    name = db.Column(db.String(128), nullable=False)
    size = db.Column(db.String(64), nullable=True)

    # Price in minor currency units (kobo)
    unit_price_cents = db.Column(db.Integer, nullable=False, default=0)

    created_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "bakery_id": self.bakery_id,
            "name": self.name,
            "size": self.size,
            "unit_price_cents": self.unit_price_cents,
            "created_by_user_id": self.created_by_user_id,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }

    def to_ref(self) -> dict:
        return {"id": self.id, "name": self.name, "size": self.size, "unit_price_cents": self.unit_price_cents}
