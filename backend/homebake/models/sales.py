from __future__ import annotations

from ..extensions import db
from homebake.time_utils import to_iso_date, to_utc_z


class SalesLog(db.Model):
    """
    Append-only sale record. unit_price_cents is a snapshot of the bread
    type price at the time of sale; leftover is the unsold count reported
    with the sale and feeds derived inventory.
    """
    __tablename__ = "sales_logs"
    __table_args__ = (
        db.Index("ix_sales_logs_bakery_shift_date", "bakery_id", "shift", "business_date"),
        db.Index("ix_sales_logs_recorder_date", "recorded_by_user_id", "business_date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    bakery_id = db.Column(db.Integer, db.ForeignKey("bakeries.id"), nullable=False)
    bread_type_id = db.Column(db.Integer, db.ForeignKey("bread_types.id"), nullable=False, index=True)

    quantity = db.Column(db.Integer, nullable=False)
    unit_price_cents = db.Column(db.Integer, nullable=False)
    discount_cents = db.Column(db.Integer, nullable=False, default=0)
    returned = db.Column(db.Boolean, nullable=False, default=False)
    leftover = db.Column(db.Integer, nullable=False, default=0)

    shift = db.Column(db.String(16), nullable=False)
    business_date = db.Column(db.Date, nullable=False)

    recorded_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False)

    bread_type = db.relationship("BreadType")
    recorded_by = db.relationship("User")

    @property
    def total_cents(self) -> int:
        return max(0, self.quantity * self.unit_price_cents - (self.discount_cents or 0))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "bakery_id": self.bakery_id,
            "bread_type_id": self.bread_type_id,
            "bread_type": self.bread_type.to_ref() if self.bread_type else None,
            "quantity": self.quantity,
            "unit_price_cents": self.unit_price_cents,
            "discount_cents": self.discount_cents,
            "total_cents": self.total_cents,
            "returned": self.returned,
            "leftover": self.leftover,
            "shift": self.shift,
            "business_date": to_iso_date(self.business_date),
            "recorded_by_user_id": self.recorded_by_user_id,
            "recorded_by_name": self.recorded_by.name if self.recorded_by else None,
            "created_at": to_utc_z(self.created_at),
        }


class RemainingBread(db.Model):
    """
    End-of-shift remaining stock declared by a sales rep.

    One row per (bakery, bread type, shift, business date, recorder);
    repeated declarations update the row in place.
    """
    __tablename__ = "remaining_bread"
    __table_args__ = (
        db.UniqueConstraint(
            "bakery_id", "bread_type_id", "shift", "business_date", "recorded_by_user_id",
            name="uq_remaining_bread_declaration",
        ),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    bakery_id = db.Column(db.Integer, db.ForeignKey("bakeries.id"), nullable=False)
    bread_type_id = db.Column(db.Integer, db.ForeignKey("bread_types.id"), nullable=False)

    quantity = db.Column(db.Integer, nullable=False)
    unit_price_cents = db.Column(db.Integer, nullable=False)

    shift = db.Column(db.String(16), nullable=False)
    business_date = db.Column(db.Date, nullable=False)

    recorded_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=True)

    bread_type = db.relationship("BreadType")

    @property
    def total_value_cents(self) -> int:
        return self.quantity * self.unit_price_cents

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "bread_type_id": self.bread_type_id,
            "bread_type": self.bread_type.name if self.bread_type else None,
            "quantity": self.quantity,
            "unit_price_cents": self.unit_price_cents,
            "total_value_cents": self.total_value_cents,
            "shift": self.shift,
            "business_date": to_iso_date(self.business_date),
            "recorded_by_user_id": self.recorded_by_user_id,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class ShiftReport(db.Model):
    """End-of-shift summary submitted by a sales rep. Snapshots are JSON."""
    __tablename__ = "shift_reports"
    __table_args__ = (
        db.Index("ix_shift_reports_bakery_date", "bakery_id", "business_date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    bakery_id = db.Column(db.Integer, db.ForeignKey("bakeries.id"), nullable=False)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)

    shift = db.Column(db.String(16), nullable=False)
    business_date = db.Column(db.Date, nullable=False)

    total_revenue_cents = db.Column(db.Integer, nullable=False, default=0)
    total_items_sold = db.Column(db.Integer, nullable=False, default=0)
    total_remaining = db.Column(db.Integer, nullable=False, default=0)

    feedback = db.Column(db.Text, nullable=True)
    sales_data = db.Column(db.JSON, nullable=False, default=list)
    remaining_breads = db.Column(db.JSON, nullable=False, default=list)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False)

    user = db.relationship("User")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "user_name": self.user.name if self.user else None,
            "shift": self.shift,
            "business_date": to_iso_date(self.business_date),
            "total_revenue_cents": self.total_revenue_cents,
            "total_items_sold": self.total_items_sold,
            "total_remaining": self.total_remaining,
            "feedback": self.feedback,
            "sales_data": self.sales_data or [],
            "remaining_breads": self.remaining_breads or [],
            "created_at": to_utc_z(self.created_at),
        }


class ShiftFeedback(db.Model):
    """Free-text note about a shift (issues, observations)."""
    __tablename__ = "shift_feedback"
    __table_args__ = (
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    bakery_id = db.Column(db.Integer, db.ForeignKey("bakeries.id"), nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    shift = db.Column(db.String(16), nullable=False)
    business_date = db.Column(db.Date, nullable=False)
    note = db.Column(db.Text, nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "shift": self.shift,
            "business_date": to_iso_date(self.business_date),
            "note": self.note,
            "created_at": to_utc_z(self.created_at),
        }
