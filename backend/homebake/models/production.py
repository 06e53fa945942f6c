from __future__ import annotations

from ..extensions import db
from homebake.time_utils import to_iso_date, to_utc_z


class Batch(db.Model):
    """
    A single production run of one bread type during one shift.

    LIFECYCLE:
    - active: baking in progress
    - completed: actual_quantity recorded, paired production log written
    - cancelled: abandoned, no production recorded

    batch_number is "001", "002", ... per bakery, bread type, shift and
    business date.
    """
    __tablename__ = "batches"
    __table_args__ = (
        db.UniqueConstraint(
            "bakery_id", "bread_type_id", "shift", "business_date", "batch_number",
            name="uq_batches_number_per_shift",
        ),
        db.Index("ix_batches_bakery_shift_date", "bakery_id", "shift", "business_date"),
        db.Index("ix_batches_bakery_status", "bakery_id", "status"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    bakery_id = db.Column(db.Integer, db.ForeignKey("bakeries.id"), nullable=False)
    bread_type_id = db.Column(db.Integer, db.ForeignKey("bread_types.id"), nullable=False, index=True)

    batch_number = db.Column(db.String(16), nullable=False)
    shift = db.Column(db.String(16), nullable=False)
    business_date = db.Column(db.Date, nullable=False)

    # active | completed | cancelled
    status = db.Column(db.String(16), nullable=False, default="active")

    planned_quantity = db.Column(db.Integer, nullable=True)
    actual_quantity = db.Column(db.Integer, nullable=True)

    start_time = db.Column(db.DateTime(timezone=True), nullable=False)
    end_time = db.Column(db.DateTime(timezone=True), nullable=True)

    notes = db.Column(db.Text, nullable=True)

    created_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=True)
    version_id = db.Column(db.Integer, nullable=False, default=1)

    bread_type = db.relationship("BreadType")
    created_by = db.relationship("User")

    __mapper_args__ = {"version_id_col": version_id}

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "bakery_id": self.bakery_id,
            "bread_type_id": self.bread_type_id,
            "bread_type": self.bread_type.to_ref() if self.bread_type else None,
            "batch_number": self.batch_number,
            "shift": self.shift,
            "business_date": to_iso_date(self.business_date),
            "status": self.status,
            "planned_quantity": self.planned_quantity,
            "actual_quantity": self.actual_quantity,
            "start_time": to_utc_z(self.start_time),
            "end_time": to_utc_z(self.end_time),
            "notes": self.notes,
            "created_by_user_id": self.created_by_user_id,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class ProductionLog(db.Model):
    """
    Append-only record of units produced. Always written in the same
    transaction as its InventoryLog entry.
    """
    __tablename__ = "production_logs"
    __table_args__ = (
        db.Index("ix_production_logs_bakery_shift_date", "bakery_id", "shift", "business_date"),
        db.Index("ix_production_logs_bakery_created", "bakery_id", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    bakery_id = db.Column(db.Integer, db.ForeignKey("bakeries.id"), nullable=False)
    bread_type_id = db.Column(db.Integer, db.ForeignKey("bread_types.id"), nullable=False, index=True)
    batch_id = db.Column(db.Integer, db.ForeignKey("batches.id"), nullable=True)

    quantity = db.Column(db.Integer, nullable=False)
    shift = db.Column(db.String(16), nullable=False)
    business_date = db.Column(db.Date, nullable=False)
    feedback = db.Column(db.Text, nullable=True)

    recorded_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False)

    bread_type = db.relationship("BreadType")
    recorded_by = db.relationship("User")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "bakery_id": self.bakery_id,
            "bread_type_id": self.bread_type_id,
            "bread_type": self.bread_type.to_ref() if self.bread_type else None,
            "batch_id": self.batch_id,
            "quantity": self.quantity,
            "shift": self.shift,
            "business_date": to_iso_date(self.business_date),
            "feedback": self.feedback,
            "recorded_by_user_id": self.recorded_by_user_id,
            "recorded_by_name": self.recorded_by.name if self.recorded_by else None,
            "created_at": to_utc_z(self.created_at),
        }


class InventoryLog(db.Model):
    """
    Signed stock movement ledger (+production, -sale).

    Derived availability is computed from production and sales logs; this
    ledger is the audit trail of each movement with its originating row.
    """
    __tablename__ = "inventory_logs"
    __table_args__ = (
        db.Index("ix_inventory_logs_bakery_created", "bakery_id", "created_at"),
        db.Index("ix_inventory_logs_reference", "reference_type", "reference_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    bakery_id = db.Column(db.Integer, db.ForeignKey("bakeries.id"), nullable=False)
    bread_type_id = db.Column(db.Integer, db.ForeignKey("bread_types.id"), nullable=False, index=True)

    quantity_change = db.Column(db.Integer, nullable=False)

    # production | sale
    reason = db.Column(db.String(32), nullable=False)
    reference_type = db.Column(db.String(32), nullable=False)
    reference_id = db.Column(db.Integer, nullable=False)

    shift = db.Column(db.String(16), nullable=False)
    business_date = db.Column(db.Date, nullable=False)
    notes = db.Column(db.Text, nullable=True)

    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False)

    bread_type = db.relationship("BreadType")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "bread_type_id": self.bread_type_id,
            "bread_type": self.bread_type.to_ref() if self.bread_type else None,
            "quantity_change": self.quantity_change,
            "reason": self.reason,
            "reference_type": self.reference_type,
            "reference_id": self.reference_id,
            "shift": self.shift,
            "business_date": to_iso_date(self.business_date),
            "notes": self.notes,
            "user_id": self.user_id,
            "created_at": to_utc_z(self.created_at),
        }
