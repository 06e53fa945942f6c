from __future__ import annotations

from ..extensions import db
from homebake.time_utils import to_utc_z


class Activity(db.Model):
    """
    Bakery activity feed entry (sale, batch, report, login, end_shift, created).

    user_name and user_role are denormalized so the feed survives user edits.
    """
    __tablename__ = "activities"
    __table_args__ = (
        db.Index("ix_activities_bakery_created", "bakery_id", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    bakery_id = db.Column(db.Integer, db.ForeignKey("bakeries.id"), nullable=False)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    user_name = db.Column(db.String(128), nullable=False)
    user_role = db.Column(db.String(16), nullable=False)

    activity_type = db.Column(db.String(32), nullable=False)
    shift = db.Column(db.String(16), nullable=True)
    message = db.Column(db.Text, nullable=False)
    # "metadata" is reserved on declarative models
    details = db.Column("metadata", db.JSON, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "user_name": self.user_name,
            "user_role": self.user_role,
            "activity_type": self.activity_type,
            "shift": self.shift,
            "message": self.message,
            "metadata": self.details or {},
            "created_at": to_utc_z(self.created_at),
        }


class PushSubscription(db.Model):
    """
    Per-user Web Push preference and browser subscription.

    enabled=False keeps the row (and the user's choice) without delivering.
    """
    __tablename__ = "push_subscriptions"
    __table_args__ = (
        db.UniqueConstraint("user_id", name="uq_push_subscriptions_user"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    bakery_id = db.Column(db.Integer, db.ForeignKey("bakeries.id"), nullable=False, index=True)

    enabled = db.Column(db.Boolean, nullable=False, default=True)
    endpoint = db.Column(db.Text, nullable=True)
    p256dh_key = db.Column(db.String(255), nullable=True)
    auth_key = db.Column(db.String(255), nullable=True)
    user_agent = db.Column(db.String(255), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=True)

    user = db.relationship("User")

    @property
    def is_deliverable(self) -> bool:
        return bool(self.enabled and self.endpoint and self.p256dh_key and self.auth_key)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "enabled": self.enabled,
            "has_subscription": bool(self.endpoint),
            "user_agent": self.user_agent,
            "updated_at": to_utc_z(self.updated_at),
        }
