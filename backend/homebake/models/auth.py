from __future__ import annotations

from ..extensions import db
from homebake.time_utils import to_utc_z


class User(db.Model):
    """
    Staff account. Role is the only authorization axis and is changed by an owner.

    Email is globally unique so login needs no bakery selector.
    """
    __tablename__ = "users"
    __table_args__ = (
        db.UniqueConstraint("email", name="uq_users_email"),
        db.Index("ix_users_bakery_role", "bakery_id", "role"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    bakery_id = db.Column(db.Integer, db.ForeignKey("bakeries.id"), nullable=False, index=True)

    name = db.Column(db.String(128), nullable=False)
    email = db.Column(db.String(255), nullable=False)
    password_hash = db.Column(db.String(255), nullable=False)

    # owner | manager | sales_rep
    role = db.Column(db.String(16), nullable=True)

    is_active = db.Column(db.Boolean, nullable=False, default=True)

    # Inviter (owner) for staff created through QR invites
    created_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    last_login_at = db.Column(db.DateTime(timezone=True), nullable=True)

    bakery = db.relationship("Bakery", backref=db.backref("users", lazy=True))
    created_by = db.relationship("User", remote_side=[id])

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "bakery_id": self.bakery_id,
            "name": self.name,
            "email": self.email,
            "role": self.role,
            "is_active": self.is_active,
            "created_by_user_id": self.created_by_user_id,
            "created_at": to_utc_z(self.created_at),
            "last_login_at": to_utc_z(self.last_login_at),
        }


class SessionToken(db.Model):
    """
    Authentication session. Only the SHA-256 of the token is stored.

    bakery_id and role are captured at login: they are the session's claims
    and the first source consulted when resolving a request's role.
    """
    __tablename__ = "session_tokens"
    __table_args__ = (
        db.Index("ix_session_tokens_user_active", "user_id", "is_revoked"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    bakery_id = db.Column(db.Integer, db.ForeignKey("bakeries.id"), nullable=False)
    role = db.Column(db.String(16), nullable=True)

    token_hash = db.Column(db.String(64), nullable=False, unique=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False)
    last_used_at = db.Column(db.DateTime(timezone=True), nullable=False)
    expires_at = db.Column(db.DateTime(timezone=True), nullable=False)

    user_agent = db.Column(db.String(255), nullable=True)
    ip_address = db.Column(db.String(64), nullable=True)

    is_revoked = db.Column(db.Boolean, nullable=False, default=False)
    revoked_at = db.Column(db.DateTime(timezone=True), nullable=True)
    revoked_reason = db.Column(db.String(128), nullable=True)

    user = db.relationship("User", backref=db.backref("session_tokens", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "bakery_id": self.bakery_id,
            "role": self.role,
            "created_at": to_utc_z(self.created_at),
            "last_used_at": to_utc_z(self.last_used_at),
            "expires_at": to_utc_z(self.expires_at),
        }


class StaffSession(db.Model):
    """
    Presence row used only for the "staff online" count.

    One row per user: login replaces it, logout deletes it, and rows past
    expires_at are swept by presence cleanup.
    """
    __tablename__ = "staff_sessions"
    __table_args__ = (
        db.UniqueConstraint("user_id", name="uq_staff_sessions_user"),
        db.Index("ix_staff_sessions_bakery_expires", "bakery_id", "expires_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    bakery_id = db.Column(db.Integer, db.ForeignKey("bakeries.id"), nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False)
    expires_at = db.Column(db.DateTime(timezone=True), nullable=False)

    user = db.relationship("User")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "created_at": to_utc_z(self.created_at),
            "expires_at": to_utc_z(self.expires_at),
        }


class QRInvite(db.Model):
    """
    Single-use staff invitation issued by an owner.

    LIFECYCLE: pending (unused, unexpired) -> used at signup. Expired rows
    are never consumed; revoking deletes an unused row.
    """
    __tablename__ = "qr_invites"
    __table_args__ = (
        db.UniqueConstraint("token", name="uq_qr_invites_token"),
        db.Index("ix_qr_invites_bakery_used", "bakery_id", "is_used"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    bakery_id = db.Column(db.Integer, db.ForeignKey("bakeries.id"), nullable=False)
    token = db.Column(db.String(64), nullable=False)

    # manager | sales_rep
    role = db.Column(db.String(16), nullable=False)

    is_used = db.Column(db.Boolean, nullable=False, default=False)
    used_at = db.Column(db.DateTime(timezone=True), nullable=True)
    used_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)

    expires_at = db.Column(db.DateTime(timezone=True), nullable=False)
    created_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    created_by = db.relationship("User", foreign_keys=[created_by_user_id])

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "bakery_id": self.bakery_id,
            "token": self.token,
            "role": self.role,
            "is_used": self.is_used,
            "used_at": to_utc_z(self.used_at),
            "used_by_user_id": self.used_by_user_id,
            "expires_at": to_utc_z(self.expires_at),
            "created_by_user_id": self.created_by_user_id,
            "created_at": to_utc_z(self.created_at),
        }
