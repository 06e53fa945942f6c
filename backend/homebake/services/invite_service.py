# Overview: QR staff invitations (owner-issued, single use, short-lived).

from __future__ import annotations

import io
import secrets
from datetime import datetime, timedelta
from urllib.parse import urlencode

import qrcode
from flask import current_app

from ..extensions import db
from ..models import QRInvite, User
from ..validation import NotFoundError, STAFF_ROLES, ValidationError
from . import activity_service
from .auth_service import create_user
from homebake.time_utils import utcnow


class InviteError(ValueError):
    """Raised when an invite is unknown, expired, already used or revoked."""


def _ttl() -> timedelta:
    return timedelta(minutes=int(current_app.config.get("INVITE_TTL_MINUTES", 10)))


def invite_url(token: str) -> str:
    base = current_app.config.get("APP_URL", "").rstrip("/")
    return f"{base}/signup?{urlencode({'token': token})}"


def create_invite(*, owner: User, role: str, now: datetime | None = None) -> QRInvite:
    if role not in STAFF_ROLES:
        raise ValidationError(f"role must be one of: {', '.join(STAFF_ROLES)}")

    now = now or utcnow()
    invite = QRInvite(
        bakery_id=owner.bakery_id,
        token=secrets.token_urlsafe(32),
        role=role,
        is_used=False,
        expires_at=now + _ttl(),
        created_by_user_id=owner.id,
        created_at=now,
    )
    db.session.add(invite)
    db.session.commit()
    return invite


def qr_png(data: str) -> bytes:
    """PNG bytes of a QR code encoding `data`."""
    img = qrcode.make(data)
    buffer = io.BytesIO()
    img.save(buffer, format="PNG")
    return buffer.getvalue()


def _get_by_token(token) -> QRInvite | None:
    if not isinstance(token, str) or not token.strip():
        return None
    return db.session.query(QRInvite).filter_by(token=token.strip()).first()


def validate_invite(token, now: datetime | None = None) -> QRInvite:
    """Return the invite if it can still be used, else raise InviteError."""
    invite = _get_by_token(token)
    if not invite:
        raise InviteError("Invalid invite token")
    if invite.is_used:
        raise InviteError("This invite has already been used")
    if invite.expires_at <= (now or utcnow()):
        raise InviteError("This invite has expired")
    return invite


def accept_invite(*, token, name: str, email: str, password: str, now: datetime | None = None) -> User:
    """
    Sign up through an invite: create the user in the inviter's bakery with
    the invite's role and mark the invite used, in one transaction.

    The invite is claimed with a conditional UPDATE (is_used = false), so of
    two signups racing on one token only the first gets an account.
    """
    now = now or utcnow()
    invite = validate_invite(token, now)

    try:
        # claim first; a concurrent signup that already claimed it wins
        claimed = (
            db.session.query(QRInvite)
            .filter(QRInvite.id == invite.id, QRInvite.is_used.is_(False))
            .update({"is_used": True, "used_at": now}, synchronize_session=False)
        )
        if claimed != 1:
            raise InviteError("This invite has already been used")

        user = create_user(
            bakery_id=invite.bakery_id,
            name=name,
            email=email,
            password=password,
            role=invite.role,
            created_by_user_id=invite.created_by_user_id,
            commit=False,
        )
        invite.is_used = True
        invite.used_at = now
        invite.used_by_user_id = user.id
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    activity_service.log_activity(
        user,
        "created",
        f"New {user.role} account created: {user.name}",
        metadata={"invite_id": invite.id},
        now=now,
    )
    return user


def list_pending_invites(bakery_id: int, now: datetime | None = None) -> list[QRInvite]:
    return (
        db.session.query(QRInvite)
        .filter(
            QRInvite.bakery_id == bakery_id,
            QRInvite.is_used.is_(False),
            QRInvite.expires_at > (now or utcnow()),
        )
        .order_by(QRInvite.created_at.desc())
        .all()
    )


def revoke_invite(*, bakery_id: int, invite_id: int) -> None:
    invite = db.session.get(QRInvite, invite_id)
    if not invite or invite.bakery_id != bakery_id:
        raise NotFoundError("Invite not found")
    if invite.is_used:
        raise InviteError("Used invites cannot be revoked")
    db.session.delete(invite)
    db.session.commit()


def cleanup_expired_invites(now: datetime | None = None) -> int:
    deleted = db.session.query(QRInvite).filter(
        QRInvite.is_used.is_(False),
        QRInvite.expires_at <= (now or utcnow()),
    ).delete(synchronize_session=False)
    db.session.commit()
    return deleted
