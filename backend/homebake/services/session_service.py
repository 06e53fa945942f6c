# Overview: Authentication session tokens.

"""
Session Token Management

Tokens are 32 random bytes (hex) handed to the client once; only their
SHA-256 is stored. Sessions expire after 24 hours, or after 2 idle hours.

The bakery_id and role of the user are captured when the session is
created. Role resolution consults that claim first (see authz_service).
"""

import secrets
import hashlib
from dataclasses import dataclass
from datetime import timedelta

from ..extensions import db
from ..models import SessionToken, User, Bakery
from homebake.time_utils import utcnow


SESSION_ABSOLUTE_TIMEOUT = timedelta(hours=24)
SESSION_IDLE_TIMEOUT = timedelta(hours=2)


@dataclass
class SessionContext:
    user: User
    session: SessionToken
    bakery_id: int
    role_claim: str | None


def generate_token() -> str:
    return secrets.token_hex(32)


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode('utf-8')).hexdigest()


def create_session(
    user: User,
    user_agent: str | None = None,
    ip_address: str | None = None,
) -> tuple[SessionToken, str]:
    """
    Create a session for an authenticated user.

    Returns (session_record, plaintext_token). Raises ValueError if the
    user's bakery is missing or deactivated.
    """
    bakery = db.session.get(Bakery, user.bakery_id)
    if not bakery or not bakery.is_active:
        raise ValueError("Bakery is not active")

    plaintext_token = generate_token()
    now = utcnow()

    session = SessionToken(
        user_id=user.id,
        bakery_id=user.bakery_id,
        role=user.role,
        token_hash=hash_token(plaintext_token),
        created_at=now,
        last_used_at=now,
        expires_at=now + SESSION_ABSOLUTE_TIMEOUT,
        user_agent=(user_agent or "")[:255] or None,
        ip_address=ip_address,
        is_revoked=False,
    )
    db.session.add(session)
    db.session.commit()

    return session, plaintext_token


def _revoke(session: SessionToken, reason: str) -> None:
    session.is_revoked = True
    session.revoked_at = utcnow()
    session.revoked_reason = reason
    db.session.commit()


def validate_session(token: str) -> SessionContext | None:
    """
    Return the SessionContext for a live token, or None.

    Expired, idle, or revoked tokens are rejected, as are sessions whose
    user or bakery has been deactivated or deleted. Touches last_used_at.
    """
    now = utcnow()

    session = db.session.query(SessionToken).filter_by(
        token_hash=hash_token(token),
        is_revoked=False,
    ).first()

    if not session:
        return None

    if session.expires_at < now:
        return None

    if now - session.last_used_at > SESSION_IDLE_TIMEOUT:
        _revoke(session, "Idle timeout")
        return None

    user = session.user
    if not user or not user.is_active:
        _revoke(session, "User account deactivated")
        return None

    bakery = db.session.get(Bakery, session.bakery_id)
    if not bakery or not bakery.is_active:
        _revoke(session, "Bakery deactivated")
        return None

    session.last_used_at = now
    db.session.commit()

    return SessionContext(
        user=user,
        session=session,
        bakery_id=session.bakery_id,
        role_claim=session.role,
    )


def revoke_session(token: str, reason: str = "User logout") -> SessionToken | None:
    """Revoke a token. Returns the revoked session, or None if not found."""
    session = db.session.query(SessionToken).filter_by(
        token_hash=hash_token(token),
        is_revoked=False,
    ).first()

    if not session:
        return None

    _revoke(session, reason)
    return session


def revoke_all_user_sessions(user_id: int, reason: str = "Revoke all sessions", *, keep_token: str | None = None) -> int:
    """
    Revoke every live session of a user (deactivation, password change).
    `keep_token` spares the caller's own session. Returns the count.
    """
    now = utcnow()
    query = db.session.query(SessionToken).filter_by(user_id=user_id, is_revoked=False)
    if keep_token:
        query = query.filter(SessionToken.token_hash != hash_token(keep_token))
    sessions = query.all()
    for session in sessions:
        session.is_revoked = True
        session.revoked_at = now
        session.revoked_reason = reason
    db.session.commit()
    return len(sessions)


def update_role_claims(user_id: int, role: str | None) -> int:
    """Rewrite the role claim on a user's live sessions. Caller commits."""
    return db.session.query(SessionToken).filter_by(user_id=user_id, is_revoked=False).update(
        {"role": role}, synchronize_session=False
    )


def cleanup_expired_sessions(retention_days: int = 30) -> int:
    """Delete expired or revoked sessions created more than `retention_days` ago."""
    now = utcnow()
    cutoff = now - timedelta(days=retention_days)

    deleted = db.session.query(SessionToken).filter(
        db.or_(
            SessionToken.expires_at < now,
            SessionToken.is_revoked.is_(True),
        ),
        SessionToken.created_at < cutoff,
    ).delete(synchronize_session=False)

    db.session.commit()
    return deleted
