# Overview: Staff presence rows backing the "staff online" count.

from __future__ import annotations

import logging
from datetime import datetime, timedelta

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..models import StaffSession, User
from homebake.time_utils import utcnow


logger = logging.getLogger(__name__)


def _ttl() -> timedelta:
    return timedelta(hours=int(current_app.config.get("STAFF_SESSION_HOURS", 24)))


def mark_online(user: User, now: datetime | None = None) -> StaffSession:
    """Replace the user's presence row. Caller commits."""
    now = now or utcnow()
    db.session.query(StaffSession).filter_by(user_id=user.id).delete(synchronize_session=False)
    row = StaffSession(
        user_id=user.id,
        bakery_id=user.bakery_id,
        created_at=now,
        expires_at=now + _ttl(),
    )
    db.session.add(row)
    return row


def mark_offline(user_id: int) -> int:
    """Delete the user's presence row. Caller commits."""
    return db.session.query(StaffSession).filter_by(user_id=user_id).delete(synchronize_session=False)


def cleanup_expired(now: datetime | None = None) -> int:
    now = now or utcnow()
    deleted = db.session.query(StaffSession).filter(
        StaffSession.expires_at < now
    ).delete(synchronize_session=False)
    db.session.commit()
    return deleted


def staff_online(bakery_id: int, now: datetime | None = None) -> dict:
    """
    Online/total staff counts for a bakery.

    Expired rows are swept first; a failed sweep is logged and the count
    still excludes expired rows.
    """
    now = now or utcnow()
    try:
        cleanup_expired(now)
    except SQLAlchemyError:
        db.session.rollback()
        logger.warning("Presence cleanup failed", exc_info=True)

    rows = (
        db.session.query(StaffSession, User)
        .join(User, User.id == StaffSession.user_id)
        .filter(
            StaffSession.bakery_id == bakery_id,
            StaffSession.expires_at >= now,
            User.is_active.is_(True),
        )
        .all()
    )
    total = db.session.query(User).filter_by(bakery_id=bakery_id, is_active=True).count()

    return {
        "online": len(rows),
        "total": total,
        "users": [
            {"id": user.id, "name": user.name, "role": user.role, "since": row.to_dict()["created_at"]}
            for row, user in rows
        ],
    }
