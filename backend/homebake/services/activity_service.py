# Overview: Bakery activity feed and the push fan-out it triggers.

from __future__ import annotations

import logging
from datetime import datetime, timedelta

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..models import Activity, User
from . import push_service
from homebake.time_utils import utcnow


logger = logging.getLogger(__name__)

ACTIVITY_TYPES = ("sale", "batch", "report", "login", "end_shift", "created")


def _retention() -> timedelta:
    return timedelta(days=int(current_app.config.get("ACTIVITY_RETENTION_DAYS", 3)))


def log_activity(
    user: User,
    activity_type: str,
    message: str,
    *,
    shift: str | None = None,
    metadata: dict | None = None,
    now: datetime | None = None,
) -> Activity | None:
    """
    Append an activity and, for non-owner actors, notify the bakery's owners.

    Runs after the business write has committed. A failure here is logged
    and returns None; it never undoes or fails the action being recorded.
    """
    if activity_type not in ACTIVITY_TYPES:
        raise ValueError(f"Unknown activity type: {activity_type}")

    activity = Activity(
        bakery_id=user.bakery_id,
        user_id=user.id,
        user_name=user.name,
        user_role=user.role or "sales_rep",
        activity_type=activity_type,
        shift=shift,
        message=message,
        details=metadata or {},
        created_at=now or utcnow(),
    )
    try:
        db.session.add(activity)
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        logger.exception("Failed to record %s activity for user %s", activity_type, user.id)
        return None

    if user.role != "owner":
        payload = push_service.build_payload(activity_type, user.name, message, metadata)
        push_service.notify_owners(user.bakery_id, payload, exclude_user_id=user.id)

    return activity


def recent_activities(bakery_id: int, *, limit: int = 50, now: datetime | None = None) -> list[Activity]:
    """Activities from the retention window, newest first."""
    cutoff = (now or utcnow()) - _retention()
    return (
        db.session.query(Activity)
        .filter(Activity.bakery_id == bakery_id, Activity.created_at >= cutoff)
        .order_by(Activity.created_at.desc(), Activity.id.desc())
        .limit(limit)
        .all()
    )


def cleanup_old_activities(now: datetime | None = None) -> int:
    cutoff = (now or utcnow()) - _retention()
    deleted = db.session.query(Activity).filter(Activity.created_at < cutoff).delete(synchronize_session=False)
    db.session.commit()
    return deleted
