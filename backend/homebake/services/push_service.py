# Overview: Web Push subscriptions and delivery to bakery owners.

"""
Push notifications

Each user has at most one PushSubscription row holding their preference
(enabled) and their browser subscription (endpoint + keys). Activity by
managers and sales reps is relayed to every owner of the bakery with an
enabled subscription.

Delivery goes through pywebpush with the app's VAPID keys. Without keys
delivery is skipped. Delivery failures are logged and reported in the
returned summary, never raised to the caller. Endpoints answering 404/410
are gone for good, so their subscription is cleared and disabled.
"""

from __future__ import annotations

import json
import logging
from datetime import timezone

from flask import current_app
from pywebpush import WebPushException, webpush
from sqlalchemy.exc import SQLAlchemyError

from ..errors import with_retry
from ..extensions import db
from ..models import PushSubscription, User
from ..validation import ValidationError
from homebake.time_utils import utcnow


logger = logging.getLogger(__name__)

PUSH_TTL_SECONDS = 24 * 60 * 60
ICON_URL = "/icons/icon-192x192.png"

ACTIVITY_TITLES = {
    "sale": "New Sale",
    "batch": "Batch Update",
    "report": "Report Generated",
    "login": "Staff Login",
    "end_shift": "Shift Ended",
    "created": "New Staff Account",
}


def is_configured() -> bool:
    return bool(current_app.config.get("VAPID_PUBLIC_KEY") and current_app.config.get("VAPID_PRIVATE_KEY"))


def get_preferences(user: User) -> PushSubscription | None:
    return db.session.query(PushSubscription).filter_by(user_id=user.id).first()


def _get_or_create(user: User) -> PushSubscription:
    sub = get_preferences(user)
    if sub is None:
        sub = PushSubscription(user_id=user.id, bakery_id=user.bakery_id, enabled=True)
        db.session.add(sub)
    return sub


def subscribe(user: User, subscription: dict, user_agent: str | None = None) -> PushSubscription:
    """
    Store a browser PushSubscription ({endpoint, keys: {p256dh, auth}}) and
    enable delivery.
    """
    if not isinstance(subscription, dict):
        raise ValidationError("subscription is required")
    endpoint = subscription.get("endpoint")
    keys = subscription.get("keys") or {}
    if not endpoint or not keys.get("p256dh") or not keys.get("auth"):
        raise ValidationError("subscription must include endpoint and keys.p256dh/keys.auth")

    sub = _get_or_create(user)
    sub.endpoint = endpoint
    sub.p256dh_key = keys["p256dh"]
    sub.auth_key = keys["auth"]
    sub.user_agent = (user_agent or "")[:255] or None
    sub.enabled = True
    sub.updated_at = utcnow()
    db.session.commit()
    return sub


def unsubscribe(user: User) -> PushSubscription:
    sub = _get_or_create(user)
    sub.enabled = False
    sub.endpoint = None
    sub.p256dh_key = None
    sub.auth_key = None
    sub.updated_at = utcnow()
    db.session.commit()
    return sub


def set_enabled(user: User, enabled: bool) -> PushSubscription:
    sub = _get_or_create(user)
    sub.enabled = bool(enabled)
    sub.updated_at = utcnow()
    db.session.commit()
    return sub


def build_payload(activity_type: str, user_name: str, message: str, metadata: dict | None = None) -> dict:
    return {
        "title": f"HomeBake {ACTIVITY_TITLES.get(activity_type, 'Update')}",
        "body": message,
        "icon": ICON_URL,
        "actions": [
            {"action": "view", "title": "View Dashboard"},
            {"action": "dismiss", "title": "Dismiss"},
        ],
        "data": {
            "activity_type": activity_type,
            "user_name": user_name,
            "metadata": metadata or {},
            "url": "/dashboard/owner",
            "timestamp": int(utcnow().replace(tzinfo=timezone.utc).timestamp() * 1000),
        },
    }


def _deliver(subscription_info: dict, data: str) -> None:
    webpush(
        subscription_info=subscription_info,
        data=data,
        vapid_private_key=current_app.config["VAPID_PRIVATE_KEY"],
        vapid_claims={"sub": current_app.config.get("VAPID_SUBJECT", "mailto:admin@homebake.local")},
        ttl=PUSH_TTL_SECONDS,
    )


def _disable_gone(sub: PushSubscription) -> None:
    sub.enabled = False
    sub.endpoint = None
    sub.p256dh_key = None
    sub.auth_key = None
    sub.updated_at = utcnow()
    try:
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        logger.exception("Failed to disable expired push subscription %s", sub.id)


def owner_subscriptions(bakery_id: int, exclude_user_id: int | None = None) -> list[PushSubscription]:
    query = (
        db.session.query(PushSubscription)
        .join(User, User.id == PushSubscription.user_id)
        .filter(
            PushSubscription.bakery_id == bakery_id,
            PushSubscription.enabled.is_(True),
            PushSubscription.endpoint.isnot(None),
            User.role == "owner",
            User.is_active.is_(True),
        )
    )
    if exclude_user_id is not None:
        query = query.filter(PushSubscription.user_id != exclude_user_id)
    return query.all()


def notify_owners(bakery_id: int, payload: dict, exclude_user_id: int | None = None) -> dict:
    """Send `payload` to every subscribed owner. Returns {sent, failed, total, skipped}."""
    if not is_configured():
        logger.debug("Push delivery skipped: VAPID keys not configured")
        return {"sent": 0, "failed": 0, "total": 0, "skipped": True}

    subs = [s for s in owner_subscriptions(bakery_id, exclude_user_id) if s.is_deliverable]
    data = json.dumps(payload)
    delay = float(current_app.config.get("PUSH_RETRY_DELAY_SECONDS", 1.0))
    sent = 0
    failed = 0

    for sub in subs:
        info = {"endpoint": sub.endpoint, "keys": {"p256dh": sub.p256dh_key, "auth": sub.auth_key}}
        try:
            with_retry(lambda: _deliver(info, data), max_attempts=3, delay_seconds=delay, backoff="exponential")
            sent += 1
        except WebPushException as exc:
            failed += 1
            status = getattr(exc.response, "status_code", None)
            logger.warning("Push to user %s failed (status %s): %s", sub.user_id, status, exc)
            if status in (404, 410):
                _disable_gone(sub)
        except Exception:
            failed += 1
            logger.exception("Push to user %s failed", sub.user_id)

    if subs:
        logger.info("Push notifications sent: %s/%s", sent, len(subs))
    return {"sent": sent, "failed": failed, "total": len(subs), "skipped": False}


def health(bakery_id: int) -> dict:
    subscribers = db.session.query(PushSubscription).filter(
        PushSubscription.bakery_id == bakery_id,
        PushSubscription.enabled.is_(True),
        PushSubscription.endpoint.isnot(None),
    ).count()
    return {
        "configured": is_configured(),
        "public_key": current_app.config.get("VAPID_PUBLIC_KEY"),
        "subscribers": subscribers,
    }
