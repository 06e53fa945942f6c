# Overview: Flask API routes for push subscriptions, preferences and the activity feed.

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_auth, require_role
from ..errors import error_body, status_for, success_message
from ..services import activity_service, push_service


notifications_bp = Blueprint("notifications", __name__, url_prefix="/api/notifications")


@notifications_bp.post("/subscribe")
@require_auth
def subscribe_route():
    """Body: {"subscription": {"endpoint": ..., "keys": {"p256dh": ..., "auth": ...}}}."""
    data = request.get_json(silent=True) or {}
    try:
        sub = push_service.subscribe(
            g.current_user,
            data.get("subscription"),
            user_agent=request.headers.get("User-Agent"),
        )
        return jsonify({"data": sub.to_dict(), "message": success_message("push", "subscribe")})
    except ValueError as e:
        return jsonify(error_body(e, "push", "subscribe")), status_for(e)


@notifications_bp.post("/unsubscribe")
@require_auth
def unsubscribe_route():
    sub = push_service.unsubscribe(g.current_user)
    return jsonify({"data": sub.to_dict(), "message": success_message("push", "unsubscribe")})


@notifications_bp.get("/preferences")
@require_auth
def get_preferences_route():
    sub = push_service.get_preferences(g.current_user)
    if sub is None:
        return jsonify({"data": {"user_id": g.current_user.id, "enabled": False, "has_subscription": False}})
    return jsonify({"data": sub.to_dict()})


@notifications_bp.put("/preferences")
@require_auth
def set_preferences_route():
    data = request.get_json(silent=True) or {}
    if not isinstance(data.get("enabled"), bool):
        return jsonify({"error": "enabled must be a boolean"}), 400
    sub = push_service.set_enabled(g.current_user, data["enabled"])
    operation = "subscribe" if sub.enabled else "unsubscribe"
    return jsonify({"data": sub.to_dict(), "message": success_message("push", operation)})


@notifications_bp.get("/activities")
@require_auth
@require_role("owner")
def activities_route():
    limit = min(request.args.get("limit", 50, type=int), 200)
    activities = activity_service.recent_activities(g.bakery_id, limit=limit)
    return jsonify({"data": [a.to_dict() for a in activities]})


@notifications_bp.get("/health")
@require_auth
@require_role("owner")
def push_health_route():
    return jsonify({"data": push_service.health(g.bakery_id)})


@notifications_bp.post("/test")
@require_auth
@require_role("owner")
def test_push_route():
    """Send a test notification to the bakery's subscribed owners."""
    try:
        payload = push_service.build_payload("report", g.current_user.name, "Test notification from HomeBake")
        result = push_service.notify_owners(g.bakery_id, payload)
        return jsonify({"data": result})
    except Exception:
        current_app.logger.exception("Failed to send test notification")
        return jsonify({"error": "Internal server error"}), 500
