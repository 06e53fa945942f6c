# Overview: Flask API routes for staff management; parses input and returns JSON responses.

"""
Users

Owners list, activate/deactivate, re-role and delete staff, and can set a
new password for a staff member. Any user may update their own display
name via PATCH /me.
"""

from flask import Blueprint, current_app, g, jsonify, request

from ..cache import get_cache
from ..decorators import require_auth, require_role
from ..errors import error_body, status_for, success_message
from ..services import presence_service, user_service


users_bp = Blueprint("users", __name__, url_prefix="/api/users")


@users_bp.get("")
@require_auth
@require_role("owner")
def list_users_route():
    include_inactive = request.args.get("include_inactive", "true").lower() == "true"
    users = user_service.list_users(g.bakery_id, include_inactive=include_inactive)
    return jsonify({"data": [u.to_dict() for u in users]})


@users_bp.get("/online")
@require_auth
@require_role("owner", "manager")
def staff_online_route():
    return jsonify({"data": presence_service.staff_online(g.bakery_id)})


@users_bp.patch("/me")
@require_auth
def update_me_route():
    data = request.get_json(silent=True) or {}
    try:
        user = user_service.update_profile(user=g.current_user, name=data.get("name"))
        return jsonify({"data": user.to_dict(), "message": success_message("user", "update", name=user.name)})
    except ValueError as e:
        return jsonify(error_body(e, "user", "update")), status_for(e)


@users_bp.patch("/<int:user_id>")
@require_auth
@require_role("owner")
def update_user_route(user_id: int):
    """Body: {"role": ...} and/or {"is_active": bool}."""
    data = request.get_json(silent=True) or {}
    if "role" not in data and "is_active" not in data:
        return jsonify({"error": "role or is_active is required"}), 400

    try:
        user = None
        if "role" in data:
            user = user_service.change_role(actor=g.current_user, user_id=user_id, role=data["role"])
        if "is_active" in data:
            user = user_service.set_active(actor=g.current_user, user_id=user_id, active=data["is_active"])
        get_cache().invalidate(("dashboard", g.bakery_id))
        return jsonify({"data": user.to_dict(), "message": success_message("user", "update", name=user.name)})
    except ValueError as e:
        return jsonify(error_body(e, "user", "update")), status_for(e)
    except Exception:
        current_app.logger.exception("Failed to update user %s", user_id)
        return jsonify({"error": "Internal server error"}), 500


@users_bp.post("/<int:user_id>/reset-password")
@require_auth
@require_role("owner")
def reset_password_route(user_id: int):
    """
    Body: {"new_password": "..."}. Revokes every session of the user.
    """
    data = request.get_json(silent=True) or {}
    new_password = data.get("new_password")
    if not new_password:
        return jsonify({"error": "new_password required"}), 400

    try:
        revoked = user_service.reset_password(actor=g.current_user, user_id=user_id, new_password=new_password)
        get_cache().invalidate(("dashboard", g.bakery_id))
        return jsonify({
            "data": {"id": user_id, "sessions_revoked": revoked},
            "message": success_message("password", "reset"),
        })
    except ValueError as e:
        return jsonify(error_body(e, "password", "reset")), status_for(e)
    except Exception:
        current_app.logger.exception("Failed to reset password for user %s", user_id)
        return jsonify({"error": "Internal server error"}), 500


@users_bp.delete("/<int:user_id>")
@require_auth
@require_role("owner")
def delete_user_route(user_id: int):
    try:
        user_service.delete_user(actor=g.current_user, user_id=user_id)
        get_cache().invalidate(("dashboard", g.bakery_id))
        return jsonify({"data": {"id": user_id}, "message": success_message("user", "delete")})
    except ValueError as e:
        return jsonify(error_body(e, "user", "delete")), status_for(e)
    except Exception:
        current_app.logger.exception("Failed to delete user %s", user_id)
        return jsonify({"error": "Internal server error"}), 500
