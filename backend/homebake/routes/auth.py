# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

# backend/homebake/routes/auth.py
"""
Authentication API routes

- POST /register-bakery creates a bakery and its first user, the owner.
- Everyone else joins through a QR invite (POST /signup).
- Login issues a session token (also set as an httponly cookie) and marks
  the user online; logout revokes it and clears presence.
- POST /change-password needs the current password and revokes the
  user's other sessions.
"""

from flask import Blueprint, request, jsonify, current_app, g

from ..extensions import db
from ..errors import error_body, status_for, success_message
from ..services import activity_service, auth_service, invite_service, presence_service, session_service
from ..services.authz_service import home_for
from ..services.auth_service import InvalidPasswordError
from ..services.invite_service import InviteError
from ..decorators import require_auth


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


def _session_response(user, status: int = 200, **extra):
    """Open a session for `user`, mark them online and build the login response."""
    session, token = session_service.create_session(
        user,
        user_agent=request.headers.get("User-Agent"),
        ip_address=request.remote_addr,
    )
    presence_service.mark_online(user)
    db.session.commit()

    response = jsonify({
        "data": {
            "user": user.to_dict(),
            "token": token,
            "session": session.to_dict(),
            "role": session.role,
            "home": home_for(session.role),
            **extra,
        }
    })
    response.status_code = status
    response.set_cookie(
        current_app.config.get("SESSION_COOKIE_NAME", "homebake_session"),
        token,
        httponly=True,
        samesite="Lax",
        secure=not (current_app.debug or current_app.testing),
        max_age=int(session_service.SESSION_ABSOLUTE_TIMEOUT.total_seconds()),
    )
    return response


@auth_bp.post("/register-bakery")
def register_bakery_route():
    data = request.get_json(silent=True) or {}
    try:
        bakery, owner = auth_service.register_bakery(
            bakery_name=data.get("bakery_name"),
            name=data.get("name"),
            email=data.get("email"),
            password=data.get("password"),
        )
        return _session_response(owner, status=201, bakery=bakery.to_dict())
    except ValueError as e:
        return jsonify({"error": str(e)}), status_for(e)
    except Exception:
        current_app.logger.exception("Failed to register bakery")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.post("/login")
def login_route():
    """
    Authenticate with email + password.

    Returns the user, the session token and the role's dashboard home.
    """
    data = request.get_json(silent=True) or {}
    email = data.get("email")
    password = data.get("password")

    if not email or not password:
        return jsonify({"error": "email and password required"}), 400

    try:
        user = auth_service.authenticate(email, password)
        if not user:
            return jsonify({"error": "Invalid credentials"}), 401

        response = _session_response(user)
        activity_service.log_activity(user, "login", f"{user.name} logged in")
        return response
    except ValueError as e:
        return jsonify({"error": str(e)}), status_for(e)
    except Exception:
        current_app.logger.exception("Failed to login user")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.post("/logout")
@require_auth
def logout_route():
    try:
        session_service.revoke_session(g.session_token, reason="User logout")
        presence_service.mark_offline(g.current_user.id)
        db.session.commit()

        response = jsonify({"data": {"logged_out": True}})
        response.delete_cookie(current_app.config.get("SESSION_COOKIE_NAME", "homebake_session"))
        return response
    except Exception:
        current_app.logger.exception("Failed to logout user")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.get("/me")
@require_auth
def me_route():
    return jsonify({
        "data": {
            "user": g.current_user.to_dict(),
            "bakery_id": g.bakery_id,
            "role": g.role,
            "home": home_for(g.role),
        }
    })


@auth_bp.post("/change-password")
@require_auth
def change_password_route():
    """
    Change the current user's password.

    Request body:
    {
        "current_password": "...", // required
        "new_password": "..."      // required, 8+ chars with a letter and a digit
    }

    Every other session of the user is revoked; the calling session stays.
    """
    data = request.get_json(silent=True) or {}
    current_password = data.get("current_password")
    new_password = data.get("new_password")

    if not current_password or not new_password:
        return jsonify({"error": "current_password and new_password required"}), 400

    try:
        auth_service.change_password(
            user=g.current_user,
            current_password=current_password,
            new_password=new_password,
        )
        revoked = session_service.revoke_all_user_sessions(
            g.current_user.id,
            reason="Password changed",
            keep_token=g.session_token,
        )
        return jsonify({
            "data": {"sessions_revoked": revoked},
            "message": success_message("password", "update"),
        })
    except InvalidPasswordError as e:
        return jsonify({"error": str(e)}), 401
    except ValueError as e:
        return jsonify(error_body(e, "password", "update")), status_for(e)
    except Exception:
        current_app.logger.exception("Failed to change password")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.get("/invite/<token>")
def validate_invite_route(token: str):
    """Public check used by the signup page before showing the form."""
    try:
        invite = invite_service.validate_invite(token)
        return jsonify({
            "data": {
                "valid": True,
                "role": invite.role,
                "bakery_id": invite.bakery_id,
                "expires_at": invite.to_dict()["expires_at"],
            }
        })
    except InviteError as e:
        return jsonify({"error": str(e), "valid": False}), 400


@auth_bp.post("/signup")
def signup_route():
    data = request.get_json(silent=True) or {}
    try:
        user = invite_service.accept_invite(
            token=data.get("token"),
            name=data.get("name"),
            email=data.get("email"),
            password=data.get("password"),
        )
        return _session_response(user, status=201)
    except ValueError as e:
        return jsonify(error_body(e, "user", "create")), status_for(e)
    except Exception:
        current_app.logger.exception("Failed to sign up user")
        return jsonify({"error": "Internal server error"}), 500
