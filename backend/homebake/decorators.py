# Overview: Request and role decorators for API routes.

from functools import wraps
from flask import current_app, request, jsonify, g

from .services import session_service
from .services.authz_service import resolve_role


def extract_token() -> str | None:
    """Bearer token from the Authorization header, else the session cookie."""
    auth_header = request.headers.get("Authorization")
    if auth_header and auth_header.startswith("Bearer "):
        return auth_header.split(" ", 1)[1].strip() or None
    return request.cookies.get(current_app.config.get("SESSION_COOKIE_NAME", "homebake_session")) or None


def load_session_context():
    """
    Validate the request's token and populate flask.g.

    Sets g.current_user, g.bakery_id, g.role and g.session_context.
    Returns the SessionContext or None.
    """
    token = extract_token()
    if not token:
        return None

    context = session_service.validate_session(token)
    if not context:
        return None

    g.current_user = context.user
    g.bakery_id = context.bakery_id
    g.role = resolve_role(context)
    g.session_context = context
    g.session_token = token
    return context


def _is_authenticated() -> bool:
    return hasattr(g, 'current_user') and hasattr(g, 'bakery_id')


def require_auth(f):
    """
    Require a valid session and establish bakery (tenant) context.

    Returns 401 for a missing, invalid, expired or revoked token, and for
    deactivated users.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not (request.headers.get("Authorization") or request.cookies):
            return jsonify({"error": "Authentication required"}), 401

        if not load_session_context():
            return jsonify({"error": "Invalid or expired token"}), 401

        return f(*args, **kwargs)

    return decorated_function


def require_role(*roles: str):
    """Allow the request only if the resolved role is one of `roles`."""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not _is_authenticated():
                return jsonify({"error": "Authentication required"}), 401

            if g.role not in roles:
                return jsonify({
                    "error": "Permission denied",
                    "required_roles": list(roles),
                }), 403

            return f(*args, **kwargs)

        return decorated_function
    return decorator
