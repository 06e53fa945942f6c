# Overview: Role-gated page routes; redirects visitors to the dashboard their role may open.

"""
Pages

The browser UI is served separately; these routes only decide whether a
dashboard page may be opened. Authentication comes from the session
cookie set at login.

- /dashboard redirects to the role's home
- /dashboard/<section> renders when the role is allowed, otherwise
  redirects to the role's home
- unauthenticated visitors are redirected to /login
"""

from flask import Blueprint, g, redirect, request
from markupsafe import escape

from ..decorators import load_session_context
from ..services.authz_service import page_redirect


pages_bp = Blueprint("pages", __name__)


def _shell(title: str) -> str:
    return (
        "<!doctype html><html><head><meta charset='utf-8'>"
        f"<title>HomeBake - {escape(title)}</title></head>"
        f"<body><div id='root' data-page='{escape(title)}'></div></body></html>"
    )


def _current_role() -> str | None:
    if load_session_context() is None:
        return None
    return g.role


@pages_bp.get("/dashboard")
def dashboard_home():
    return redirect(page_redirect(_current_role(), None))


@pages_bp.get("/dashboard/<section>")
def dashboard_section(section: str):
    target = page_redirect(_current_role(), section)
    if target is not None:
        return redirect(target)
    return _shell(section)


@pages_bp.get("/login")
def login_page():
    return _shell("login")


@pages_bp.get("/signup")
def signup_page():
    # The invite token is validated by the signup form via /api/auth/invite/<token>
    return _shell("signup" if request.args.get("token") else "signup-invite-required")
