# Overview: Role resolution and role-based access decisions.

"""
Authorization

Roles: owner > manager > sales_rep. There is exactly one resolution path,
used by API decorators and page gating alike:

1. the role claim captured on the session at login
2. the user's row
3. sales_rep (lowest privilege)

Users without an active row never reach resolution: validate_session
rejects them and the request is unauthenticated.
"""

from __future__ import annotations

from ..validation import ROLES
from .session_service import SessionContext


OWNER = "owner"
MANAGER = "manager"
SALES_REP = "sales_rep"

DEFAULT_ROLE = SALES_REP

ROLE_HOME = {
    OWNER: "/dashboard/owner",
    MANAGER: "/dashboard/manager",
    SALES_REP: "/dashboard/sales",
}

# Dashboard section -> roles allowed to open it
PAGE_ACCESS: dict[str, frozenset[str]] = {
    "owner": frozenset({OWNER}),
    "manager": frozenset({OWNER, MANAGER}),
    "sales": frozenset({SALES_REP}),
    "users": frozenset({OWNER}),
    "bread-types": frozenset({OWNER}),
    "production": frozenset({OWNER, MANAGER}),
    "batches": frozenset({OWNER, MANAGER}),
    "inventory": frozenset({OWNER, MANAGER, SALES_REP}),
    "reports": frozenset({OWNER, MANAGER}),
    "sales-management": frozenset({OWNER, MANAGER}),
    "sales-reports-history": frozenset({OWNER, MANAGER, SALES_REP}),
    "settings": frozenset({OWNER, MANAGER, SALES_REP}),
}


def resolve_role(context: SessionContext | None) -> str:
    """Resolve the acting role: session claim, then user row, then sales_rep."""
    if context is None:
        return DEFAULT_ROLE
    if context.role_claim in ROLES:
        return context.role_claim
    user_role = getattr(context.user, "role", None)
    if user_role in ROLES:
        return user_role
    return DEFAULT_ROLE


def home_for(role: str) -> str:
    return ROLE_HOME.get(role, ROLE_HOME[DEFAULT_ROLE])


def can_access_page(role: str, section: str) -> bool:
    allowed = PAGE_ACCESS.get(section)
    return bool(allowed) and role in allowed


def page_redirect(role: str | None, section: str | None) -> str | None:
    """
    Where to send a visitor of /dashboard[/section].

    None means the page may be rendered. Unauthenticated visitors go to
    /login, unknown or forbidden sections go to the role's home.
    """
    if role is None:
        return "/login"
    if section is None:
        return home_for(role)
    if can_access_page(role, section):
        return None
    return home_for(role)
