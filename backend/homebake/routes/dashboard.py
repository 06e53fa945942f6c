# Overview: Flask API routes for role dashboards, read through the query cache.

"""
Dashboard Routes

Dashboards are polled by clients every DASHBOARD_POLL_SECONDS. Results are
cached per bakery (and per user for sales reps); writes elsewhere mark
the ("dashboard", bakery_id) prefix stale.
"""

from flask import Blueprint, g, jsonify

from ..cache import get_cache
from ..decorators import require_auth, require_role
from ..services import dashboard_service, inventory_service, presence_service
from ..services.shift_service import current_shift


dashboard_bp = Blueprint("dashboard", __name__, url_prefix="/api/dashboard")


@dashboard_bp.get("/owner")
@require_auth
@require_role("owner")
def owner_dashboard_route():
    bakery_id = g.bakery_id
    data = get_cache().fetch(("dashboard", bakery_id, "owner"), lambda: dashboard_service.owner_dashboard(bakery_id))
    return jsonify({"data": data})


@dashboard_bp.get("/manager")
@require_auth
@require_role("owner", "manager")
def manager_dashboard_route():
    bakery_id = g.bakery_id
    data = get_cache().fetch(("dashboard", bakery_id, "manager"), lambda: dashboard_service.manager_dashboard(bakery_id))
    return jsonify({"data": data})


@dashboard_bp.get("/sales")
@require_auth
@require_role("sales_rep")
def sales_dashboard_route():
    user = g.current_user
    data = get_cache().fetch(
        ("dashboard", user.bakery_id, "sales", user.id),
        lambda: dashboard_service.sales_rep_dashboard(user),
    )
    return jsonify({"data": data})


@dashboard_bp.get("/staff-online")
@require_auth
@require_role("owner", "manager")
def staff_online_route():
    return jsonify({"data": presence_service.staff_online(g.bakery_id)})


@dashboard_bp.get("/low-stock")
@require_auth
@require_role("owner", "manager")
def low_stock_route():
    window = current_shift()
    return jsonify({
        "data": {
            "business_date": window.business_date.isoformat(),
            "count": inventory_service.low_stock_count(g.bakery_id, window.business_date),
            "threshold": inventory_service.low_stock_threshold(),
        }
    })
