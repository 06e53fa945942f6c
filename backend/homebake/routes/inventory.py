# Overview: Flask API routes for derived inventory and the inventory ledger.

from flask import Blueprint, g, jsonify, request

from ..decorators import require_auth, require_role
from ..errors import status_for
from ..services import inventory_service
from ..services.shift_service import current_shift, parse_shift
from homebake.time_utils import parse_iso_date


inventory_bp = Blueprint("inventory", __name__, url_prefix="/api/inventory")


@inventory_bp.get("")
@require_auth
def current_inventory_route():
    """Inventory of the running shift, or of the whole business date with ?scope=day."""
    scope = request.args.get("scope", "shift")
    if scope not in ("shift", "day"):
        return jsonify({"error": "scope must be 'shift' or 'day'"}), 400
    return jsonify({"data": inventory_service.current_inventory(g.bakery_id, scope=scope)})


@inventory_bp.get("/shift")
@require_auth
def inventory_by_shift_route():
    """Inventory for an explicit ?date=YYYY-MM-DD&shift=morning|night."""
    try:
        business_date = parse_iso_date(request.args.get("date")) or current_shift().business_date
        shift = parse_shift(request.args.get("shift")) if request.args.get("shift") else None
        items = inventory_service.derive_inventory(g.bakery_id, business_date, shift)
        return jsonify({"data": {"business_date": business_date.isoformat(), "shift": shift, "items": items}})
    except ValueError as e:
        return jsonify({"error": str(e)}), status_for(e)


@inventory_bp.get("/logs")
@require_auth
@require_role("owner", "manager")
def inventory_logs_route():
    logs = inventory_service.list_inventory_logs(
        g.bakery_id,
        bread_type_id=request.args.get("bread_type_id", type=int),
        limit=min(request.args.get("limit", 200, type=int), 1000),
    )
    return jsonify({"data": [log.to_dict() for log in logs]})
