# Overview: Flask API routes for production logs.

from flask import Blueprint, current_app, g, jsonify, request

from ..cache import get_cache
from ..decorators import require_auth, require_role
from ..errors import error_body, status_for, success_message
from ..services import production_service
from ..services.shift_service import current_shift, parse_shift
from homebake.time_utils import parse_iso_date


production_bp = Blueprint("production", __name__, url_prefix="/api/production")


@production_bp.post("")
@require_auth
@require_role("owner", "manager")
def record_production_route():
    data = request.get_json(silent=True) or {}
    try:
        log = production_service.record_production(
            user=g.current_user,
            bread_type_id=data.get("bread_type_id"),
            quantity=data.get("quantity"),
            shift=data.get("shift"),
            feedback=data.get("feedback"),
        )
        get_cache().invalidate(("dashboard", g.bakery_id))
        return jsonify({
            "data": log.to_dict(),
            "message": success_message("production", "record", name=f"{log.quantity}x {log.bread_type.name}"),
        }), 201
    except ValueError as e:
        return jsonify(error_body(e, "production", "record")), status_for(e)
    except Exception:
        current_app.logger.exception("Failed to record production")
        return jsonify({"error": "Internal server error"}), 500


@production_bp.get("")
@require_auth
@require_role("owner", "manager")
def list_production_route():
    try:
        logs = production_service.list_production(
            g.bakery_id,
            business_date=parse_iso_date(request.args.get("date")),
            date_from=parse_iso_date(request.args.get("start")),
            date_to=parse_iso_date(request.args.get("end")),
            shift=request.args.get("shift"),
            bread_type_id=request.args.get("bread_type_id", type=int),
            recorded_by=request.args.get("recorded_by", type=int),
            limit=min(request.args.get("limit", 200, type=int), 1000),
        )
        return jsonify({"data": [log.to_dict() for log in logs]})
    except ValueError as e:
        return jsonify({"error": str(e)}), status_for(e)


@production_bp.get("/summary")
@require_auth
@require_role("owner", "manager")
def production_summary_route():
    """Per bread type totals for a business date (default: current) and optional shift."""
    try:
        window = current_shift()
        business_date = parse_iso_date(request.args.get("date")) or window.business_date
        shift = parse_shift(request.args.get("shift")) if request.args.get("shift") else None
        return jsonify({
            "data": {
                "business_date": business_date.isoformat(),
                "shift": shift,
                "items": production_service.production_by_bread_type(g.bakery_id, business_date, shift),
            }
        })
    except ValueError as e:
        return jsonify({"error": str(e)}), status_for(e)


@production_bp.get("/today")
@require_auth
@require_role("owner", "manager")
def todays_production_route():
    try:
        shift = request.args.get("shift")
        logs = production_service.todays_production(g.bakery_id, shift=parse_shift(shift) if shift else None)
        return jsonify({"data": [log.to_dict() for log in logs]})
    except ValueError as e:
        return jsonify({"error": str(e)}), status_for(e)
