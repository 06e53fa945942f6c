# Overview: Flask API routes for sales, remaining bread and end-of-shift reports.

"""
Sales Routes

- Recording a sale goes through the cache: the rep's current-shift sales
  list shows the sale immediately and is restored if the write fails.
- Sales reps only ever see their own sales, remaining bread and reports;
  owners and managers see the whole bakery.
"""

from flask import Blueprint, current_app, g, jsonify, request

from ..cache import get_cache
from ..decorators import require_auth, require_role
from ..errors import error_body, status_for, success_message
from ..services import sales_service
from ..services.shift_service import current_shift
from homebake.time_utils import parse_iso_date


sales_bp = Blueprint("sales", __name__, url_prefix="/api/sales")


def _my_sales_key() -> tuple:
    return ("sales", g.bakery_id, g.current_user.id, "shift")


def _own_scope() -> int | None:
    """User id filter for sales reps; None (whole bakery) for owners and managers."""
    return g.current_user.id if g.role == "sales_rep" else None


@sales_bp.post("")
@require_auth
def record_sale_route():
    data = request.get_json(silent=True) or {}
    user = g.current_user

    def _record():
        sale = sales_service.record_sale(
            user=user,
            bread_type_id=data.get("bread_type_id"),
            quantity=data.get("quantity"),
            unit_price_cents=data.get("unit_price_cents"),
            discount_cents=data.get("discount_cents", 0),
            leftover=data.get("leftover", 0),
            returned=data.get("returned", False),
            shift=data.get("shift"),
        )
        return sale.to_dict()

    try:
        sale = get_cache().mutate(
            _my_sales_key(),
            _record,
            optimistic_record={
                "bread_type_id": data.get("bread_type_id"),
                "quantity": data.get("quantity"),
                "recorded_by_user_id": user.id,
            },
            invalidate=[("dashboard", g.bakery_id)],
        )
        return jsonify({
            "data": sale,
            "message": success_message("sale", "record", name=f"{sale['quantity']}x {sale['bread_type']['name']}"),
        }), 201
    except ValueError as e:
        return jsonify(error_body(e, "sale", "record")), status_for(e)
    except Exception:
        current_app.logger.exception("Failed to record sale")
        return jsonify({"error": "Internal server error"}), 500


@sales_bp.get("")
@require_auth
@require_role("owner", "manager")
def list_sales_route():
    try:
        sales = sales_service.list_sales(
            g.bakery_id,
            business_date=parse_iso_date(request.args.get("date")),
            shift=request.args.get("shift"),
            recorded_by=request.args.get("user_id", type=int),
            bread_type_id=request.args.get("bread_type_id", type=int),
            limit=min(request.args.get("limit", 500, type=int), 2000),
        )
        return jsonify({"data": [s.to_dict() for s in sales]})
    except ValueError as e:
        return jsonify({"error": str(e)}), status_for(e)


@sales_bp.get("/mine")
@require_auth
def my_sales_route():
    """The caller's sales in the current shift, read through the cache."""
    user = g.current_user
    sales = get_cache().fetch(
        _my_sales_key(),
        lambda: [s.to_dict() for s in sales_service.my_shift_sales(user)["sales"]],
    )
    confirmed = [s for s in sales if not s.get("is_optimistic")]
    return jsonify({
        "data": {
            "shift": current_shift().to_dict(),
            "sales": sales,
            "total_revenue_cents": sum(s["total_cents"] for s in confirmed),
            "total_items_sold": sum(s["quantity"] for s in confirmed),
        }
    })


@sales_bp.post("/remaining")
@require_auth
def upsert_remaining_route():
    """Body: {"items": [{"bread_type_id": 1, "quantity": 5}, ...], "shift": optional}."""
    data = request.get_json(silent=True) or {}
    try:
        result = sales_service.upsert_remaining_bread(
            user=g.current_user,
            items=data.get("items"),
            shift=data.get("shift"),
        )
        get_cache().invalidate(("dashboard", g.bakery_id))
        return jsonify({"data": result, "message": success_message("leftover", "record")})
    except ValueError as e:
        return jsonify(error_body(e, "leftover", "record")), status_for(e)
    except Exception:
        current_app.logger.exception("Failed to record remaining bread")
        return jsonify({"error": "Internal server error"}), 500


@sales_bp.get("/remaining")
@require_auth
def get_remaining_route():
    try:
        business_date = parse_iso_date(request.args.get("date")) or current_shift().business_date
        rows = sales_service.get_remaining_bread(
            g.bakery_id,
            business_date=business_date,
            shift=request.args.get("shift"),
            recorded_by=_own_scope(),
        )
        return jsonify({"data": [r.to_dict() for r in rows]})
    except ValueError as e:
        return jsonify({"error": str(e)}), status_for(e)


@sales_bp.post("/end-shift")
@require_auth
def end_shift_route():
    data = request.get_json(silent=True) or {}
    try:
        report = sales_service.submit_shift_report(user=g.current_user, feedback=data.get("feedback"))
        get_cache().invalidate(("dashboard", g.bakery_id), _my_sales_key())
        return jsonify({"data": report.to_dict(), "message": success_message("shift_report", "submit")}), 201
    except ValueError as e:
        return jsonify(error_body(e, "shift_report", "submit")), status_for(e)
    except Exception:
        current_app.logger.exception("Failed to submit shift report")
        return jsonify({"error": "Internal server error"}), 500


@sales_bp.get("/reports")
@require_auth
def list_shift_reports_route():
    try:
        reports = sales_service.list_shift_reports(
            g.bakery_id,
            user_id=_own_scope() or request.args.get("user_id", type=int),
            date_from=parse_iso_date(request.args.get("start")),
            date_to=parse_iso_date(request.args.get("end")),
        )
        return jsonify({"data": [r.to_dict() for r in reports]})
    except ValueError as e:
        return jsonify({"error": str(e)}), status_for(e)


@sales_bp.post("/feedback")
@require_auth
def add_feedback_route():
    data = request.get_json(silent=True) or {}
    try:
        feedback = sales_service.add_shift_feedback(user=g.current_user, note=data.get("note"))
        return jsonify({"data": feedback.to_dict()}), 201
    except ValueError as e:
        return jsonify({"error": str(e)}), status_for(e)


@sales_bp.get("/feedback")
@require_auth
@require_role("owner", "manager")
def list_feedback_route():
    try:
        rows = sales_service.list_shift_feedback(g.bakery_id, business_date=parse_iso_date(request.args.get("date")))
        return jsonify({"data": [r.to_dict() for r in rows]})
    except ValueError as e:
        return jsonify({"error": str(e)}), status_for(e)
