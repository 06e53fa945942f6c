# Overview: Flask API routes for production batches; parses input and returns JSON responses.

"""
Batch Routes

Owners and managers run batches: create (optimistically spliced into the
cached active-batch list), update, complete, cancel, delete and clear.
Completing a batch with a yield records production for the batch's shift.
"""

from flask import Blueprint, current_app, g, jsonify, request

from ..cache import get_cache
from ..decorators import require_auth, require_role
from ..errors import error_body, status_for, success_message
from ..services import batch_service
from ..services.shift_service import current_shift, parse_shift
from homebake.time_utils import parse_iso_date


batches_bp = Blueprint("batches", __name__, url_prefix="/api/batches")


def _active_key() -> tuple:
    return ("batches", g.bakery_id, "active")


def _settle():
    get_cache().invalidate(_active_key(), ("dashboard", g.bakery_id))


@batches_bp.get("")
@require_auth
@require_role("owner", "manager")
def list_batches_route():
    try:
        batches = batch_service.list_batches(
            g.bakery_id,
            shift=request.args.get("shift"),
            status=request.args.get("status"),
            business_date=parse_iso_date(request.args.get("date")),
            bread_type_id=request.args.get("bread_type_id", type=int),
        )
        return jsonify({"data": [b.to_dict() for b in batches]})
    except ValueError as e:
        return jsonify({"error": str(e)}), status_for(e)


@batches_bp.get("/active")
@require_auth
@require_role("owner", "manager")
def active_batches_route():
    bakery_id = g.bakery_id
    data = get_cache().fetch(
        _active_key(),
        lambda: [b.to_dict() for b in batch_service.active_batches(bakery_id)],
    )
    return jsonify({"data": data})


@batches_bp.get("/stats")
@require_auth
@require_role("owner", "manager")
def batch_stats_route():
    return jsonify({"data": batch_service.batch_stats(g.bakery_id)})


@batches_bp.get("/next-number")
@require_auth
@require_role("owner", "manager")
def next_number_route():
    bread_type_id = request.args.get("bread_type_id", type=int)
    if not bread_type_id:
        return jsonify({"error": "bread_type_id is required"}), 400
    try:
        window = current_shift()
        shift = parse_shift(request.args.get("shift")) if request.args.get("shift") else window.shift
        number = batch_service.next_batch_number(g.bakery_id, bread_type_id, shift, window.business_date)
        return jsonify({"data": {"batch_number": number, "shift": shift, "business_date": window.business_date.isoformat()}})
    except ValueError as e:
        return jsonify({"error": str(e)}), status_for(e)


@batches_bp.get("/<int:batch_id>")
@require_auth
@require_role("owner", "manager")
def get_batch_route(batch_id: int):
    try:
        return jsonify({"data": batch_service.get_batch(g.bakery_id, batch_id).to_dict()})
    except ValueError as e:
        return jsonify({"error": str(e)}), status_for(e)


@batches_bp.post("")
@require_auth
@require_role("owner", "manager")
def create_batch_route():
    data = request.get_json(silent=True) or {}
    user = g.current_user

    def _create():
        batch = batch_service.create_batch(
            user=user,
            bread_type_id=data.get("bread_type_id"),
            planned_quantity=data.get("planned_quantity"),
            notes=data.get("notes"),
            shift=data.get("shift"),
        )
        return batch.to_dict()

    try:
        batch = get_cache().mutate(
            _active_key(),
            _create,
            optimistic_record={
                "bread_type_id": data.get("bread_type_id"),
                "planned_quantity": data.get("planned_quantity"),
                "status": "active",
            },
            invalidate=[("dashboard", g.bakery_id)],
        )
        return jsonify({
            "data": batch,
            "message": success_message("batch", "create", name=f"Batch #{batch['batch_number']}"),
        }), 201
    except ValueError as e:
        return jsonify(error_body(e, "batch", "create")), status_for(e)
    except Exception:
        current_app.logger.exception("Failed to create batch")
        return jsonify({"error": "Internal server error"}), 500


@batches_bp.patch("/<int:batch_id>")
@require_auth
@require_role("owner", "manager")
def update_batch_route(batch_id: int):
    data = request.get_json(silent=True) or {}
    try:
        batch = batch_service.update_batch(bakery_id=g.bakery_id, batch_id=batch_id, payload=data)
        _settle()
        return jsonify({"data": batch.to_dict(), "message": success_message("batch", "update")})
    except ValueError as e:
        return jsonify(error_body(e, "batch", "update")), status_for(e)
    except Exception:
        current_app.logger.exception("Failed to update batch %s", batch_id)
        return jsonify({"error": "Internal server error"}), 500


@batches_bp.post("/<int:batch_id>/complete")
@require_auth
@require_role("owner", "manager")
def complete_batch_route(batch_id: int):
    data = request.get_json(silent=True) or {}
    if data.get("actual_quantity") is None:
        return jsonify({"error": "actual_quantity is required"}), 400
    try:
        batch = batch_service.complete_batch(
            user=g.current_user,
            batch_id=batch_id,
            actual_quantity=data.get("actual_quantity"),
            notes=data.get("notes"),
        )
        _settle()
        return jsonify({
            "data": batch.to_dict(),
            "message": success_message("batch", "complete", name=f"Batch #{batch.batch_number}"),
        })
    except ValueError as e:
        return jsonify(error_body(e, "batch", "complete")), status_for(e)
    except Exception:
        current_app.logger.exception("Failed to complete batch %s", batch_id)
        return jsonify({"error": "Internal server error"}), 500


@batches_bp.post("/<int:batch_id>/cancel")
@require_auth
@require_role("owner", "manager")
def cancel_batch_route(batch_id: int):
    try:
        batch = batch_service.cancel_batch(user=g.current_user, batch_id=batch_id)
        _settle()
        return jsonify({
            "data": batch.to_dict(),
            "message": success_message("batch", "cancel", name=f"Batch #{batch.batch_number}"),
        })
    except ValueError as e:
        return jsonify(error_body(e, "batch", "cancel")), status_for(e)


@batches_bp.delete("/<int:batch_id>")
@require_auth
@require_role("owner", "manager")
def delete_batch_route(batch_id: int):
    try:
        batch_service.delete_batch(user=g.current_user, role=g.role, batch_id=batch_id)
        _settle()
        return jsonify({"data": {"id": batch_id}, "message": success_message("batch", "delete")})
    except ValueError as e:
        return jsonify(error_body(e, "batch", "delete")), status_for(e)


@batches_bp.post("/clear")
@require_auth
@require_role("owner", "manager")
def clear_batches_route():
    """Delete the non-completed batches of a shift (defaults to the current one)."""
    data = request.get_json(silent=True) or {}
    try:
        window = current_shift()
        shift = data.get("shift") or window.shift
        business_date = parse_iso_date(data.get("business_date")) or window.business_date
        deleted = batch_service.clear_batches(bakery_id=g.bakery_id, shift=shift, business_date=business_date)
        _settle()
        return jsonify({"data": {"deleted": deleted, "shift": shift, "business_date": business_date.isoformat()}})
    except ValueError as e:
        return jsonify(error_body(e, "batch", "delete")), status_for(e)
