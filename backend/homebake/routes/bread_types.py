# Overview: Flask API routes for the bread type catalog.

from flask import Blueprint, current_app, g, jsonify, request

from ..cache import get_cache
from ..decorators import require_auth, require_role
from ..errors import error_body, status_for, success_message
from ..services import bread_type_service


bread_types_bp = Blueprint("bread_types", __name__, url_prefix="/api/bread-types")


@bread_types_bp.get("")
@require_auth
def list_bread_types_route():
    bread_types = bread_type_service.list_bread_types(g.bakery_id)
    return jsonify({"data": [b.to_dict() for b in bread_types]})


@bread_types_bp.get("/<int:bread_type_id>")
@require_auth
def get_bread_type_route(bread_type_id: int):
    try:
        return jsonify({"data": bread_type_service.get_bread_type(g.bakery_id, bread_type_id).to_dict()})
    except ValueError as e:
        return jsonify({"error": str(e)}), status_for(e)


@bread_types_bp.post("")
@require_auth
@require_role("owner")
def create_bread_type_route():
    data = request.get_json(silent=True) or {}
    try:
        bread_type = bread_type_service.create_bread_type(
            bakery_id=g.bakery_id,
            user_id=g.current_user.id,
            payload=data,
        )
        get_cache().invalidate(("dashboard", g.bakery_id))
        return jsonify({
            "data": bread_type.to_dict(),
            "message": success_message("bread_type", "create", name=bread_type.name),
        }), 201
    except ValueError as e:
        return jsonify(error_body(e, "bread_type", "create", name=data.get("name"))), status_for(e)
    except Exception:
        current_app.logger.exception("Failed to create bread type")
        return jsonify({"error": "Internal server error"}), 500


@bread_types_bp.put("/<int:bread_type_id>")
@bread_types_bp.patch("/<int:bread_type_id>")
@require_auth
@require_role("owner")
def update_bread_type_route(bread_type_id: int):
    data = request.get_json(silent=True) or {}
    try:
        bread_type = bread_type_service.update_bread_type(
            bakery_id=g.bakery_id,
            bread_type_id=bread_type_id,
            payload=data,
        )
        get_cache().invalidate(("dashboard", g.bakery_id))
        return jsonify({
            "data": bread_type.to_dict(),
            "message": success_message("bread_type", "update", name=bread_type.name),
        })
    except ValueError as e:
        return jsonify(error_body(e, "bread_type", "update")), status_for(e)
    except Exception:
        current_app.logger.exception("Failed to update bread type %s", bread_type_id)
        return jsonify({"error": "Internal server error"}), 500


@bread_types_bp.delete("/<int:bread_type_id>")
@require_auth
@require_role("owner")
def delete_bread_type_route(bread_type_id: int):
    try:
        bread_type = bread_type_service.delete_bread_type(bakery_id=g.bakery_id, bread_type_id=bread_type_id)
        get_cache().invalidate(("dashboard", g.bakery_id))
        return jsonify({
            "data": {"id": bread_type_id},
            "message": success_message("bread_type", "delete", name=bread_type.name),
        })
    except ValueError as e:
        return jsonify(error_body(e, "bread_type", "delete")), status_for(e)
