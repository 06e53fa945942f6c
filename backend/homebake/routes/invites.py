# Overview: Flask API routes for QR staff invitations (owner only).

from flask import Blueprint, Response, current_app, g, jsonify, request

from ..decorators import require_auth, require_role
from ..errors import error_body, status_for, success_message
from ..services import invite_service


invites_bp = Blueprint("invites", __name__, url_prefix="/api/invites")


def _invite_payload(invite) -> dict:
    payload = invite.to_dict()
    payload["url"] = invite_service.invite_url(invite.token)
    payload["qr_url"] = f"/api/invites/{invite.id}/qr.png"
    return payload


@invites_bp.post("")
@require_auth
@require_role("owner")
def create_invite_route():
    data = request.get_json(silent=True) or {}
    try:
        invite = invite_service.create_invite(owner=g.current_user, role=data.get("role"))
        return jsonify({
            "data": _invite_payload(invite),
            "message": success_message("invite", "create"),
        }), 201
    except ValueError as e:
        return jsonify(error_body(e, "invite", "create")), status_for(e)
    except Exception:
        current_app.logger.exception("Failed to create invite")
        return jsonify({"error": "Internal server error"}), 500


@invites_bp.get("")
@require_auth
@require_role("owner")
def list_invites_route():
    invites = invite_service.list_pending_invites(g.bakery_id)
    return jsonify({"data": [_invite_payload(i) for i in invites]})


@invites_bp.get("/<int:invite_id>/qr.png")
@require_auth
@require_role("owner")
def invite_qr_route(invite_id: int):
    invite = next((i for i in invite_service.list_pending_invites(g.bakery_id) if i.id == invite_id), None)
    if not invite:
        return jsonify({"error": "Invite not found or expired"}), 404
    png = invite_service.qr_png(invite_service.invite_url(invite.token))
    return Response(png, mimetype="image/png", headers={"Cache-Control": "no-store"})


@invites_bp.delete("/<int:invite_id>")
@require_auth
@require_role("owner")
def revoke_invite_route(invite_id: int):
    try:
        invite_service.revoke_invite(bakery_id=g.bakery_id, invite_id=invite_id)
        return jsonify({"data": {"id": invite_id}, "message": success_message("invite", "delete")})
    except ValueError as e:
        return jsonify(error_body(e, "invite", "delete")), status_for(e)
