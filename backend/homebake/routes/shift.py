# Overview: Current shift endpoint used by every client for headers and defaults.

from flask import Blueprint, current_app, jsonify

from ..services.shift_service import current_policy, current_shift


shift_bp = Blueprint("shift", __name__, url_prefix="/api/shift")


@shift_bp.get("/current")
def current_shift_route():
    window = current_shift()
    policy = current_policy()
    return jsonify({
        "data": {
            **window.to_dict(),
            "policy": {
                "utc_offset_hours": policy.utc_offset_hours,
                "morning_start_hour": policy.morning_start_hour,
                "morning_end_hour": policy.morning_end_hour,
            },
            "poll_seconds": current_app.config.get("DASHBOARD_POLL_SECONDS", 30),
        }
    })
