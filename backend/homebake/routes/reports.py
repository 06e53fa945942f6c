# Overview: Flask API routes for shift reports and their CSV/PDF exports.

from flask import Blueprint, Response, current_app, g, jsonify, request

from ..decorators import require_auth, require_role
from ..errors import error_body, status_for
from ..services import report_service


reports_bp = Blueprint("reports", __name__, url_prefix="/api/reports")


def _range_args():
    start, end = report_service.parse_range(request.args.get("start"), request.args.get("end"))
    return start, end, request.args.get("shift") or None


def _filename(kind: str, start, end, ext: str) -> str:
    return f"homebake-{kind}-{start.isoformat()}-to-{end.isoformat()}.{ext}"


@reports_bp.get("")
@require_auth
@require_role("owner", "manager")
def shift_report_route():
    """
    Query: start, end (YYYY-MM-DD, default: current business date), shift.
    """
    try:
        start, end, shift = _range_args()
        return jsonify({"data": report_service.build_report(g.bakery_id, start, end, shift)})
    except ValueError as e:
        return jsonify({"error": str(e)}), status_for(e)


@reports_bp.get("/export.csv")
@require_auth
@require_role("owner", "manager")
def report_csv_route():
    try:
        start, end, shift = _range_args()
        body = report_service.report_csv(report_service.build_report(g.bakery_id, start, end, shift))
        report_service.record_generated(g.current_user, "CSV", shift)
        return Response(
            body,
            mimetype="text/csv",
            headers={"Content-Disposition": f"attachment; filename={_filename('report', start, end, 'csv')}"},
        )
    except ValueError as e:
        return jsonify(error_body(e, "report", "export")), status_for(e)


@reports_bp.get("/export.pdf")
@require_auth
@require_role("owner", "manager")
def report_pdf_route():
    try:
        start, end, shift = _range_args()
        report = report_service.build_report(g.bakery_id, start, end, shift)
        body = report_service.report_pdf(report, bakery_name=report_service.bakery_name(g.bakery_id))
        report_service.record_generated(g.current_user, "PDF", shift)
        return Response(
            body,
            mimetype="application/pdf",
            headers={"Content-Disposition": f"attachment; filename={_filename('report', start, end, 'pdf')}"},
        )
    except ValueError as e:
        return jsonify(error_body(e, "report", "export")), status_for(e)
    except Exception:
        current_app.logger.exception("Failed to build PDF report")
        return jsonify({"error": "Internal server error"}), 500


@reports_bp.get("/production.csv")
@require_auth
@require_role("owner", "manager")
def production_csv_route():
    try:
        start, end, shift = _range_args()
        body = report_service.production_csv(g.bakery_id, start, end, shift)
        return Response(
            body,
            mimetype="text/csv",
            headers={"Content-Disposition": f"attachment; filename={_filename('production', start, end, 'csv')}"},
        )
    except ValueError as e:
        return jsonify(error_body(e, "report", "export")), status_for(e)
