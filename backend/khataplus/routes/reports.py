# Overview: Flask API routes for daily reports and GST return extracts.

from flask import Blueprint, request, jsonify, g
from flask import current_app

from ..errors import CoreError, ValidationError
from ..services import gst_report_service, reporting_service
from ..validation import parse_date_value
from ..decorators import require_tenant

reports_bp = Blueprint("reports", __name__, url_prefix="/api/reports")


def _range(required: bool):
    start = parse_date_value(request.args.get("start"), "start", required=required)
    end = parse_date_value(request.args.get("end"), "end", required=required)
    return start, end


@reports_bp.post("/daily/<report_date>/rebuild")
@require_tenant
def rebuild_daily_route(report_date: str):
    try:
        day = parse_date_value(report_date, "report_date", required=True)
        report = reporting_service.rebuild_daily_report(g.org_id, day)
        return jsonify({"report": report.to_dict()}), 200

    except CoreError as e:
        return jsonify({"error": str(e), "details": e.details}), e.http_status
    except Exception:
        current_app.logger.exception("Failed to rebuild daily report")
        return jsonify({"error": "Internal server error"}), 500


@reports_bp.get("/daily")
@require_tenant
def list_daily_route():
    try:
        start, end = _range(required=False)
        reports = reporting_service.list_daily_reports(g.org_id, start, end)
        return jsonify({"reports": [r.to_dict() for r in reports]}), 200

    except CoreError as e:
        return jsonify({"error": str(e), "details": e.details}), e.http_status


@reports_bp.get("/summary")
@require_tenant
def summary_route():
    try:
        start, end = _range(required=True)
        return jsonify({"summary": reporting_service.summarize(g.org_id, start, end)}), 200

    except CoreError as e:
        return jsonify({"error": str(e), "details": e.details}), e.http_status


@reports_bp.get("/gstr1/b2b")
@require_tenant
def gstr1_b2b_route():
    try:
        start, end = _range(required=True)
        return jsonify({"invoices": gst_report_service.get_gstr1_b2b(g.org_id, start, end)}), 200

    except CoreError as e:
        return jsonify({"error": str(e), "details": e.details}), e.http_status
    except Exception:
        current_app.logger.exception("Failed to build GSTR-1 B2B")
        return jsonify({"error": "Internal server error"}), 500


@reports_bp.get("/gstr1/json")
@require_tenant
def gstr1_json_route():
    """?month=1-12&year=YYYY"""
    try:
        try:
            month = int(request.args.get("month", ""))
            year = int(request.args.get("year", ""))
        except ValueError:
            raise ValidationError("month and year must be integers")
        return jsonify(gst_report_service.build_gstr1_json(g.org_id, month, year)), 200

    except CoreError as e:
        return jsonify({"error": str(e), "details": e.details}), e.http_status
    except Exception:
        current_app.logger.exception("Failed to build GSTR-1 JSON")
        return jsonify({"error": "Internal server error"}), 500


@reports_bp.get("/gstr3b")
@require_tenant
def gstr3b_route():
    try:
        start, end = _range(required=True)
        return jsonify({"stats": gst_report_service.get_gstr3b_stats(g.org_id, start, end)}), 200

    except CoreError as e:
        return jsonify({"error": str(e), "details": e.details}), e.http_status
    except Exception:
        current_app.logger.exception("Failed to build GSTR-3B stats")
        return jsonify({"error": "Internal server error"}), 500


@reports_bp.get("/hsn-summary")
@require_tenant
def hsn_summary_route():
    try:
        start, end = _range(required=True)
        return jsonify({"hsn": gst_report_service.get_hsn_summary(g.org_id, start, end)}), 200

    except CoreError as e:
        return jsonify({"error": str(e), "details": e.details}), e.http_status
