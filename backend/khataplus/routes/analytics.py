# Overview: Flask API routes for stock health, reorder suggestions and insights.

from flask import Blueprint, request, jsonify, g
from flask import current_app

from ..errors import CoreError
from ..services import forecast_service
from ..validation import parse_datetime_value
from ..decorators import require_tenant

analytics_bp = Blueprint("analytics", __name__, url_prefix="/api/analytics")


@analytics_bp.get("/stock-health")
@require_tenant
def stock_health_route():
    """?as_of= ISO-8601 datetime; defaults to now."""
    try:
        as_of = parse_datetime_value(request.args.get("as_of"), "as_of")
        return jsonify({"items": forecast_service.get_stock_health(g.org_id, as_of=as_of)}), 200

    except CoreError as e:
        return jsonify({"error": str(e), "details": e.details}), e.http_status
    except Exception:
        current_app.logger.exception("Failed to compute stock health")
        return jsonify({"error": "Internal server error"}), 500


@analytics_bp.get("/reorder-suggestions")
@require_tenant
def reorder_suggestions_route():
    try:
        as_of = parse_datetime_value(request.args.get("as_of"), "as_of")
        return jsonify({"suggestions": forecast_service.get_reorder_suggestions(g.org_id, as_of=as_of)}), 200

    except CoreError as e:
        return jsonify({"error": str(e), "details": e.details}), e.http_status
    except Exception:
        current_app.logger.exception("Failed to compute reorder suggestions")
        return jsonify({"error": "Internal server error"}), 500


@analytics_bp.get("/insights")
@require_tenant
def insights_route():
    try:
        as_of = parse_datetime_value(request.args.get("as_of"), "as_of")
        return jsonify({"insights": forecast_service.get_stock_insights(g.org_id, as_of=as_of)}), 200

    except CoreError as e:
        return jsonify({"error": str(e), "details": e.details}), e.http_status
    except Exception:
        current_app.logger.exception("Failed to compute stock insights")
        return jsonify({"error": "Internal server error"}), 500
