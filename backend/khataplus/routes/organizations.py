# Overview: Flask API routes for the current organization's settings.

from flask import Blueprint, request, jsonify, g
from flask import current_app

from ..errors import CoreError
from ..services import organization_service
from ..decorators import require_tenant

organizations_bp = Blueprint("organizations", __name__, url_prefix="/api/organization")


@organizations_bp.get("")
@require_tenant
def get_organization_route():
    return jsonify({"organization": g.org.to_dict()}), 200


@organizations_bp.patch("/settings")
@require_tenant
def update_settings_route():
    """
    Body: any of name, gstin, state_code, timezone, gst_enabled, gst_inclusive

    Applies to sales recorded after the change; recorded sales keep their tax.
    """
    try:
        org = organization_service.update_settings(g.org_id, request.get_json(silent=True) or {})
        return jsonify({"organization": org.to_dict()}), 200

    except CoreError as e:
        return jsonify({"error": str(e), "details": e.details}), e.http_status
    except Exception:
        current_app.logger.exception("Failed to update organization settings")
        return jsonify({"error": "Internal server error"}), 500
