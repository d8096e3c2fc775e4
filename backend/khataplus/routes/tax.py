# Overview: Flask API routes for GST computation and HSN lookup (no tenant data involved).

from flask import Blueprint, request, jsonify

from ..errors import CoreError
from ..money import money_str
from ..services import tax_service

tax_bp = Blueprint("tax", __name__, url_prefix="/api/tax")


@tax_bp.post("/compute")
def compute_tax_route():
    """
    Body: amount, [rate_percent | hsn_code], [mode: exclusive|inclusive],
          [jurisdiction: intra|inter]
    """
    try:
        data = request.get_json(silent=True) or {}
        split = tax_service.compute_tax(
            data.get("amount"),
            data.get("rate_percent"),
            mode=data.get("mode", "exclusive"),
            jurisdiction=data.get("jurisdiction", "intra"),
            hsn_code=data.get("hsn_code"),
        )
        return jsonify({"tax": split.to_dict()}), 200

    except CoreError as e:
        return jsonify({"error": str(e), "details": e.details}), e.http_status


@tax_bp.get("/hsn/<code>")
def hsn_lookup_route(code: str):
    try:
        entry = tax_service.lookup_hsn(code)
        entry["rate"] = money_str(entry["rate"])
        return jsonify({"hsn": entry}), 200

    except CoreError as e:
        return jsonify({"error": str(e), "details": e.details}), e.http_status
