# Overview: Flask API routes for sales; parses input and returns JSON responses.

# backend/khataplus/routes/sales.py
"""Sales API routes (tenant-scoped via X-Org-Id)"""

from flask import Blueprint, request, jsonify, g
from flask import current_app

from ..errors import CoreError
from ..services import sales_service
from ..validation import parse_date_value
from ..decorators import require_tenant


sales_bp = Blueprint("sales", __name__, url_prefix="/api/sales")


def _counterpart(data: dict) -> dict:
    return {
        "customer_id": data.get("customer_id"),
        "customer_name": data.get("customer_name"),
        "customer_phone": data.get("customer_phone"),
        "customer_gstin": data.get("customer_gstin"),
        "place_of_supply": data.get("place_of_supply"),
    }


@sales_bp.post("")
@require_tenant
def record_sale_route():
    """
    Record one sale line.

    Body: inventory_id, quantity, unit_price, payment_method
          [customer_id, customer_name, customer_phone, customer_gstin, place_of_supply]
    """
    try:
        data = request.get_json(silent=True) or {}
        if "inventory_id" not in data:
            return jsonify({"error": "inventory_id required"}), 400

        sale = sales_service.record_sale(
            g.org_id,
            data["inventory_id"],
            data.get("quantity"),
            data.get("unit_price"),
            data.get("payment_method"),
            created_by=g.profile_id,
            rebuild_report=True,
            **_counterpart(data),
        )

        return jsonify({"sale": sale.to_dict()}), 201

    except CoreError as e:
        return jsonify({"error": str(e), "details": e.details}), e.http_status
    except Exception:
        current_app.logger.exception("Failed to record sale")
        return jsonify({"error": "Internal server error"}), 500


@sales_bp.post("/batch")
@require_tenant
def record_sale_batch_route():
    """
    Record several lines as one invoice.

    Body: lines [{inventory_id, quantity, unit_price}], payment_method, [customer fields]
    """
    try:
        data = request.get_json(silent=True) or {}
        grouped = sales_service.record_sale_batch(
            g.org_id,
            data.get("lines"),
            data.get("payment_method"),
            created_by=g.profile_id,
            rebuild_report=True,
            **_counterpart(data),
        )

        return jsonify({"invoice": grouped}), 201

    except CoreError as e:
        return jsonify({"error": str(e), "details": e.details}), e.http_status
    except Exception:
        current_app.logger.exception("Failed to record sale batch")
        return jsonify({"error": "Internal server error"}), 500


@sales_bp.get("")
@require_tenant
def list_sales_route():
    """List sales by business date (?start=YYYY-MM-DD&end=YYYY-MM-DD)."""
    try:
        start = parse_date_value(request.args.get("start"), "start")
        end = parse_date_value(request.args.get("end"), "end")
        sales = sales_service.list_sales(g.org_id, start, end)
        return jsonify({"sales": [sale.to_dict() for sale in sales]}), 200

    except CoreError as e:
        return jsonify({"error": str(e), "details": e.details}), e.http_status
    except Exception:
        current_app.logger.exception("Failed to list sales")
        return jsonify({"error": "Internal server error"}), 500


@sales_bp.get("/<int:sale_id>")
@require_tenant
def get_sale_route(sale_id: int):
    try:
        sale = sales_service.get_sale(g.org_id, sale_id)
        return jsonify({"sale": sale.to_dict()}), 200

    except CoreError as e:
        return jsonify({"error": str(e), "details": e.details}), e.http_status


@sales_bp.patch("/<int:sale_id>")
@require_tenant
def update_sale_route(sale_id: int):
    """
    Change a sale's quantity within the edit window.

    Body: quantity
    """
    try:
        data = request.get_json(silent=True) or {}
        if "quantity" not in data:
            return jsonify({"error": "quantity required"}), 400

        sale = sales_service.update_sale(g.org_id, sale_id, data["quantity"], rebuild_report=True)

        return jsonify({"sale": sale.to_dict()}), 200

    except CoreError as e:
        return jsonify({"error": str(e), "details": e.details}), e.http_status
    except Exception:
        current_app.logger.exception("Failed to update sale")
        return jsonify({"error": "Internal server error"}), 500


@sales_bp.post("/<int:sale_id>/mark-paid")
@require_tenant
def mark_sale_paid_route(sale_id: int):
    try:
        sale = sales_service.mark_sale_paid(g.org_id, sale_id)
        return jsonify({"sale": sale.to_dict()}), 200

    except CoreError as e:
        return jsonify({"error": str(e), "details": e.details}), e.http_status
    except Exception:
        current_app.logger.exception("Failed to mark sale paid")
        return jsonify({"error": "Internal server error"}), 500


@sales_bp.get("/groups/<batch_id>")
@require_tenant
def get_grouped_sale_route(batch_id: str):
    """Invoice view: every line recorded under one batch_id."""
    try:
        return jsonify(sales_service.get_grouped_sale(g.org_id, batch_id)), 200

    except CoreError as e:
        return jsonify({"error": str(e), "details": e.details}), e.http_status
