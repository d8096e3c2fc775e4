# Overview: Flask API routes for inventory items; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify, g
from flask import current_app

from ..errors import CoreError
from ..services import inventory_service
from ..decorators import require_tenant

inventory_bp = Blueprint("inventory", __name__, url_prefix="/api/inventory")


@inventory_bp.get("")
@require_tenant
def list_items_route():
    """?q= filters by name or SKU."""
    items = inventory_service.list_items(g.org_id, search=request.args.get("q"))
    return jsonify({"items": [item.to_dict() for item in items]}), 200


@inventory_bp.get("/low-stock")
@require_tenant
def low_stock_route():
    items = inventory_service.list_low_stock(g.org_id)
    return jsonify({"items": [item.to_dict() for item in items]}), 200


@inventory_bp.post("")
@require_tenant
def create_item_route():
    """
    Body: sku, name, buy_price, [sell_price, gst_percentage, hsn_code, stock, min_stock]

    gst_percentage defaults to the HSN table rate when hsn_code is given.
    """
    try:
        item = inventory_service.create_item(g.org_id, request.get_json(silent=True))
        return jsonify({"item": item.to_dict()}), 201

    except CoreError as e:
        return jsonify({"error": str(e), "details": e.details}), e.http_status
    except Exception:
        current_app.logger.exception("Failed to create inventory item")
        return jsonify({"error": "Internal server error"}), 500


@inventory_bp.get("/<int:item_id>")
@require_tenant
def get_item_route(item_id: int):
    try:
        item = inventory_service.get_item(g.org_id, item_id)
        return jsonify({"item": item.to_dict()}), 200

    except CoreError as e:
        return jsonify({"error": str(e), "details": e.details}), e.http_status


@inventory_bp.patch("/<int:item_id>")
@require_tenant
def update_item_route(item_id: int):
    try:
        item = inventory_service.update_item(g.org_id, item_id, request.get_json(silent=True))
        return jsonify({"item": item.to_dict()}), 200

    except CoreError as e:
        return jsonify({"error": str(e), "details": e.details}), e.http_status
    except Exception:
        current_app.logger.exception("Failed to update inventory item")
        return jsonify({"error": "Internal server error"}), 500


@inventory_bp.post("/<int:item_id>/restock")
@require_tenant
def restock_route(item_id: int):
    """Body: quantity"""
    try:
        data = request.get_json(silent=True) or {}
        item = inventory_service.restock(g.org_id, item_id, data.get("quantity"))
        return jsonify({"item": item.to_dict()}), 200

    except CoreError as e:
        return jsonify({"error": str(e), "details": e.details}), e.http_status
    except Exception:
        current_app.logger.exception("Failed to restock inventory item")
        return jsonify({"error": "Internal server error"}), 500
