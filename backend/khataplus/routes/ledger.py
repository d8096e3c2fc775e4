# Overview: Flask API routes for customer (khata) and supplier ledgers; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify, g
from flask import current_app

from ..errors import CoreError
from ..money import money_str
from ..services import ledger_service
from ..validation import parse_datetime_value
from ..decorators import require_tenant

khata_bp = Blueprint("khata", __name__, url_prefix="/api/khata")
suppliers_bp = Blueprint("suppliers", __name__, url_prefix="/api/suppliers")


# ---------------------------------------------------------------------------
# Shared handlers (kind = "customer" | "supplier")
# ---------------------------------------------------------------------------

def _create_account(kind: str):
    try:
        data = request.get_json(silent=True) or {}
        if kind == "customer":
            account = ledger_service.create_customer(
                g.org_id, data.get("name"), phone=data.get("phone"), address=data.get("address"),
            )
        else:
            account = ledger_service.create_supplier(
                g.org_id,
                data.get("name"),
                phone=data.get("phone"),
                address=data.get("address"),
                gstin=data.get("gstin"),
            )
        return jsonify({kind: account.to_dict()}), 201

    except CoreError as e:
        return jsonify({"error": str(e), "details": e.details}), e.http_status
    except Exception:
        current_app.logger.exception("Failed to create %s", kind)
        return jsonify({"error": "Internal server error"}), 500


def _get_account(kind: str, account_id: int):
    try:
        account = ledger_service.get_account(kind, g.org_id, account_id)
        payload = account.to_dict()
        payload["balance"] = money_str(ledger_service.get_balance(kind, g.org_id, account_id))
        return jsonify({kind: payload}), 200

    except CoreError as e:
        return jsonify({"error": str(e), "details": e.details}), e.http_status


def _post_transaction(kind: str, account_id: int):
    try:
        data = request.get_json(silent=True) or {}
        txn = ledger_service.post_transaction(
            kind,
            g.org_id,
            account_id,
            data.get("type"),
            data.get("amount"),
            note=data.get("note"),
            invoice_no=data.get("invoice_no") if kind == "supplier" else None,
            created_by=g.profile_id,
        )
        balance = ledger_service.get_balance(kind, g.org_id, account_id)
        return jsonify({"transaction": txn.to_dict(), "balance": money_str(balance)}), 201

    except CoreError as e:
        return jsonify({"error": str(e), "details": e.details}), e.http_status
    except Exception:
        current_app.logger.exception("Failed to post %s ledger transaction", kind)
        return jsonify({"error": "Internal server error"}), 500


def _list_transactions(kind: str, account_id: int):
    try:
        rows = ledger_service.list_transactions(kind, g.org_id, account_id)
        return jsonify({"transactions": [row.to_dict() for row in rows]}), 200

    except CoreError as e:
        return jsonify({"error": str(e), "details": e.details}), e.http_status


def _statement(kind: str, account_id: int):
    try:
        start = parse_datetime_value(request.args.get("start"), "start")
        end = parse_datetime_value(request.args.get("end"), "end")
        statement = ledger_service.get_statement(kind, g.org_id, account_id, start, end)
        return jsonify({"statement": statement.to_dict()}), 200

    except CoreError as e:
        return jsonify({"error": str(e), "details": e.details}), e.http_status
    except Exception:
        current_app.logger.exception("Failed to build %s statement", kind)
        return jsonify({"error": "Internal server error"}), 500


def _reverse(kind: str, transaction_id: int):
    try:
        data = request.get_json(silent=True) or {}
        txn = ledger_service.reverse_transaction(kind, g.org_id, transaction_id, data.get("reason"))
        account_id = txn.customer_id if kind == "customer" else txn.supplier_id
        balance = ledger_service.get_balance(kind, g.org_id, account_id)
        return jsonify({"transaction": txn.to_dict(), "balance": money_str(balance)}), 200

    except CoreError as e:
        return jsonify({"error": str(e), "details": e.details}), e.http_status
    except Exception:
        current_app.logger.exception("Failed to reverse %s ledger transaction", kind)
        return jsonify({"error": "Internal server error"}), 500


# ---------------------------------------------------------------------------
# Khata (customers)
# ---------------------------------------------------------------------------

@khata_bp.get("/customers")
@require_tenant
def list_customers_route():
    customers = ledger_service.list_customers(g.org_id)
    return jsonify({"customers": [c.to_dict() for c in customers]}), 200


@khata_bp.post("/customers")
@require_tenant
def create_customer_route():
    return _create_account("customer")


@khata_bp.get("/customers/<int:customer_id>")
@require_tenant
def get_customer_route(customer_id: int):
    return _get_account("customer", customer_id)


@khata_bp.post("/customers/<int:customer_id>/transactions")
@require_tenant
def post_customer_transaction_route(customer_id: int):
    """
    Body: type ("credit" | "payment"), amount, [note]
    """
    return _post_transaction("customer", customer_id)


@khata_bp.get("/customers/<int:customer_id>/transactions")
@require_tenant
def list_customer_transactions_route(customer_id: int):
    return _list_transactions("customer", customer_id)


@khata_bp.get("/customers/<int:customer_id>/statement")
@require_tenant
def customer_statement_route(customer_id: int):
    """?start / ?end are ISO-8601 datetimes (inclusive)."""
    return _statement("customer", customer_id)


@khata_bp.post("/transactions/<int:transaction_id>/reverse")
@require_tenant
def reverse_customer_transaction_route(transaction_id: int):
    """Body: reason"""
    return _reverse("customer", transaction_id)


# ---------------------------------------------------------------------------
# Suppliers
# ---------------------------------------------------------------------------

@suppliers_bp.get("")
@require_tenant
def list_suppliers_route():
    suppliers = ledger_service.list_suppliers(g.org_id)
    return jsonify({"suppliers": [s.to_dict() for s in suppliers]}), 200


@suppliers_bp.post("")
@require_tenant
def create_supplier_route():
    return _create_account("supplier")


@suppliers_bp.get("/<int:supplier_id>")
@require_tenant
def get_supplier_route(supplier_id: int):
    return _get_account("supplier", supplier_id)


@suppliers_bp.post("/<int:supplier_id>/transactions")
@require_tenant
def post_supplier_transaction_route(supplier_id: int):
    """
    Body: type ("purchase" | "payment"), amount, [note, invoice_no]
    """
    return _post_transaction("supplier", supplier_id)


@suppliers_bp.get("/<int:supplier_id>/transactions")
@require_tenant
def list_supplier_transactions_route(supplier_id: int):
    return _list_transactions("supplier", supplier_id)


@suppliers_bp.get("/<int:supplier_id>/statement")
@require_tenant
def supplier_statement_route(supplier_id: int):
    return _statement("supplier", supplier_id)


@suppliers_bp.post("/transactions/<int:transaction_id>/reverse")
@require_tenant
def reverse_supplier_transaction_route(transaction_id: int):
    return _reverse("supplier", transaction_id)
