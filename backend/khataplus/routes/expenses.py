# Overview: Flask API routes for shop expenses.

from flask import Blueprint, request, jsonify, g
from flask import current_app

from ..errors import CoreError
from ..services import expense_service, reporting_service
from ..validation import parse_date_value
from ..decorators import require_tenant

expenses_bp = Blueprint("expenses", __name__, url_prefix="/api/expenses")


@expenses_bp.post("")
@require_tenant
def add_expense_route():
    """Body: category, amount, expense_date (YYYY-MM-DD), [description]"""
    try:
        data = request.get_json(silent=True) or {}
        expense = expense_service.add_expense(
            g.org_id,
            data.get("category"),
            data.get("amount"),
            parse_date_value(data.get("expense_date"), "expense_date", required=True),
            description=data.get("description"),
            created_by=g.profile_id,
        )
        reporting_service.rebuild_daily_report(g.org_id, expense.expense_date)
        return jsonify({"expense": expense.to_dict()}), 201

    except CoreError as e:
        return jsonify({"error": str(e), "details": e.details}), e.http_status
    except Exception:
        current_app.logger.exception("Failed to add expense")
        return jsonify({"error": "Internal server error"}), 500


@expenses_bp.get("")
@require_tenant
def list_expenses_route():
    try:
        start = parse_date_value(request.args.get("start"), "start")
        end = parse_date_value(request.args.get("end"), "end")
        expenses = expense_service.list_expenses(g.org_id, start, end)
        return jsonify({"expenses": [e.to_dict() for e in expenses]}), 200

    except CoreError as e:
        return jsonify({"error": str(e), "details": e.details}), e.http_status
