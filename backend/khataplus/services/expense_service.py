# Overview: Append-only shop expenses, reported under their expense_date.

from __future__ import annotations

from datetime import date
from typing import Optional

from ..errors import ValidationError
from ..extensions import db
from ..models import Expense
from ..money import quantize_money
from ..time_utils import parse_iso_date, utcnow
from ..validation import parse_decimal
from .concurrency import run_unit


def add_expense(
    org_id: int,
    category: str,
    amount,
    expense_date,
    *,
    description: Optional[str] = None,
    created_by: Optional[int] = None,
) -> Expense:
    if category is None or not str(category).strip():
        raise ValidationError("category is required")
    value = quantize_money(parse_decimal(amount, "amount", allow_zero=False))
    if value == 0:
        raise ValidationError("amount must be at least 0.01")

    if isinstance(expense_date, str):
        try:
            expense_date = parse_iso_date(expense_date)
        except ValueError:
            raise ValidationError("expense_date must be a YYYY-MM-DD date")
    if not isinstance(expense_date, date):
        raise ValidationError("expense_date is required")

    def _op():
        expense = Expense(
            org_id=org_id,
            category=str(category).strip(),
            amount=value,
            description=description,
            expense_date=expense_date,
            created_by=created_by,
            created_at=utcnow(),
        )
        db.session.add(expense)
        db.session.flush()
        return expense

    return run_unit(_op, commit=True)


def list_expenses(org_id: int, start: Optional[date] = None, end: Optional[date] = None) -> list[Expense]:
    query = db.session.query(Expense).filter(Expense.org_id == org_id)
    if start is not None:
        query = query.filter(Expense.expense_date >= start)
    if end is not None:
        query = query.filter(Expense.expense_date <= end)
    return query.order_by(Expense.expense_date.asc(), Expense.id.asc()).all()
