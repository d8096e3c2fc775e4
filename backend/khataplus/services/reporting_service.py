# Overview: Daily sales/expense rollups and ledger cross-checks.

"""
Daily report semantics

- A report row is derived data: rebuild_daily_report folds every Sale whose
  sale_date (business date in the org timezone) equals the report date and
  every Expense with that expense_date, then upserts one row per
  (org_id, report_date). Rebuilding twice yields the same row.
- gross = sum(total_amount); cost = sum(quantity * unit_cost);
  profit = sum(profit); cash = gross of Cash sales; online = gross of every
  other payment method; online_cost = cost of those sales.
"""

from __future__ import annotations

from collections import defaultdict
from datetime import date
from decimal import Decimal
from typing import Optional

from flask import current_app

from ..errors import BalanceInvariantViolation, ValidationError
from ..extensions import db
from ..models import Customer, DailyReport, Expense, Sale, Supplier
from ..money import ZERO, money_str, quantize_money
from . import ledger_service
from .concurrency import lock_for_update, run_unit
from .organization_service import get_organization

CASH_METHOD = "Cash"


def _fold_day(org_id: int, report_date: date) -> dict:
    totals = {
        "total_sale_gross": ZERO,
        "total_cost": ZERO,
        "total_profit": ZERO,
        "cash_sale": ZERO,
        "online_sale": ZERO,
        "online_cost": ZERO,
    }
    sale_count = 0

    sales = db.session.query(Sale).filter_by(org_id=org_id, sale_date=report_date).all()
    for sale in sales:
        gross = Decimal(sale.total_amount)
        cost = sale.quantity * Decimal(sale.unit_cost)
        totals["total_sale_gross"] += gross
        totals["total_cost"] += cost
        totals["total_profit"] += Decimal(sale.profit)
        if sale.payment_method == CASH_METHOD:
            totals["cash_sale"] += gross
        else:
            totals["online_sale"] += gross
            totals["online_cost"] += cost
        sale_count += 1

    by_category: dict[str, Decimal] = defaultdict(lambda: ZERO)
    expenses = db.session.query(Expense).filter_by(org_id=org_id, expense_date=report_date).all()
    for expense in expenses:
        by_category[expense.category] += Decimal(expense.amount)

    folded = {key: quantize_money(value) for key, value in totals.items()}
    folded["expenses"] = quantize_money(sum(by_category.values(), ZERO))
    folded["expense_breakdown"] = [
        {"category": category, "amount": money_str(amount)}
        for category, amount in sorted(by_category.items())
    ]
    folded["sale_count"] = sale_count
    return folded


def rebuild_daily_report(org_id: int, report_date: date, *, commit: bool = True) -> DailyReport:
    """Recompute and upsert the report for one business day."""
    if not isinstance(report_date, date):
        raise ValidationError("report_date must be a date")

    def _op():
        get_organization(org_id)
        folded = _fold_day(org_id, report_date)

        report = lock_for_update(
            db.session.query(DailyReport).filter_by(org_id=org_id, report_date=report_date)
        ).first()
        if report is None:
            report = DailyReport(org_id=org_id, report_date=report_date)
            db.session.add(report)

        for key, value in folded.items():
            setattr(report, key, value)
        db.session.flush()
        return report

    report = run_unit(_op, commit=commit)
    current_app.logger.info(
        "Daily report rebuilt: org_id=%s date=%s sales=%s", org_id, report_date.isoformat(), report.sale_count,
    )
    return report


def list_daily_reports(org_id: int, start: Optional[date] = None, end: Optional[date] = None) -> list[DailyReport]:
    query = db.session.query(DailyReport).filter(DailyReport.org_id == org_id)
    if start is not None:
        query = query.filter(DailyReport.report_date >= start)
    if end is not None:
        query = query.filter(DailyReport.report_date <= end)
    return query.order_by(DailyReport.report_date.asc()).all()


def summarize(org_id: int, start: date, end: date) -> dict:
    """Period totals over stored daily reports; net_profit = profit - expenses."""
    if start > end:
        raise ValidationError("start must not be after end")

    keys = ("total_sale_gross", "total_cost", "total_profit", "expenses", "cash_sale", "online_sale", "online_cost")
    totals = {key: ZERO for key in keys}
    sale_count = 0
    days = 0
    for report in list_daily_reports(org_id, start, end):
        for key in keys:
            totals[key] += Decimal(getattr(report, key))
        sale_count += report.sale_count
        days += 1

    summary = {key: money_str(value) for key, value in totals.items()}
    summary["net_profit"] = money_str(totals["total_profit"] - totals["expenses"])
    summary["sale_count"] = sale_count
    summary["days"] = days
    summary["start"] = start.isoformat()
    summary["end"] = end.isoformat()
    return summary


def verify_ledgers(org_id: int) -> dict:
    """Fold every customer and supplier ledger and compare with the cached balances."""
    checked = 0
    mismatches = []
    accounts = [("customer", c.id) for c in db.session.query(Customer.id).filter_by(org_id=org_id)]
    accounts += [("supplier", s.id) for s in db.session.query(Supplier.id).filter_by(org_id=org_id)]

    for kind, account_id in accounts:
        checked += 1
        try:
            ledger_service.verify_balance(kind, org_id, account_id)
        except BalanceInvariantViolation as exc:
            mismatches.append(exc.details)

    return {"org_id": org_id, "checked": checked, "mismatches": mismatches}
