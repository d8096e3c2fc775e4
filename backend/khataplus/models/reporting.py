from __future__ import annotations

from ..extensions import db
from ..money import money_str
from khataplus.time_utils import to_utc_z


class Expense(db.Model):
    """
    Shop running cost (rent, electricity, wages...). Append-only.
    expense_date is the business date it is reported under.
    """
    __tablename__ = "expenses"
    __table_args__ = (
        db.CheckConstraint("amount > 0", name="ck_expenses_amount_positive"),
        db.Index("ix_expenses_org_date", "org_id", "expense_date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    org_id = db.Column(db.Integer, db.ForeignKey("organizations.id"), nullable=False, index=True)

    category = db.Column(db.String(64), nullable=False)
    amount = db.Column(db.Numeric(14, 2), nullable=False)
    description = db.Column(db.String(500), nullable=True)
    expense_date = db.Column(db.Date, nullable=False)

    created_by = db.Column(db.Integer, db.ForeignKey("profiles.id"), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "org_id": self.org_id,
            "category": self.category,
            "amount": money_str(self.amount),
            "description": self.description,
            "expense_date": self.expense_date.isoformat(),
            "created_by": self.created_by,
            "created_at": to_utc_z(self.created_at),
        }


class DailyReport(db.Model):
    """
    Per-day rollup of sales and expenses.

    DERIVED: every column is recomputed from sales/expenses by
    reporting_service.rebuild_daily_report. One row per (org_id, report_date);
    rebuilding the same day any number of times yields the same row.
    """
    __tablename__ = "daily_reports"
    __table_args__ = (
        db.UniqueConstraint("org_id", "report_date", name="uq_daily_reports_org_date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    org_id = db.Column(db.Integer, db.ForeignKey("organizations.id"), nullable=False, index=True)
    report_date = db.Column(db.Date, nullable=False)

    total_sale_gross = db.Column(db.Numeric(14, 2), nullable=False, default=0)
    total_cost = db.Column(db.Numeric(14, 2), nullable=False, default=0)
    total_profit = db.Column(db.Numeric(14, 2), nullable=False, default=0)
    expenses = db.Column(db.Numeric(14, 2), nullable=False, default=0)
    expense_breakdown = db.Column(db.JSON, nullable=False, default=list)  # [{category, amount}]
    cash_sale = db.Column(db.Numeric(14, 2), nullable=False, default=0)
    online_sale = db.Column(db.Numeric(14, 2), nullable=False, default=0)
    online_cost = db.Column(db.Numeric(14, 2), nullable=False, default=0)
    sale_count = db.Column(db.Integer, nullable=False, default=0)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "org_id": self.org_id,
            "report_date": self.report_date.isoformat(),
            "total_sale_gross": money_str(self.total_sale_gross),
            "total_cost": money_str(self.total_cost),
            "total_profit": money_str(self.total_profit),
            "expenses": money_str(self.expenses),
            "expense_breakdown": list(self.expense_breakdown or []),
            "cash_sale": money_str(self.cash_sale),
            "online_sale": money_str(self.online_sale),
            "online_cost": money_str(self.online_cost),
            "sale_count": self.sale_count,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
