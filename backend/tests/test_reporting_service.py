# Overview: Pytest coverage for daily report rebuilds, period summaries, expenses and ledger audits.

from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy import update
from conftest import SALE_TIME
from khataplus.errors import InvalidAmountError, NotFoundError, ValidationError
from khataplus.models import Customer, DailyReport
from khataplus.services import expense_service, ledger_service, reporting_service, sales_service

DAY = date(2026, 3, 1)


@pytest.fixture
def trading_day(db_session, org_a, item_a):
    """One cash and one UPI sale plus two expenses on DAY."""
    sales_service.record_sale(org_a.id, item_a.id, 2, "100", "Cash", now=SALE_TIME)
    sales_service.record_sale(org_a.id, item_a.id, 1, "100", "UPI", now=SALE_TIME)
    expense_service.add_expense(org_a.id, "Rent", "40", DAY)
    expense_service.add_expense(org_a.id, "Electricity", "10.00", "2026-03-01")


class TestDailyReport:

    def test_rebuild_folds_sales_and_expenses(self, db_session, org_a, trading_day):
        report = reporting_service.rebuild_daily_report(org_a.id, DAY)

        assert report.sale_count == 2
        assert report.total_sale_gross == Decimal("354.00")
        assert report.total_cost == Decimal("240.00")
        assert report.total_profit == Decimal("60.00")
        assert report.cash_sale == Decimal("236.00")
        assert report.online_sale == Decimal("118.00")
        assert report.online_cost == Decimal("80.00")
        assert report.expenses == Decimal("50.00")
        assert report.expense_breakdown == [
            {"category": "Electricity", "amount": "10.00"},
            {"category": "Rent", "amount": "40.00"},
        ]

    def test_rebuild_is_idempotent(self, db_session, org_a, trading_day):
        first = reporting_service.rebuild_daily_report(org_a.id, DAY).to_dict()
        second = reporting_service.rebuild_daily_report(org_a.id, DAY).to_dict()

        assert db_session.query(DailyReport).filter_by(org_id=org_a.id).count() == 1
        for key in ("total_sale_gross", "total_cost", "total_profit", "expenses", "sale_count", "expense_breakdown"):
            assert first[key] == second[key]

    def test_rebuild_picks_up_new_sales(self, db_session, org_a, item_a, trading_day):
        reporting_service.rebuild_daily_report(org_a.id, DAY)
        sales_service.record_sale(org_a.id, item_a.id, 1, "100", "Card", now=SALE_TIME)

        report = reporting_service.rebuild_daily_report(org_a.id, DAY)
        assert report.sale_count == 3
        assert report.online_sale == Decimal("236.00")

    def test_empty_day(self, db_session, org_a):
        report = reporting_service.rebuild_daily_report(org_a.id, date(2026, 1, 1))
        assert report.sale_count == 0
        assert report.total_sale_gross == Decimal("0.00")
        assert report.expense_breakdown == []

    def test_unknown_org(self, db_session):
        with pytest.raises(NotFoundError):
            reporting_service.rebuild_daily_report(424242, DAY)

    def test_other_org_sales_excluded(self, db_session, org_a, org_b, trading_day):
        report = reporting_service.rebuild_daily_report(org_b.id, DAY)
        assert report.sale_count == 0


class TestSummary:

    def test_net_profit(self, db_session, org_a, trading_day):
        reporting_service.rebuild_daily_report(org_a.id, DAY)
        summary = reporting_service.summarize(org_a.id, date(2026, 3, 1), date(2026, 3, 31))

        assert summary["total_profit"] == "60.00"
        assert summary["expenses"] == "50.00"
        assert summary["net_profit"] == "10.00"
        assert summary["sale_count"] == 2
        assert summary["days"] == 1

    def test_inverted_range(self, db_session, org_a):
        with pytest.raises(ValidationError):
            reporting_service.summarize(org_a.id, date(2026, 3, 2), date(2026, 3, 1))


class TestExpenses:

    def test_amount_must_be_positive(self, db_session, org_a):
        with pytest.raises(InvalidAmountError):
            expense_service.add_expense(org_a.id, "Rent", "0", DAY)

    def test_category_required(self, db_session, org_a):
        with pytest.raises(ValidationError):
            expense_service.add_expense(org_a.id, " ", "10", DAY)

    def test_bad_date(self, db_session, org_a):
        with pytest.raises(ValidationError):
            expense_service.add_expense(org_a.id, "Rent", "10", "01/03/2026")

    def test_list_by_range(self, db_session, org_a, trading_day):
        expense_service.add_expense(org_a.id, "Tea", "15", date(2026, 3, 5))
        rows = expense_service.list_expenses(org_a.id, date(2026, 3, 2), date(2026, 3, 31))
        assert [e.category for e in rows] == ["Tea"]


class TestLedgerAudit:

    def test_consistent_ledgers(self, db_session, org_a, customer_a, supplier_a):
        ledger_service.post_transaction("customer", org_a.id, customer_a.id, "credit", "500")
        ledger_service.post_transaction("supplier", org_a.id, supplier_a.id, "purchase", "900")

        result = reporting_service.verify_ledgers(org_a.id)
        assert result["checked"] == 2
        assert result["mismatches"] == []

    def test_drift_is_reported(self, db_session, org_a, customer_a):
        ledger_service.post_transaction("customer", org_a.id, customer_a.id, "credit", "500")
        db_session.execute(update(Customer).where(Customer.id == customer_a.id).values(balance=Decimal("1.00")))
        db_session.commit()

        result = reporting_service.verify_ledgers(org_a.id)
        assert len(result["mismatches"]) == 1
        assert result["mismatches"][0]["account_id"] == customer_a.id
