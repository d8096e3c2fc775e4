# Overview: Pytest coverage for stock velocity, reorder suggestions and stock insights.

from datetime import datetime, timedelta
from decimal import Decimal

import pytest
from conftest import make_item
from khataplus.services import forecast_service, sales_service
from khataplus.services.forecast_service import (
    ForecastSettings,
    ItemHealth,
    classify,
    daily_velocity,
    days_of_cover,
    rank_suggestions,
    suggested_quantity,
)

AS_OF = datetime(2026, 3, 15, 12, 0, 0)
SETTINGS = ForecastSettings()


class TestPureHelpers:

    def test_velocity(self):
        assert daily_velocity(30, 30) == Decimal("1")
        assert daily_velocity(0, 30) == Decimal("0")

    def test_velocity_needs_positive_window(self):
        with pytest.raises(ValueError):
            daily_velocity(5, 0)

    def test_cover_is_none_without_sales(self):
        assert days_of_cover(25, Decimal("0")) is None

    def test_cover(self):
        assert days_of_cover(10, Decimal("2")) == Decimal("5")

    @pytest.mark.parametrize("cover,status", [
        (None, "dormant"),
        (Decimal("0"), "critical"),
        (Decimal("2.9"), "critical"),
        (Decimal("3"), "low"),
        (Decimal("6.9"), "low"),
        (Decimal("7"), "healthy"),
        (Decimal("56"), "healthy"),
        (Decimal("56.1"), "overstocked"),
    ])
    def test_classify(self, cover, status):
        assert classify(cover, SETTINGS) == status

    def test_suggestion_rounds_up(self):
        assert suggested_quantity(Decimal("0.5"), 3, 14) == 4

    def test_suggestion_never_negative(self):
        assert suggested_quantity(Decimal("1"), 500, 14) == 0
        assert suggested_quantity(Decimal("0"), 0, 14) == 0

    def test_ranking(self):
        def row(item_id, name, velocity, cover):
            return ItemHealth(item_id, f"SKU{item_id}", name, 0, 0, Decimal(velocity),
                              None if cover is None else Decimal(cover), "", None)

        ranked = rank_suggestions([
            row(1, "Atta", "1", "5"),
            row(2, "Dal", "3", "2"),
            row(3, "Ghee", "0", None),
            row(4, "Besan", "2", "5"),
            row(5, "Aloo", "2", "5"),
        ])
        assert [r.inventory_id for r in ranked] == [2, 5, 4, 1]


@pytest.fixture
def stocked(db_session, org_a):
    """Three items with 30-day histories: a fast mover, a steady one, and dead stock."""
    hot = make_item(db_session, org_a, sku="HOT", name="Milk packet", buy_price="25", gst="0", stock=62, hsn_code="0401")
    steady = make_item(db_session, org_a, sku="STD", name="Rice 5kg", buy_price="300", gst="0", stock=40, hsn_code="1006")
    dead = make_item(db_session, org_a, sku="DED", name="Umbrella", buy_price="150", gst="12", stock=5, hsn_code=None)

    sold_at = AS_OF - timedelta(days=1)
    sales_service.record_sale(org_a.id, hot.id, 60, "30", "Cash", now=sold_at)
    sales_service.record_sale(org_a.id, steady.id, 30, "350", "UPI", now=sold_at)
    # Outside the window; must not count
    sales_service.record_sale(org_a.id, dead.id, 1, "200", "Cash", now=AS_OF - timedelta(days=45))
    return hot, steady, dead


class TestStockHealth:

    def test_health_rows(self, db_session, org_a, stocked):
        hot, steady, dead = stocked
        rows = {row["inventory_id"]: row for row in forecast_service.get_stock_health(org_a.id, as_of=AS_OF)}

        assert rows[hot.id]["daily_velocity"] == "2.0000"
        assert rows[hot.id]["days_of_cover"] == "1.0"
        assert rows[hot.id]["status"] == "critical"
        assert rows[hot.id]["last_sold_on"] == "2026-03-14"

        assert rows[steady.id]["status"] == "healthy"
        assert rows[steady.id]["days_of_cover"] == "10.0"

        assert rows[dead.id]["status"] == "dormant"
        assert rows[dead.id]["days_of_cover"] is None
        assert rows[dead.id]["units_sold"] == 0

    def test_reorder_suggestions(self, db_session, org_a, stocked):
        hot, steady, dead = stocked
        suggestions = forecast_service.get_reorder_suggestions(org_a.id, as_of=AS_OF)

        assert [s["inventory_id"] for s in suggestions] == [hot.id, steady.id]
        assert suggestions[0]["suggested_qty"] == 26
        assert suggestions[0]["urgency"] == "critical"
        assert suggestions[1]["suggested_qty"] == 4
        assert all(s["suggested_qty"] > 0 for s in suggestions)

    def test_insights(self, db_session, org_a, stocked):
        hot, steady, dead = stocked
        insights = {i["kind"]: i for i in forecast_service.get_stock_insights(org_a.id, as_of=AS_OF)}

        assert insights["reorder_now"]["count"] == 1
        assert insights["reorder_now"]["items"][0]["inventory_id"] == hot.id
        assert insights["dormant_stock"]["items"][0]["inventory_id"] == dead.id
        assert "running_low" not in insights
        assert insights["top_movers"]["message"] == "Your top 2 items drive 100% of your sales volume."

    def test_empty_shop_has_no_insights(self, db_session, org_b):
        assert forecast_service.get_stock_insights(org_b.id, as_of=AS_OF) == []
        assert forecast_service.get_reorder_suggestions(org_b.id, as_of=AS_OF) == []

    def test_other_org_sales_do_not_leak(self, db_session, org_a, org_b, stocked):
        rows = forecast_service.get_stock_health(org_b.id, as_of=AS_OF)
        assert rows == []
