# Overview: Pytest coverage for GSTR-1 B2B, GSTR-3B totals, HSN summary and the GSTR-1 JSON export.

from datetime import date, timedelta

import pytest
from conftest import SALE_TIME, BUYER_GSTIN_OTHER_STATE, SELLER_GSTIN, make_item
from khataplus.errors import ValidationError
from khataplus.services import gst_report_service, sales_service

START = date(2026, 3, 1)
END = date(2026, 3, 31)


@pytest.fixture
def month_of_sales(db_session, org_a, item_a):
    biscuits = make_item(db_session, org_a, sku="BIS-001", name="Biscuits", buy_price="8", gst="18", hsn_code="1905", stock=100)
    medicine = make_item(db_session, org_a, sku="MED-001", name="Cough syrup", buy_price="40", gst="12", hsn_code="3004", stock=20)

    # B2B invoice to a Karnataka buyer, two rates on one invoice
    b2b = sales_service.record_sale_batch(
        org_a.id,
        [
            {"inventory_id": item_a.id, "quantity": 2, "unit_price": "100"},
            {"inventory_id": medicine.id, "quantity": 1, "unit_price": "50"},
        ],
        "Card",
        customer_name="Bengaluru Traders",
        customer_gstin=BUYER_GSTIN_OTHER_STATE,
        now=SALE_TIME,
    )
    # Walk-in B2C sales
    sales_service.record_sale(org_a.id, biscuits.id, 10, "10", "Cash", now=SALE_TIME)
    sales_service.record_sale(org_a.id, item_a.id, 1, "100", "UPI", now=SALE_TIME + timedelta(days=2))
    # Next month; outside the period
    sales_service.record_sale(org_a.id, biscuits.id, 1, "10", "Cash", now=SALE_TIME + timedelta(days=40))
    return b2b


class TestGSTR1B2B:

    def test_one_row_per_invoice(self, db_session, org_a, month_of_sales):
        invoices = gst_report_service.get_gstr1_b2b(org_a.id, START, END)

        assert len(invoices) == 1
        invoice = invoices[0]
        assert invoice["invoice_no"] == month_of_sales["invoiceNo"] == "INV-000001"
        assert invoice["gstin"] == BUYER_GSTIN_OTHER_STATE
        assert invoice["place_of_supply"] == "29"
        assert invoice["taxable_value"] == "250.00"
        assert invoice["igst"] == "42.00"
        assert invoice["cgst"] == "0.00"
        assert invoice["total_value"] == "292.00"
        assert invoice["rates"] == ["12.00", "18.00"]

    def test_inverted_range(self, db_session, org_a):
        with pytest.raises(ValidationError):
            gst_report_service.get_gstr1_b2b(org_a.id, END, START)


class TestGSTR3B:

    def test_totals_cover_b2b_and_b2c(self, db_session, org_a, month_of_sales):
        stats = gst_report_service.get_gstr3b_stats(org_a.id, START, END)

        assert stats["total_taxable"] == "450.00"
        assert stats["total_igst"] == "42.00"
        assert stats["total_cgst"] == "18.00"
        assert stats["total_sgst"] == "18.00"
        assert stats["total_tax"] == "78.00"
        assert stats["invoice_count"] == 3


class TestHSNSummary:

    def test_grouped_by_code_and_rate(self, db_session, org_a, month_of_sales):
        summary = {row["hsn_code"]: row for row in gst_report_service.get_hsn_summary(org_a.id, START, END)}

        assert set(summary) == {"1905", "3004", "8517"}
        assert summary["8517"]["quantity"] == 3
        assert summary["8517"]["taxable_value"] == "300.00"
        assert summary["1905"]["cgst"] == "9.00"
        assert summary["3004"]["rate"] == "12.00"


class TestGSTR1JSON:

    def test_export_shape(self, db_session, org_a, month_of_sales):
        payload = gst_report_service.build_gstr1_json(org_a.id, 3, 2026)

        assert payload["gstin"] == SELLER_GSTIN
        assert payload["fp"] == "032026"

        assert len(payload["b2b"]) == 1
        party = payload["b2b"][0]
        assert party["ctin"] == BUYER_GSTIN_OTHER_STATE
        invoice = party["inv"][0]
        assert invoice["inum"] == month_of_sales["invoiceNo"]
        assert invoice["idt"] == "01-03-2026"
        assert invoice["val"] == 292.0
        assert invoice["pos"] == "29"
        assert [itm["itm_det"]["rt"] for itm in invoice["itms"]] == [18.0, 12.0]

        assert len(payload["b2cs"]) == 1
        assert payload["b2cs"][0]["sply_ty"] == "INTRA"
        assert payload["b2cs"][0]["txval"] == 200.0

        assert len(payload["hsn"]["data"]) == 3

    def test_needs_seller_gstin(self, db_session, org_b):
        with pytest.raises(ValidationError):
            gst_report_service.build_gstr1_json(org_b.id, 3, 2026)

    @pytest.mark.parametrize("month,year", [(0, 2026), (13, 2026), (3, 2016)])
    def test_bad_period(self, db_session, org_a, month, year):
        with pytest.raises(ValidationError):
            gst_report_service.build_gstr1_json(org_a.id, month, year)


class TestInvoiceNumbers:

    def test_both_extracts_name_the_invoice_alike(self, db_session, org_a, month_of_sales):
        listed = [row["invoice_no"] for row in gst_report_service.get_gstr1_b2b(org_a.id, START, END)]
        filed = [inv["inum"] for party in gst_report_service.build_gstr1_json(org_a.id, 3, 2026)["b2b"] for inv in party["inv"]]

        assert listed == filed == [month_of_sales["invoiceNo"]]
        assert all(len(number) <= 16 for number in filed)
