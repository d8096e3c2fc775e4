# Overview: GST return extracts (GSTR-1 B2B, GSTR-3B totals, HSN summary, GSTR-1 JSON) read from recorded sales.

"""
Every figure here is a fold of the tax split frozen on each Sale row; nothing
is recomputed from current item rates or org settings. Periods are inclusive
business-date ranges (Sale.sale_date).

Invoices are sale batches: lines sharing an invoice_no (one per batch_id,
sequential per org) form one invoice, and that number is what every extract
reports. A sale with a customer GSTIN is B2B; every other sale is B2C.
"""

from __future__ import annotations

import calendar
from collections import OrderedDict
from datetime import date
from decimal import Decimal
from typing import Optional

from ..errors import ValidationError
from ..extensions import db
from ..models import Sale
from ..money import ZERO, money_str, quantize_money
from .organization_service import get_organization


def _check_range(start: date, end: date) -> None:
    if start is None or end is None:
        raise ValidationError("start and end are required")
    if start > end:
        raise ValidationError("start must not be after end")


def _sales(org_id: int, start: date, end: date, *, b2b: Optional[bool] = None) -> list[Sale]:
    query = db.session.query(Sale).filter(
        Sale.org_id == org_id,
        Sale.sale_date >= start,
        Sale.sale_date <= end,
    )
    if b2b is True:
        query = query.filter(Sale.customer_gstin.isnot(None))
    elif b2b is False:
        query = query.filter(Sale.customer_gstin.is_(None))
    return query.order_by(Sale.sale_date.asc(), Sale.id.asc()).all()


def _group_invoices(sales: list[Sale]) -> "OrderedDict[str, list[Sale]]":
    invoices: OrderedDict[str, list[Sale]] = OrderedDict()
    for sale in sales:
        invoices.setdefault(sale.invoice_no, []).append(sale)
    return invoices


def _sum(lines: list[Sale], attr: str) -> Decimal:
    return quantize_money(sum((Decimal(getattr(line, attr)) for line in lines), ZERO))


def get_gstr1_b2b(org_id: int, start: date, end: date) -> list[dict]:
    """B2B invoices (sales to GSTIN holders) in the period, one entry per invoice."""
    _check_range(start, end)
    rows = []
    for invoice_no, lines in _group_invoices(_sales(org_id, start, end, b2b=True)).items():
        first = lines[0]
        rows.append({
            "gstin": first.customer_gstin,
            "customer_name": first.customer_name,
            "invoice_no": invoice_no,
            "invoice_date": first.sale_date.isoformat(),
            "place_of_supply": first.place_of_supply,
            "taxable_value": money_str(_sum(lines, "taxable_amount")),
            "cgst": money_str(_sum(lines, "cgst_amount")),
            "sgst": money_str(_sum(lines, "sgst_amount")),
            "igst": money_str(_sum(lines, "igst_amount")),
            "total_value": money_str(_sum(lines, "total_amount")),
            "rates": sorted({money_str(line.gst_rate) for line in lines}, key=Decimal),
        })
    return rows


def get_gstr3b_stats(org_id: int, start: date, end: date) -> dict:
    """Outward supply totals for the period across B2B and B2C sales."""
    _check_range(start, end)
    sales = _sales(org_id, start, end)
    return {
        "total_taxable": money_str(_sum(sales, "taxable_amount")),
        "total_tax": money_str(_sum(sales, "gst_amount")),
        "total_cgst": money_str(_sum(sales, "cgst_amount")),
        "total_sgst": money_str(_sum(sales, "sgst_amount")),
        "total_igst": money_str(_sum(sales, "igst_amount")),
        "invoice_count": len({sale.invoice_no for sale in sales}),
    }


def _hsn_groups(sales: list[Sale]) -> list[tuple[tuple[str, Decimal], list[Sale]]]:
    groups: dict[tuple[str, Decimal], list[Sale]] = {}
    for sale in sales:
        key = (sale.hsn_code or "", quantize_money(sale.gst_rate))
        groups.setdefault(key, []).append(sale)
    return sorted(groups.items(), key=lambda kv: (kv[0][0], kv[0][1]))


def get_hsn_summary(org_id: int, start: date, end: date) -> list[dict]:
    """Quantity and tax per (HSN code, rate); sales without an HSN code report under ""."""
    _check_range(start, end)
    summary = []
    for (hsn_code, rate), lines in _hsn_groups(_sales(org_id, start, end)):
        summary.append({
            "hsn_code": hsn_code,
            "rate": money_str(rate),
            "quantity": sum(line.quantity for line in lines),
            "taxable_value": money_str(_sum(lines, "taxable_amount")),
            "cgst": money_str(_sum(lines, "cgst_amount")),
            "sgst": money_str(_sum(lines, "sgst_amount")),
            "igst": money_str(_sum(lines, "igst_amount")),
            "total_value": money_str(_sum(lines, "total_amount")),
        })
    return summary


def _num(value: Decimal) -> float:
    # GSTN JSON schema takes plain numbers; converted only at this boundary
    return float(quantize_money(value))


def build_gstr1_json(org_id: int, month: int, year: int) -> dict:
    """
    GSTR-1 offline-tool JSON for one tax period (fp = MMYYYY).

    b2b: invoices grouped by buyer GSTIN, one itm per rate.
    b2cs: B2C sales aggregated by supply type, place of supply and rate.
    hsn: HSN summary.
    """
    if not isinstance(month, int) or not 1 <= month <= 12:
        raise ValidationError("month must be 1-12")
    if not isinstance(year, int) or year < 2017:
        raise ValidationError("year must be 2017 or later")

    org = get_organization(org_id)
    if not org.gstin:
        raise ValidationError("Organization GSTIN not set; update settings first")

    start = date(year, month, 1)
    end = date(year, month, calendar.monthrange(year, month)[1])
    default_pos = org.state_code or org.gstin[:2]

    b2b: OrderedDict[str, list[dict]] = OrderedDict()
    for invoice_no, lines in _group_invoices(_sales(org_id, start, end, b2b=True)).items():
        first = lines[0]
        by_rate: OrderedDict[Decimal, list[Sale]] = OrderedDict()
        for line in lines:
            by_rate.setdefault(quantize_money(line.gst_rate), []).append(line)
        items = []
        for num, (rate, rate_lines) in enumerate(by_rate.items(), start=1):
            items.append({
                "num": num,
                "itm_det": {
                    "rt": _num(rate),
                    "txval": _num(_sum(rate_lines, "taxable_amount")),
                    "iamt": _num(_sum(rate_lines, "igst_amount")),
                    "camt": _num(_sum(rate_lines, "cgst_amount")),
                    "samt": _num(_sum(rate_lines, "sgst_amount")),
                    "csamt": 0,
                },
            })
        b2b.setdefault(first.customer_gstin, []).append({
            "inum": invoice_no,
            "idt": first.sale_date.strftime("%d-%m-%Y"),
            "val": _num(_sum(lines, "total_amount")),
            "pos": first.place_of_supply or default_pos,
            "rchrg": "N",
            "inv_typ": "R",
            "itms": items,
        })

    b2cs_groups: OrderedDict[tuple[str, str, Decimal], list[Sale]] = OrderedDict()
    for sale in _sales(org_id, start, end, b2b=False):
        supply = "INTER" if Decimal(sale.igst_amount) > 0 else "INTRA"
        key = (supply, sale.place_of_supply or default_pos, quantize_money(sale.gst_rate))
        b2cs_groups.setdefault(key, []).append(sale)
    b2cs = [
        {
            "sply_ty": supply,
            "pos": pos,
            "typ": "OE",
            "rt": _num(rate),
            "txval": _num(_sum(lines, "taxable_amount")),
            "iamt": _num(_sum(lines, "igst_amount")),
            "camt": _num(_sum(lines, "cgst_amount")),
            "samt": _num(_sum(lines, "sgst_amount")),
            "csamt": 0,
        }
        for (supply, pos, rate), lines in sorted(b2cs_groups.items(), key=lambda kv: (kv[0][1], kv[0][2], kv[0][0]))
    ]

    hsn_data = []
    for num, ((hsn_code, rate), lines) in enumerate(_hsn_groups(_sales(org_id, start, end)), start=1):
        hsn_data.append({
            "num": num,
            "hsn_sc": hsn_code,
            "uqc": "NOS",
            "qty": sum(line.quantity for line in lines),
            "rt": _num(rate),
            "txval": _num(_sum(lines, "taxable_amount")),
            "iamt": _num(_sum(lines, "igst_amount")),
            "camt": _num(_sum(lines, "cgst_amount")),
            "samt": _num(_sum(lines, "sgst_amount")),
            "csamt": 0,
        })

    return {
        "gstin": org.gstin,
        "fp": f"{month:02d}{year}",
        "b2b": [{"ctin": ctin, "inv": invoices} for ctin, invoices in b2b.items()],
        "b2cs": b2cs,
        "hsn": {"data": hsn_data},
    }
