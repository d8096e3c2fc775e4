"""
Sales Service - records sales lines with their GST split and stock movement.

WHY: A sale is the one write that touches tax, stock, profit and (for credit
sales) the customer's khata at the same time. All of it happens in a single
DB transaction so a rejected sale leaves no trace.

Invariants:
- total_amount == quantity * sale_price + gst_amount   (+/- 0.01)
- profit == quantity * (sale_price - unit_cost)        (+/- 0.01)
- stock is decremented by a conditional UPDATE and never goes negative
- the entered unit_price, tax rate, mode, jurisdiction and unit_cost are
  frozen on the row at sale time; quantity edits reprice from them alone
- lines of one invoice share a batch_id and a sequential per-org invoice_no
- payment_status only moves pending -> paid
"""

from __future__ import annotations

import uuid
from dataclasses import asdict, dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Optional

from flask import current_app

from ..errors import (
    ConflictError,
    EditWindowExpiredError,
    InsufficientStockError,
    InternalConsistencyError,
    NotFoundError,
    ValidationError,
)
from ..extensions import db
from ..models import Customer, InventoryItem, KhataTransaction, Sale
from ..money import ZERO, CENT, quantize_money, quantize_unit_price
from ..time_utils import local_date, utcnow
from ..validation import parse_decimal, parse_quantity
from . import ledger_service, reporting_service
from .concurrency import lock_for_update, run_unit
from .inventory_service import decrement_stock, increment_stock
from .organization_service import allocate_invoice_number, get_organization, get_profile
from .tax_service import (
    TaxConfig,
    compute_tax,
    resolve_place_of_supply,
    tax_config_for,
    validate_gstin,
)

PAYMENT_METHODS = ("Cash", "UPI", "Card", "Credit")
CREDIT_METHOD = "Credit"


@dataclass(frozen=True)
class LinePricing:
    """Column values for one priced line; field names match Sale columns."""
    unit_price: Decimal
    sale_price: Decimal
    gst_rate: Decimal
    tax_mode: str
    jurisdiction: str
    taxable_amount: Decimal
    gst_amount: Decimal
    cgst_amount: Decimal
    sgst_amount: Decimal
    igst_amount: Decimal
    total_amount: Decimal
    profit: Decimal


def price_line(quantity: int, unit_price: Decimal, unit_cost: Decimal, rate: Decimal, config: TaxConfig) -> LinePricing:
    """
    Price one line under the given tax settings.

    unit_price is what the shopkeeper typed: pre-tax in exclusive mode,
    tax-inclusive in inclusive mode. Tax is computed once, on the line total
    quantity * unit_price, so the stored split is exactly what compute_tax
    returns for that line. sale_price is the pre-tax unit price,
    taxable / quantity.

    Pure: quantity edits reprice through it from the inputs frozen on the row.
    """
    if not config.gst_enabled:
        rate = ZERO
    unit_price = quantize_unit_price(unit_price)

    split = compute_tax(quantity * unit_price, rate, mode=config.mode, jurisdiction=config.jurisdiction)

    return LinePricing(
        unit_price=unit_price,
        sale_price=quantize_unit_price(split.taxable_value / quantity),
        gst_rate=split.rate,
        tax_mode=config.mode,
        jurisdiction=config.jurisdiction,
        taxable_amount=split.taxable_value,
        gst_amount=split.tax_amount,
        cgst_amount=split.cgst,
        sgst_amount=split.sgst,
        igst_amount=split.igst,
        total_amount=split.total,
        profit=quantize_money(split.taxable_value - quantity * unit_cost),
    )


def _check_invariants(sale: Sale) -> None:
    qty = sale.quantity
    price = Decimal(sale.sale_price)
    drift_total = abs(qty * price + Decimal(sale.gst_amount) - Decimal(sale.total_amount))
    drift_profit = abs(qty * (price - Decimal(sale.unit_cost)) - Decimal(sale.profit))
    split = Decimal(sale.cgst_amount) + Decimal(sale.sgst_amount) + Decimal(sale.igst_amount)
    if drift_total > CENT or drift_profit > CENT or split != Decimal(sale.gst_amount):
        current_app.logger.critical("Sale arithmetic out of balance: sale_id=%s", sale.id)
        raise InternalConsistencyError(
            "Sale amounts are inconsistent",
            details={"sale_id": sale.id, "drift_total": str(drift_total), "drift_profit": str(drift_profit)},
        )


def _validate_payment_method(payment_method: Any) -> str:
    if payment_method not in PAYMENT_METHODS:
        raise ValidationError(
            f"payment_method must be one of {', '.join(PAYMENT_METHODS)}",
            details={"payment_method": payment_method},
        )
    return payment_method


def _load_customer(org_id: int, customer_id: Optional[int]) -> Optional[Customer]:
    if customer_id is None:
        return None
    return ledger_service.get_account("customer", org_id, customer_id)


def _record_line(
    *,
    org,
    item_id: int,
    quantity: int,
    unit_price: Decimal,
    payment_method: str,
    customer: Optional[Customer],
    customer_name: Optional[str],
    customer_phone: Optional[str],
    customer_gstin: Optional[str],
    place_of_supply: Optional[str],
    created_by: Optional[int],
    batch_id: str,
    invoice_no: str,
    now: datetime,
) -> Sale:
    item = db.session.query(InventoryItem).filter_by(id=item_id, org_id=org.id).first()
    if not item:
        raise NotFoundError("Inventory item not found", details={"inventory_id": item_id})

    if quantity > item.stock:
        raise InsufficientStockError(
            "Insufficient stock",
            details={"inventory_id": item.id, "requested_quantity": quantity, "on_hand": item.stock},
        )

    config = tax_config_for(org, place_of_supply)
    unit_cost = quantize_money(item.buy_price)
    pricing = price_line(quantity, unit_price, unit_cost, Decimal(item.gst_percentage or 0), config)

    decrement_stock(org.id, item.id, quantity)

    sale = Sale(
        org_id=org.id,
        inventory_id=item.id,
        batch_id=batch_id,
        invoice_no=invoice_no,
        quantity=quantity,
        unit_cost=unit_cost,
        payment_method=payment_method,
        payment_status="pending" if payment_method == CREDIT_METHOD else "paid",
        customer_id=customer.id if customer else None,
        customer_name=customer_name or (customer.name if customer else None),
        customer_phone=customer_phone or (customer.phone if customer else None),
        customer_gstin=customer_gstin,
        place_of_supply=place_of_supply,
        hsn_code=item.hsn_code,
        sale_date=local_date(now, org.timezone or current_app.config["DEFAULT_TIMEZONE"]),
        created_at=now,
        created_by=created_by,
        **asdict(pricing),
    )
    db.session.add(sale)
    db.session.flush()
    _check_invariants(sale)

    if payment_method == CREDIT_METHOD:
        ledger_service.post_transaction(
            "customer",
            org.id,
            customer.id,
            "credit",
            sale.total_amount,
            note=f"Credit sale {invoice_no}: {item.name} x{quantity}",
            sale_id=sale.id,
            created_by=created_by,
            now=now,
            commit=False,
        )

    return sale


def _invoice_for_batch(org_id: int, batch_id: Optional[str]) -> tuple[str, str]:
    """(batch_id, invoice_no): an existing batch keeps its number, a new one draws the next."""
    if batch_id:
        existing = (
            db.session.query(Sale.invoice_no)
            .filter_by(org_id=org_id, batch_id=batch_id)
            .limit(1)
            .scalar()
        )
        if existing:
            return batch_id, existing
    return batch_id or str(uuid.uuid4()), allocate_invoice_number(org_id)


def _refresh_report(org_id: int, sale_date: date) -> None:
    # Same unit as the sale write: the day's rollup commits with it or not at all
    reporting_service.rebuild_daily_report(org_id, sale_date, commit=False)


def _prepare_counterpart(
    org_id: int,
    payment_method: Any,
    customer_id: Optional[int],
    customer_gstin: Optional[str],
    place_of_supply: Optional[str],
) -> tuple[str, Optional[str], Optional[str]]:
    method = _validate_payment_method(payment_method)
    if method == CREDIT_METHOD and customer_id is None:
        raise ValidationError("Credit sales require a customer_id")
    gstin = validate_gstin(customer_gstin) if customer_gstin else None
    pos = resolve_place_of_supply(place_of_supply, gstin)
    return method, gstin, pos


def record_sale(
    org_id: int,
    inventory_id: int,
    quantity,
    unit_price,
    payment_method: str,
    *,
    customer_id: Optional[int] = None,
    customer_name: Optional[str] = None,
    customer_phone: Optional[str] = None,
    customer_gstin: Optional[str] = None,
    place_of_supply: Optional[str] = None,
    created_by: Optional[int] = None,
    batch_id: Optional[str] = None,
    now: Optional[datetime] = None,
    rebuild_report: bool = False,
    commit: bool = True,
) -> Sale:
    """
    Record one sale line. Stock, tax split, invoice number, any khata credit
    and (with rebuild_report) the day's report land together or not at all.
    """
    qty = parse_quantity(quantity)
    price = parse_decimal(unit_price, "unit_price")
    method, gstin, pos = _prepare_counterpart(org_id, payment_method, customer_id, customer_gstin, place_of_supply)
    when = now or utcnow()

    def _op():
        org = get_organization(org_id)
        if created_by is not None:
            get_profile(org_id, created_by)
        customer = _load_customer(org_id, customer_id)
        line_batch, invoice_no = _invoice_for_batch(org.id, batch_id)
        sale = _record_line(
            org=org,
            item_id=inventory_id,
            quantity=qty,
            unit_price=price,
            payment_method=method,
            customer=customer,
            customer_name=customer_name,
            customer_phone=customer_phone,
            customer_gstin=gstin,
            place_of_supply=pos,
            created_by=created_by,
            batch_id=line_batch,
            invoice_no=invoice_no,
            now=when,
        )
        if rebuild_report:
            _refresh_report(org.id, sale.sale_date)
        return sale

    return run_unit(_op, commit=commit)


def record_sale_batch(
    org_id: int,
    lines: list[dict],
    payment_method: str,
    *,
    customer_id: Optional[int] = None,
    customer_name: Optional[str] = None,
    customer_phone: Optional[str] = None,
    customer_gstin: Optional[str] = None,
    place_of_supply: Optional[str] = None,
    created_by: Optional[int] = None,
    now: Optional[datetime] = None,
    rebuild_report: bool = False,
) -> dict:
    """
    Record several lines as one invoice (shared batch_id and invoice_no).
    All-or-nothing: if any line fails, no line, stock movement, invoice number
    or khata entry is kept. Returns the GroupedSale shape.
    """
    if not isinstance(lines, list) or not lines:
        raise ValidationError("lines must be a non-empty list")

    parsed = []
    for index, line in enumerate(lines):
        if not isinstance(line, dict):
            raise ValidationError("each line must be an object", details={"line": index})
        if "inventory_id" not in line:
            raise ValidationError("inventory_id is required", details={"line": index})
        parsed.append((
            line["inventory_id"],
            parse_quantity(line.get("quantity")),
            parse_decimal(line.get("unit_price"), "unit_price"),
        ))

    method, gstin, pos = _prepare_counterpart(org_id, payment_method, customer_id, customer_gstin, place_of_supply)
    when = now or utcnow()

    def _op():
        org = get_organization(org_id)
        if created_by is not None:
            get_profile(org_id, created_by)
        customer = _load_customer(org_id, customer_id)
        batch_id, invoice_no = _invoice_for_batch(org.id, None)
        sale = None
        for item_id, qty, price in parsed:
            sale = _record_line(
                org=org,
                item_id=item_id,
                quantity=qty,
                unit_price=price,
                payment_method=method,
                customer=customer,
                customer_name=customer_name,
                customer_phone=customer_phone,
                customer_gstin=gstin,
                place_of_supply=pos,
                created_by=created_by,
                batch_id=batch_id,
                invoice_no=invoice_no,
                now=when,
            )
        if rebuild_report:
            _refresh_report(org.id, sale.sale_date)
        return batch_id

    batch_id = run_unit(_op, commit=True)
    return get_grouped_sale(org_id, batch_id)


def get_sale(org_id: int, sale_id: int) -> Sale:
    sale = db.session.query(Sale).filter_by(id=sale_id, org_id=org_id).first()
    if not sale:
        raise NotFoundError("Sale not found", details={"sale_id": sale_id})
    return sale


def list_sales(org_id: int, start: Optional[date] = None, end: Optional[date] = None) -> list[Sale]:
    """Sales by business date, inclusive on both ends."""
    query = db.session.query(Sale).filter(Sale.org_id == org_id)
    if start is not None:
        query = query.filter(Sale.sale_date >= start)
    if end is not None:
        query = query.filter(Sale.sale_date <= end)
    return query.order_by(Sale.created_at.asc(), Sale.id.asc()).all()


def get_grouped_sale(org_id: int, batch_id: str) -> dict:
    sales = (
        db.session.query(Sale)
        .filter_by(org_id=org_id, batch_id=batch_id)
        .order_by(Sale.id.asc())
        .all()
    )
    if not sales:
        raise NotFoundError("Invoice not found", details={"batch_id": batch_id})

    first = sales[0]
    grouped = {
        "id": batch_id,
        "invoiceNo": first.invoice_no,
        "saledate": first.sale_date.isoformat(),
        "paymentMethod": first.payment_method,
        "items": [sale.to_dict() for sale in sales],
    }
    if first.customer_name:
        grouped["customerName"] = first.customer_name
    if first.customer_phone:
        grouped["customerPhone"] = first.customer_phone
    return grouped


def _linked_credit(sale: Sale) -> Optional[KhataTransaction]:
    return (
        db.session.query(KhataTransaction)
        .filter_by(org_id=sale.org_id, sale_id=sale.id, type="credit")
        .filter(KhataTransaction.reversed_at.is_(None))
        .first()
    )


def update_sale(
    org_id: int,
    sale_id: int,
    quantity,
    *,
    now: Optional[datetime] = None,
    rebuild_report: bool = False,
) -> Sale:
    """
    Change a sale's quantity shortly after it was recorded.

    The line is repriced with price_line from the values frozen on the row
    (entered unit_price, gst_rate, tax_mode, jurisdiction, unit_cost); tax is
    never looked up again and org settings are not consulted. Editing back to
    the original quantity therefore reproduces the original amounts exactly.
    Stock moves by the difference, and a linked khata credit is reversed and
    re-posted at the new total.
    """
    new_qty = parse_quantity(quantity)
    when = now or utcnow()
    window = int(current_app.config.get("SALE_EDIT_WINDOW_SECONDS", 300))

    def _op():
        sale = lock_for_update(db.session.query(Sale).filter_by(id=sale_id, org_id=org_id)).first()
        if not sale:
            raise NotFoundError("Sale not found", details={"sale_id": sale_id})

        elapsed = (when - sale.created_at.replace(tzinfo=None)).total_seconds()
        if elapsed >= window:
            raise EditWindowExpiredError(
                "Sale can no longer be edited",
                details={"sale_id": sale.id, "window_seconds": window, "elapsed_seconds": int(elapsed)},
            )

        old_qty = sale.quantity
        if new_qty == old_qty:
            return sale

        if sale.payment_method == CREDIT_METHOD and sale.payment_status == "paid":
            raise ConflictError("Settled credit sales cannot be edited", details={"sale_id": sale.id})

        diff = new_qty - old_qty
        if diff > 0:
            decrement_stock(org_id, sale.inventory_id, diff)
        else:
            increment_stock(org_id, sale.inventory_id, -diff)

        frozen = TaxConfig(gst_enabled=True, mode=sale.tax_mode, jurisdiction=sale.jurisdiction)
        pricing = price_line(
            new_qty, Decimal(sale.unit_price), Decimal(sale.unit_cost), Decimal(sale.gst_rate), frozen,
        )
        sale.quantity = new_qty
        for column, value in asdict(pricing).items():
            setattr(sale, column, value)
        sale.updated_at = when
        db.session.flush()
        _check_invariants(sale)

        credit = _linked_credit(sale)
        if credit is not None:
            ledger_service.reverse_transaction(
                "customer", org_id, credit.id, "Sale quantity edited", now=when, commit=False, from_sale=True,
            )
            ledger_service.post_transaction(
                "customer",
                org_id,
                credit.customer_id,
                "credit",
                sale.total_amount,
                note=credit.note,
                sale_id=sale.id,
                created_by=credit.created_by,
                now=when,
                commit=False,
            )

        if rebuild_report:
            _refresh_report(org_id, sale.sale_date)
        return sale

    return run_unit(_op, commit=True)


def mark_sale_paid(org_id: int, sale_id: int, *, now: Optional[datetime] = None) -> Sale:
    """
    pending -> paid. Paying a paid sale is a no-op. For a credit sale the
    customer's khata receives a payment matching the sale's open credit;
    a credit sale whose khata credit is gone cannot be settled this way.
    """
    when = now or utcnow()

    def _op():
        sale = lock_for_update(db.session.query(Sale).filter_by(id=sale_id, org_id=org_id)).first()
        if not sale:
            raise NotFoundError("Sale not found", details={"sale_id": sale_id})
        if sale.payment_status == "paid":
            return sale

        if sale.payment_method == CREDIT_METHOD:
            credit = _linked_credit(sale)
            if credit is None:
                raise ConflictError(
                    "Credit sale has no open khata entry to settle", details={"sale_id": sale.id},
                )
            ledger_service.post_transaction(
                "customer",
                org_id,
                credit.customer_id,
                "payment",
                credit.amount,
                note=f"Payment for invoice {sale.invoice_no}",
                sale_id=sale.id,
                now=when,
                commit=False,
            )

        sale.payment_status = "paid"
        sale.updated_at = when
        db.session.flush()
        return sale

    return run_unit(_op, commit=True)
