# Overview: Service-layer operations for the customer (khata) and supplier ledgers.

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Iterator, Optional

from flask import current_app

from ..errors import BalanceInvariantViolation, ConflictError, LedgerError, NotFoundError, ValidationError
from ..extensions import db
from ..models import Customer, KhataTransaction, Supplier, SupplierTransaction
from ..money import ZERO, money_str, quantize_money
from ..time_utils import to_utc_z, utcnow
from ..validation import parse_decimal
from .concurrency import lock_for_update, run_unit
from .tax_service import validate_gstin

"""
Ledger invariants (authoritative)

- Transactions are append-only. amount > 0; direction comes from type.
- balance(account) = sum(increasing) - sum(decreasing) over non-reversed rows.
- The cached account.balance is written ONLY by _post / _reverse, in the same
  DB transaction as the row it accounts for, and is checked against the fold
  before the transaction may commit. A mismatch aborts the transaction.
- Reads (get_balance, statements) always fold the log; the cache is a
  convenience for listings.
- Writes to one account serialise: row lock where the database supports it,
  plus the account's version_id, retried by run_with_retry.
"""


@dataclass(frozen=True)
class LedgerKind:
    name: str
    account_model: type
    txn_model: type
    account_fk: str
    increasing: str
    decreasing: str

    @property
    def types(self) -> tuple[str, str]:
        return (self.increasing, self.decreasing)

    def signed(self, txn_type: str, amount: Decimal) -> Decimal:
        return amount if txn_type == self.increasing else -amount


LEDGER_KINDS: dict[str, LedgerKind] = {
    # Positive balance: the customer owes the shop
    "customer": LedgerKind("customer", Customer, KhataTransaction, "customer_id", "credit", "payment"),
    # Positive balance: the shop owes the supplier
    "supplier": LedgerKind("supplier", Supplier, SupplierTransaction, "supplier_id", "purchase", "payment"),
}


def _kind(kind: str) -> LedgerKind:
    try:
        return LEDGER_KINDS[kind]
    except KeyError:
        raise ValidationError(f"Unknown ledger kind: {kind}")


# ---------------------------------------------------------------------------
# Accounts
# ---------------------------------------------------------------------------

def _clean_name(name) -> str:
    if name is None or not str(name).strip():
        raise ValidationError("name is required")
    return str(name).strip()


def create_customer(org_id: int, name: str, *, phone: Optional[str] = None, address: Optional[str] = None) -> Customer:
    def _op():
        customer = Customer(org_id=org_id, name=_clean_name(name), phone=phone, address=address, balance=ZERO)
        db.session.add(customer)
        db.session.flush()
        return customer

    return run_unit(_op, commit=True)


def create_supplier(
    org_id: int,
    name: str,
    *,
    phone: Optional[str] = None,
    address: Optional[str] = None,
    gstin: Optional[str] = None,
) -> Supplier:
    if gstin:
        gstin = validate_gstin(gstin)

    def _op():
        supplier = Supplier(
            org_id=org_id,
            name=_clean_name(name),
            phone=phone,
            address=address,
            gstin=gstin,
            balance=ZERO,
        )
        db.session.add(supplier)
        db.session.flush()
        return supplier

    return run_unit(_op, commit=True)


def get_account(kind: str, org_id: int, account_id: int):
    book = _kind(kind)
    account = db.session.query(book.account_model).filter_by(id=account_id, org_id=org_id).first()
    if not account:
        raise NotFoundError(f"{kind.capitalize()} not found", details={f"{kind}_id": account_id})
    return account


def list_customers(org_id: int) -> list[Customer]:
    return db.session.query(Customer).filter_by(org_id=org_id).order_by(Customer.name.asc(), Customer.id.asc()).all()


def list_suppliers(org_id: int) -> list[Supplier]:
    return db.session.query(Supplier).filter_by(org_id=org_id).order_by(Supplier.name.asc(), Supplier.id.asc()).all()


def get_transaction(kind: str, org_id: int, transaction_id: int):
    book = _kind(kind)
    txn = db.session.query(book.txn_model).filter_by(id=transaction_id, org_id=org_id).first()
    if not txn:
        raise NotFoundError("Transaction not found", details={"transaction_id": transaction_id})
    return txn


def list_transactions(kind: str, org_id: int, account_id: int) -> list:
    book = _kind(kind)
    get_account(kind, org_id, account_id)
    model = book.txn_model
    return (
        db.session.query(model)
        .filter(model.org_id == org_id, getattr(model, book.account_fk) == account_id)
        .order_by(model.created_at.asc(), model.id.asc())
        .all()
    )


# ---------------------------------------------------------------------------
# Balance
# ---------------------------------------------------------------------------

def _fold(book: LedgerKind, org_id: int, account_id: int, *, before: Optional[datetime] = None) -> Decimal:
    model = book.txn_model
    query = db.session.query(model.type, model.amount).filter(
        model.org_id == org_id,
        getattr(model, book.account_fk) == account_id,
        model.reversed_at.is_(None),
    )
    if before is not None:
        query = query.filter(model.created_at < before)

    total = ZERO
    for txn_type, amount in query:
        total += book.signed(txn_type, Decimal(amount))
    return quantize_money(total)


def get_balance(kind: str, org_id: int, account_id: int) -> Decimal:
    """Current balance, folded from the transaction log."""
    book = _kind(kind)
    get_account(kind, org_id, account_id)
    return _fold(book, org_id, account_id)


def _check_cache(book: LedgerKind, account) -> Decimal:
    folded = _fold(book, account.org_id, account.id)
    cached = quantize_money(account.balance)
    if folded != cached:
        current_app.logger.critical(
            "Ledger balance mismatch: kind=%s org_id=%s account_id=%s cached=%s folded=%s",
            book.name, account.org_id, account.id, cached, folded,
        )
        raise BalanceInvariantViolation(
            "Cached balance does not match transaction history",
            details={
                "kind": book.name,
                "org_id": account.org_id,
                "account_id": account.id,
                "cached": str(cached),
                "folded": str(folded),
            },
        )
    return folded


def verify_balance(kind: str, org_id: int, account_id: int) -> Decimal:
    """Compare the cached balance with the fold; raises BalanceInvariantViolation on drift."""
    book = _kind(kind)
    account = get_account(kind, org_id, account_id)
    return _check_cache(book, account)


# ---------------------------------------------------------------------------
# Single write path
# ---------------------------------------------------------------------------

def _lock_account(book: LedgerKind, org_id: int, account_id: int):
    account = lock_for_update(
        db.session.query(book.account_model).filter_by(id=account_id, org_id=org_id)
    ).first()
    if not account:
        raise NotFoundError(f"{book.name.capitalize()} not found", details={f"{book.name}_id": account_id})
    return account


def _post(book: LedgerKind, org_id: int, account_id: int, txn_type: str, amount: Decimal, **fields):
    account = _lock_account(book, org_id, account_id)

    txn = book.txn_model(
        org_id=org_id,
        type=txn_type,
        amount=amount,
        **{book.account_fk: account.id},
        **fields,
    )
    db.session.add(txn)
    account.balance = quantize_money(Decimal(account.balance) + book.signed(txn_type, amount))
    db.session.flush()

    _check_cache(book, account)
    return txn, account


def post_transaction(
    kind: str,
    org_id: int,
    account_id: int,
    type: str,
    amount,
    *,
    note: Optional[str] = None,
    sale_id: Optional[int] = None,
    invoice_no: Optional[str] = None,
    created_by: Optional[int] = None,
    now: Optional[datetime] = None,
    commit: bool = True,
):
    """
    Append one ledger entry and move the cached balance with it.

    Returns the new transaction row; its account's balance is up to date.
    With commit=False the entry joins the caller's transaction (used by
    credit sales) and is only flushed.
    """
    book = _kind(kind)
    if type not in book.types:
        raise ValidationError(
            f"type must be one of {', '.join(book.types)}",
            details={"type": type},
        )
    value = quantize_money(parse_decimal(amount, "amount", allow_zero=False))
    if value == 0:
        raise ValidationError("amount must be at least 0.01")

    fields = {"note": note, "created_by": created_by, "created_at": now or utcnow()}
    if book.name == "customer":
        fields["sale_id"] = sale_id
    elif sale_id is not None:
        raise ValidationError("sale_id applies to customer ledgers only")
    if book.name == "supplier":
        fields["invoice_no"] = invoice_no
    elif invoice_no is not None:
        raise ValidationError("invoice_no applies to supplier ledgers only")

    def _op():
        txn, _account = _post(book, org_id, account_id, type, value, **fields)
        return txn

    return run_unit(_op, commit=commit)


def apply_transaction(kind: str, org_id: int, account_id: int, type: str, amount, **kwargs) -> Decimal:
    """post_transaction, returning the account's new balance."""
    txn = post_transaction(kind, org_id, account_id, type, amount, **kwargs)
    return get_balance(kind, org_id, getattr(txn, _kind(kind).account_fk))


def _reverse(book: LedgerKind, org_id: int, txn, reason: str, now: datetime):
    account = _lock_account(book, org_id, getattr(txn, book.account_fk))
    if txn.reversed_at is not None:
        raise LedgerError("Transaction already reversed", details={"transaction_id": txn.id})

    txn.reversed_at = now
    txn.reversal_reason = reason
    account.balance = quantize_money(Decimal(account.balance) - book.signed(txn.type, Decimal(txn.amount)))
    db.session.flush()

    _check_cache(book, account)
    return txn


def reverse_transaction(
    kind: str,
    org_id: int,
    transaction_id: int,
    reason: str,
    *,
    now: Optional[datetime] = None,
    commit: bool = True,
    from_sale: bool = False,
):
    """
    Neutralise a mistaken entry. The row stays in the log, flagged, and no
    longer counts toward the balance. Reversing twice is a LedgerError.

    Entries posted by a sale (sale_id set) belong to that sale: only the
    sales service may reverse them (from_sale=True), as part of editing it.
    Anywhere else they are a ConflictError, so a sale and its khata entries
    never disagree.
    """
    book = _kind(kind)
    if reason is None or not str(reason).strip():
        raise ValidationError("reason is required")
    reason = str(reason).strip()

    def _op():
        txn = lock_for_update(
            db.session.query(book.txn_model).filter_by(id=transaction_id, org_id=org_id)
        ).first()
        if not txn:
            raise NotFoundError("Transaction not found", details={"transaction_id": transaction_id})
        if getattr(txn, "sale_id", None) is not None and not from_sale:
            raise ConflictError(
                "Entry belongs to a sale; edit or settle the sale instead",
                details={"transaction_id": txn.id, "sale_id": txn.sale_id},
            )
        return _reverse(book, org_id, txn, reason, now or utcnow())

    return run_unit(_op, commit=commit)


# ---------------------------------------------------------------------------
# Statements
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class StatementLine:
    transaction_id: int
    created_at: datetime
    type: str
    amount: Decimal
    note: Optional[str]
    reference: Optional[str]
    reversed: bool
    balance: Decimal

    def to_dict(self) -> dict:
        return {
            "transaction_id": self.transaction_id,
            "created_at": to_utc_z(self.created_at),
            "type": self.type,
            "amount": money_str(self.amount),
            "note": self.note,
            "reference": self.reference,
            "reversed": self.reversed,
            "balance": money_str(self.balance),
        }


class Statement:
    """
    Account statement: every entry in (created_at, id) order with the balance
    after it. Lazy and restartable; each iteration re-reads the log.

    Reversed entries are listed (reversed=True) but do not move the balance.
    """

    def __init__(
        self,
        kind: str,
        org_id: int,
        account_id: int,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        batch_size: int = 200,
    ):
        self._spec = _kind(kind)
        self.kind = kind
        self.org_id = org_id
        self.account_id = account_id
        self.start = start
        self.end = end
        self._batch_size = batch_size

    @property
    def opening_balance(self) -> Decimal:
        if self.start is None:
            return ZERO
        return _fold(self._spec, self.org_id, self.account_id, before=self.start)

    def _query(self):
        model = self._spec.txn_model
        query = db.session.query(model).filter(
            model.org_id == self.org_id,
            getattr(model, self._spec.account_fk) == self.account_id,
        )
        if self.start is not None:
            query = query.filter(model.created_at >= self.start)
        if self.end is not None:
            query = query.filter(model.created_at <= self.end)
        return query.order_by(model.created_at.asc(), model.id.asc()).yield_per(self._batch_size)

    def __iter__(self) -> Iterator[StatementLine]:
        running = self.opening_balance
        for txn in self._query():
            reversed_ = txn.reversed_at is not None
            amount = Decimal(txn.amount)
            if not reversed_:
                running = quantize_money(running + self._spec.signed(txn.type, amount))
            yield StatementLine(
                transaction_id=txn.id,
                created_at=txn.created_at,
                type=txn.type,
                amount=amount,
                note=txn.note,
                reference=getattr(txn, "invoice_no", None) or (
                    f"sale:{txn.sale_id}" if getattr(txn, "sale_id", None) else None
                ),
                reversed=reversed_,
                balance=running,
            )

    def closing_balance(self) -> Decimal:
        balance = self.opening_balance
        for line in self:
            balance = line.balance
        return balance

    def to_dict(self) -> dict:
        lines = [line.to_dict() for line in self]
        opening = self.opening_balance

        return {
            "kind": self.kind,
            "account_id": self.account_id,
            "opening_balance": money_str(opening),
            "closing_balance": lines[-1]["balance"] if lines else money_str(opening),
            "lines": lines,
        }


def get_statement(
    kind: str,
    org_id: int,
    account_id: int,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
) -> Statement:
    get_account(kind, org_id, account_id)
    if start is not None and end is not None and start > end:
        raise ValidationError("start must not be after end")
    return Statement(kind, org_id, account_id, start, end)
