# Overview: Service-layer operations for inventory items; stock moves only through conditional updates.

"""
Inventory invariants

- stock is a mutable on-hand count that never goes below zero.
- Every decrement is a single conditional UPDATE
      stock = stock - q WHERE id = :id AND org_id = :org AND stock >= q
  so two concurrent sales can never both take the last units; the loser gets
  zero affected rows and InsufficientStockError.
- Items are org-scoped; an id from another org behaves like a missing id.
- gst_percentage falls back to the HSN table when an item is created with an
  hsn_code and no explicit rate.
"""

from __future__ import annotations

from typing import Optional

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError

from ..errors import ConflictError, InsufficientStockError, NotFoundError
from ..extensions import db
from ..models import InventoryItem
from ..validation import (
    ModelValidationPolicy,
    enforce_rules_inventory_item,
    parse_quantity,
    validate_payload,
)
from .concurrency import run_unit
from .tax_service import lookup_hsn_rate

ITEM_CREATE_POLICY = ModelValidationPolicy(
    writable_fields={"sku", "name", "buy_price", "sell_price", "gst_percentage", "hsn_code", "stock", "min_stock"},
    required_on_create={"sku", "name", "buy_price"},
)

# Stock is not patchable; it moves through restock and sales only
ITEM_UPDATE_POLICY = ModelValidationPolicy(
    writable_fields={"name", "buy_price", "sell_price", "gst_percentage", "hsn_code", "min_stock"},
)


def get_item(org_id: int, item_id: int) -> InventoryItem:
    item = db.session.query(InventoryItem).filter_by(id=item_id, org_id=org_id).first()
    if not item:
        raise NotFoundError("Inventory item not found", details={"inventory_id": item_id})
    return item


def list_items(org_id: int, *, search: Optional[str] = None) -> list[InventoryItem]:
    query = db.session.query(InventoryItem).filter_by(org_id=org_id)
    if search:
        like = f"%{search.strip()}%"
        query = query.filter((InventoryItem.name.ilike(like)) | (InventoryItem.sku.ilike(like)))
    return query.order_by(InventoryItem.name.asc(), InventoryItem.id.asc()).all()


def list_low_stock(org_id: int) -> list[InventoryItem]:
    """Items at or below their configured min_stock (items without one are skipped)."""
    return (
        db.session.query(InventoryItem)
        .filter(
            InventoryItem.org_id == org_id,
            InventoryItem.min_stock.isnot(None),
            InventoryItem.stock <= InventoryItem.min_stock,
        )
        .order_by(InventoryItem.stock.asc(), InventoryItem.name.asc())
        .all()
    )


def create_item(org_id: int, payload: dict) -> InventoryItem:
    patch = validate_payload(model=InventoryItem, payload=payload, policy=ITEM_CREATE_POLICY, partial=False)
    enforce_rules_inventory_item(patch)

    if patch.get("gst_percentage") is None:
        patch["gst_percentage"] = lookup_hsn_rate(patch["hsn_code"]) if patch.get("hsn_code") else 0
    if patch.get("stock") is None:
        patch["stock"] = 0

    def _op():
        item = InventoryItem(org_id=org_id, **patch)
        db.session.add(item)
        try:
            db.session.flush()
        except IntegrityError:
            raise ConflictError("SKU already exists", details={"sku": patch["sku"]})
        return item

    return run_unit(_op, commit=True)


def update_item(org_id: int, item_id: int, payload: dict) -> InventoryItem:
    """Edit item master data. Already-recorded sales keep the values they captured."""
    patch = validate_payload(model=InventoryItem, payload=payload, policy=ITEM_UPDATE_POLICY, partial=True)
    enforce_rules_inventory_item(patch)

    def _op():
        item = get_item(org_id, item_id)
        for key, value in patch.items():
            setattr(item, key, value)
        db.session.flush()
        return item

    return run_unit(_op, commit=True)


def _expire_stock(org_id: int, item_id: int) -> None:
    item = db.session.identity_map.get(db.session.identity_key(InventoryItem, item_id))
    if item is not None and item.org_id == org_id:
        db.session.expire(item, ["stock"])


def decrement_stock(org_id: int, item_id: int, quantity: int) -> None:
    """
    Atomically take quantity units off the shelf inside the caller's transaction.

    Raises InsufficientStockError when fewer than quantity units remain,
    including when a concurrent sale got there first.
    """
    result = db.session.execute(
        update(InventoryItem)
        .where(
            InventoryItem.id == item_id,
            InventoryItem.org_id == org_id,
            InventoryItem.stock >= quantity,
        )
        .values(stock=InventoryItem.stock - quantity)
        .execution_options(synchronize_session=False)
    )
    _expire_stock(org_id, item_id)
    if result.rowcount == 0:
        current = db.session.query(InventoryItem.stock).filter_by(id=item_id, org_id=org_id).scalar()
        if current is None:
            raise NotFoundError("Inventory item not found", details={"inventory_id": item_id})
        raise InsufficientStockError(
            "Insufficient stock",
            details={"inventory_id": item_id, "requested_quantity": quantity, "on_hand": current},
        )


def increment_stock(org_id: int, item_id: int, quantity: int) -> None:
    """Put quantity units back on the shelf inside the caller's transaction."""
    result = db.session.execute(
        update(InventoryItem)
        .where(InventoryItem.id == item_id, InventoryItem.org_id == org_id)
        .values(stock=InventoryItem.stock + quantity)
        .execution_options(synchronize_session=False)
    )
    _expire_stock(org_id, item_id)
    if result.rowcount == 0:
        raise NotFoundError("Inventory item not found", details={"inventory_id": item_id})


def restock(org_id: int, item_id: int, quantity) -> InventoryItem:
    """Receive goods: stock goes up by a positive whole quantity."""
    qty = parse_quantity(quantity)

    def _op():
        increment_stock(org_id, item_id, qty)
        return get_item(org_id, item_id)

    return run_unit(_op, commit=True)
