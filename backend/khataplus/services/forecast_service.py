# Overview: Stock health, reorder suggestions and plain-English stock insights from sales velocity.

"""
Forecast semantics (read-only projection, recomputed on every call)

- velocity = units sold in the trailing window / window days
  (window ends at as_of, inclusive; starts window_days earlier, exclusive).
- days_of_cover = stock / velocity; None when velocity is 0 (never divides by zero).
- status: dormant (velocity 0), critical (< critical_days), low (< low_days),
  overstocked (> lead_time_days * overstock_multiple), otherwise healthy.
- suggested_qty = ceil(max(0, velocity * target_cover_days - stock)).
- Suggestions exclude velocity 0 items and zero quantities, sorted by
  days_of_cover ascending, then velocity descending, then name.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal, ROUND_CEILING, ROUND_HALF_UP
from typing import Iterable, Optional

from flask import current_app
from sqlalchemy import func

from ..extensions import db
from ..models import InventoryItem, Sale
from ..time_utils import utcnow

VELOCITY_PLACES = Decimal("0.0001")
COVER_PLACES = Decimal("0.1")


@dataclass(frozen=True)
class ForecastSettings:
    window_days: int = 30
    critical_days: int = 3
    low_days: int = 7
    lead_time_days: int = 7
    overstock_multiple: int = 8
    target_cover_days: int = 14
    top_movers: int = 3

    @property
    def overstock_days(self) -> int:
        return self.lead_time_days * self.overstock_multiple

    @classmethod
    def from_config(cls, config) -> "ForecastSettings":
        return cls(
            window_days=int(config.get("STOCK_VELOCITY_WINDOW_DAYS", cls.window_days)),
            critical_days=int(config.get("STOCK_CRITICAL_DAYS", cls.critical_days)),
            low_days=int(config.get("STOCK_LOW_DAYS", cls.low_days)),
            lead_time_days=int(config.get("STOCK_LEAD_TIME_DAYS", cls.lead_time_days)),
            overstock_multiple=int(config.get("STOCK_OVERSTOCK_MULTIPLE", cls.overstock_multiple)),
            target_cover_days=int(config.get("STOCK_TARGET_COVER_DAYS", cls.target_cover_days)),
            top_movers=int(config.get("STOCK_TOP_MOVERS", cls.top_movers)),
        )


@dataclass(frozen=True)
class ItemHealth:
    inventory_id: int
    sku: str
    name: str
    current_stock: int
    units_sold: int
    daily_velocity: Decimal
    days_of_cover: Optional[Decimal]
    status: str
    last_sold_on: Optional[datetime]

    def to_dict(self) -> dict:
        return {
            "inventory_id": self.inventory_id,
            "sku": self.sku,
            "name": self.name,
            "current_stock": self.current_stock,
            "units_sold": self.units_sold,
            "daily_velocity": str(self.daily_velocity.quantize(VELOCITY_PLACES, rounding=ROUND_HALF_UP)),
            "days_of_cover": (
                str(self.days_of_cover.quantize(COVER_PLACES, rounding=ROUND_HALF_UP))
                if self.days_of_cover is not None else None
            ),
            "status": self.status,
            "last_sold_on": self.last_sold_on.date().isoformat() if self.last_sold_on else None,
        }


# ---------------------------------------------------------------------------
# Pure helpers (no database)
# ---------------------------------------------------------------------------

def daily_velocity(units_sold: int, window_days: int) -> Decimal:
    if window_days <= 0:
        raise ValueError("window_days must be positive")
    return Decimal(units_sold) / Decimal(window_days)


def days_of_cover(stock: int, velocity: Decimal) -> Optional[Decimal]:
    if velocity <= 0:
        return None
    return Decimal(max(stock, 0)) / velocity


def classify(cover: Optional[Decimal], settings: ForecastSettings) -> str:
    if cover is None:
        return "dormant"
    if cover < settings.critical_days:
        return "critical"
    if cover < settings.low_days:
        return "low"
    if cover > settings.overstock_days:
        return "overstocked"
    return "healthy"


def suggested_quantity(velocity: Decimal, stock: int, target_cover_days: int) -> int:
    """Units needed to reach target cover; never negative, always whole."""
    shortfall = velocity * target_cover_days - Decimal(stock)
    if shortfall <= 0:
        return 0
    return int(shortfall.to_integral_value(rounding=ROUND_CEILING))


def rank_suggestions(rows: Iterable[ItemHealth]) -> list[ItemHealth]:
    moving = [row for row in rows if row.days_of_cover is not None]
    return sorted(moving, key=lambda row: (row.days_of_cover, -row.daily_velocity, row.name, row.inventory_id))


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------

def _settings() -> ForecastSettings:
    return ForecastSettings.from_config(current_app.config)


def _item_health(org_id: int, as_of: Optional[datetime], settings: ForecastSettings) -> list[ItemHealth]:
    end = as_of or utcnow()
    start = end - timedelta(days=settings.window_days)

    sold = (
        db.session.query(
            Sale.inventory_id,
            func.coalesce(func.sum(Sale.quantity), 0),
            func.max(Sale.created_at),
        )
        .filter(Sale.org_id == org_id, Sale.created_at > start, Sale.created_at <= end)
        .group_by(Sale.inventory_id)
        .all()
    )
    by_item = {inventory_id: (int(units), last) for inventory_id, units, last in sold}

    items = (
        db.session.query(InventoryItem)
        .filter_by(org_id=org_id)
        .order_by(InventoryItem.name.asc(), InventoryItem.id.asc())
        .all()
    )

    rows = []
    for item in items:
        units, last = by_item.get(item.id, (0, None))
        velocity = daily_velocity(units, settings.window_days)
        cover = days_of_cover(item.stock, velocity)
        rows.append(ItemHealth(
            inventory_id=item.id,
            sku=item.sku,
            name=item.name,
            current_stock=item.stock,
            units_sold=units,
            daily_velocity=velocity,
            days_of_cover=cover,
            status=classify(cover, settings),
            last_sold_on=last,
        ))
    return rows


def get_stock_health(org_id: int, *, as_of: Optional[datetime] = None) -> list[dict]:
    return [row.to_dict() for row in _item_health(org_id, as_of, _settings())]


def get_reorder_suggestions(org_id: int, *, as_of: Optional[datetime] = None) -> list[dict]:
    settings = _settings()
    suggestions = []
    for row in rank_suggestions(_item_health(org_id, as_of, settings)):
        qty = suggested_quantity(row.daily_velocity, row.current_stock, settings.target_cover_days)
        if qty <= 0:
            continue
        entry = row.to_dict()
        entry["suggested_qty"] = qty
        entry["urgency"] = row.status
        suggestions.append(entry)
    return suggestions


def _plural(count: int, one: str, many: str) -> str:
    return one if count == 1 else many


def _finding(kind: str, rows: list[ItemHealth], message: str) -> dict:
    return {
        "kind": kind,
        "count": len(rows),
        "items": [{"inventory_id": row.inventory_id, "name": row.name} for row in rows],
        "message": message,
    }


def get_stock_insights(org_id: int, *, as_of: Optional[datetime] = None) -> list[dict]:
    """Structured findings, each with a display-ready message."""
    settings = _settings()
    rows = _item_health(org_id, as_of, settings)
    findings = []

    critical = [row for row in rows if row.status == "critical"]
    if critical:
        n = len(critical)
        findings.append(_finding(
            "reorder_now",
            critical,
            f"{n} {_plural(n, 'item is', 'items are')} running out in less than "
            f"{settings.critical_days} days. Reorder now to avoid lost sales.",
        ))

    low = [row for row in rows if row.status == "low"]
    if low:
        n = len(low)
        findings.append(_finding(
            "running_low",
            low,
            f"{n} {_plural(n, 'item', 'items')} will run out within {settings.low_days} days.",
        ))

    dormant = [row for row in rows if row.status == "dormant"]
    if dormant:
        n = len(dormant)
        findings.append(_finding(
            "dormant_stock",
            dormant,
            f"{n} {_plural(n, 'item has', 'items have')} not sold in the last "
            f"{settings.window_days} days, tying up your capital.",
        ))

    overstocked = [row for row in rows if row.status == "overstocked"]
    if overstocked:
        n = len(overstocked)
        findings.append(_finding(
            "overstocked",
            overstocked,
            f"{n} {_plural(n, 'item has', 'items have')} more than "
            f"{settings.overstock_days} days of stock on hand.",
        ))

    total_volume = sum(row.units_sold for row in rows)
    if total_volume > 0:
        top = sorted(rows, key=lambda row: (-row.units_sold, row.name))[: settings.top_movers]
        top = [row for row in top if row.units_sold > 0]
        share = math.floor(Decimal(sum(row.units_sold for row in top)) * 100 / total_volume + Decimal("0.5"))
        findings.append(_finding(
            "top_movers",
            top,
            f"Your top {len(top)} {_plural(len(top), 'item drives', 'items drive')} "
            f"{share}% of your sales volume.",
        ))

    return findings
