from __future__ import annotations
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from khataplus.time_utils import parse_iso_date, parse_iso_datetime

from dataclasses import dataclass
from typing import Any

from sqlalchemy import Boolean, Date, Integer, Numeric, String, Text, DateTime
from sqlalchemy.orm import DeclarativeMeta

from .errors import ValidationError, InvalidAmountError, InvalidQuantityError


# Maximum money value: 99,99,99,99,999.99 (fits Numeric(14, 2))
MAX_AMOUNT = Decimal("999999999999.99")

# Largest single-line quantity accepted from a client
MAX_QUANTITY = 1_000_000


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - writable_fields: what clients are allowed to set (security boundary)
    - required_on_create: fields required for POST
    """
    writable_fields: set[str]
    required_on_create: set[str] = None  # type: ignore


def _columns_by_key(model: DeclarativeMeta) -> dict[str, Any]:
    mapper = model.__mapper__
    return {c.key: c for c in mapper.columns}


def parse_decimal(value: Any, field: str = "amount", *, allow_zero: bool = True) -> Decimal:
    """
    Strict money/decimal coercion.

    Accepts int, Decimal and numeric strings. Floats go through str() so 0.1
    stays 0.1. Booleans, NaN, infinities, negatives and values above
    MAX_AMOUNT are rejected with InvalidAmountError.
    """
    if value is None or isinstance(value, bool):
        raise InvalidAmountError(f"{field} must be a number")

    if isinstance(value, Decimal):
        dec = value
    elif isinstance(value, (int, float)):
        dec = Decimal(str(value))
    elif isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise InvalidAmountError(f"{field} must be a number")
        try:
            dec = Decimal(stripped)
        except InvalidOperation:
            raise InvalidAmountError(f"{field} must be a number")
    else:
        raise InvalidAmountError(f"{field} must be a number")

    if not dec.is_finite():
        raise InvalidAmountError(f"{field} must be a finite number")
    if dec < 0:
        raise InvalidAmountError(f"{field} must be >= 0")
    if not allow_zero and dec == 0:
        raise InvalidAmountError(f"{field} must be > 0")
    if dec > MAX_AMOUNT:
        raise InvalidAmountError(f"{field} cannot exceed {MAX_AMOUNT}")
    return dec


def parse_quantity(value: Any, field: str = "quantity") -> int:
    """Positive whole number; "3" is fine, 2.5 / "1e3" / True are not."""
    if isinstance(value, bool):
        raise InvalidQuantityError(f"{field} must be a whole number")
    if isinstance(value, int):
        qty = value
    elif isinstance(value, str) and value.strip().lstrip("-").isdigit():
        qty = int(value.strip())
    elif isinstance(value, Decimal) and value.is_finite() and value == value.to_integral_value():
        qty = int(value)
    else:
        raise InvalidQuantityError(f"{field} must be a whole number")

    if qty <= 0:
        raise InvalidQuantityError(f"{field} must be > 0")
    if qty > MAX_QUANTITY:
        raise InvalidQuantityError(f"{field} cannot exceed {MAX_QUANTITY}")
    return qty


def _coerce_value(col, value: Any):
    coltype = col.type

    if value is None:
        return None

    # Integers - strict validation to reject floats and scientific notation
    if isinstance(coltype, Integer):
        # Already an int (but not bool which is a subclass of int)
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        # String input - must be plain digits (with optional leading minus)
        if isinstance(value, str):
            stripped = value.strip()
            if not stripped:
                raise ValidationError(f"{col.key} must be an integer")
            # Reject scientific notation (e.g., "1e15", "1E10")
            if 'e' in stripped.lower():
                raise ValidationError(f"{col.key} must be a plain integer (scientific notation not allowed)")
            # Reject decimal points (e.g., "12.5")
            if '.' in stripped:
                raise ValidationError(f"{col.key} must be an integer (no decimals)")
            try:
                return int(stripped)
            except ValueError:
                raise ValidationError(f"{col.key} must be an integer")
        # Reject floats explicitly
        if isinstance(value, float):
            raise ValidationError(f"{col.key} must be an integer, not a decimal")
        # Other types
        raise ValidationError(f"{col.key} must be an integer")

    # Fixed-point money and rates
    if isinstance(coltype, Numeric):
        return parse_decimal(value, col.key)

    # Booleans
    if isinstance(coltype, Boolean):
        if isinstance(value, bool):
            return value
        raise ValidationError(f"{col.key} must be true or false")

    # Datetimes (accept ISO-8601 strings; normalize to UTC)
    if isinstance(coltype, DateTime):
        if isinstance(value, datetime):
            return value
        if isinstance(value, str):
            try:
                dt = parse_iso_datetime(value)
            except ValueError:
                raise ValidationError(f"{col.key} must be an ISO-8601 datetime")
            if dt is None:
                raise ValidationError(f"{col.key} must be an ISO-8601 datetime")
            return dt
        raise ValidationError(f"{col.key} must be a datetime")

    # Calendar dates
    if isinstance(coltype, Date):
        if isinstance(value, date):
            return value
        if isinstance(value, str):
            try:
                d = parse_iso_date(value)
            except ValueError:
                raise ValidationError(f"{col.key} must be a YYYY-MM-DD date")
            if d is None:
                raise ValidationError(f"{col.key} must be a YYYY-MM-DD date")
            return d
        raise ValidationError(f"{col.key} must be a date")

    # Strings / Text
    if isinstance(coltype, (String, Text)):
        return str(value).strip()

    # Default: leave as-is
    return value


def validate_payload(
    *,
    model: DeclarativeMeta,
    payload: dict,
    policy: ModelValidationPolicy,
    partial: bool,
) -> dict:
    """
    Validates + normalizes incoming JSON against:
    - SQLAlchemy column metadata (nullable, type, String length)
    - a policy allowlist (writable_fields)
    - required_on_create (if partial=False)
    Returns a cleaned patch dict with only writable fields.

    partial=False: create semantics (enforce required_on_create)
    partial=True: patch semantics (validate only provided keys)
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    required = policy.required_on_create or set()
    if not partial:
        missing = sorted(f for f in required if f not in payload)
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    cols = _columns_by_key(model)

    # Reject unknown / non-writable fields
    for k in payload.keys():
        if k not in policy.writable_fields:
            raise ValidationError(f"Field not allowed: {k}")
        if k not in cols:
            raise ValidationError(f"Unknown field: {k}")

    patch: dict = {}

    for k, raw in payload.items():
        col = cols[k]

        # NULL handling
        if raw is None:
            if not col.nullable:
                raise ValidationError(f"{k} cannot be null")
            patch[k] = None
            continue

        val = _coerce_value(col, raw)

        # Blank string check for non-nullable text fields
        if isinstance(col.type, (String, Text)) and not col.nullable:
            if isinstance(val, str) and val == "":
                raise ValidationError(f"{k} cannot be blank")

        # Max length check for String(n)
        if isinstance(col.type, String) and col.type.length and isinstance(val, str):
            if len(val) > col.type.length:
                raise ValidationError(f"{k} exceeds max length {col.type.length}")

        patch[k] = val

    return patch


def enforce_rules_inventory_item(patch: dict) -> None:
    """
    Business rules that are not captured by SQLAlchemy metadata alone.
    Keep these small and centralized.
    """
    if "stock" in patch and patch["stock"] is not None and patch["stock"] < 0:
        raise ValidationError("stock must be >= 0")

    if "min_stock" in patch and patch["min_stock"] is not None and patch["min_stock"] < 0:
        raise ValidationError("min_stock must be >= 0")

    rate = patch.get("gst_percentage")
    if rate is not None and rate > 100:
        raise InvalidAmountError("gst_percentage cannot exceed 100")

    if "sku" in patch and patch["sku"] is not None:
        patch["sku"] = patch["sku"].upper()


def parse_date_value(value: Any, field: str, *, required: bool = False) -> date | None:
    """YYYY-MM-DD from a query string or JSON body; None when absent and optional."""
    if value is None or (isinstance(value, str) and not value.strip()):
        if required:
            raise ValidationError(f"{field} is required")
        return None
    if isinstance(value, date) and not isinstance(value, datetime):
        return value
    try:
        return parse_iso_date(str(value))
    except ValueError:
        raise ValidationError(f"{field} must be a YYYY-MM-DD date")


def parse_datetime_value(value: Any, field: str) -> datetime | None:
    """ISO-8601 datetime normalized to UTC-naive; None when absent."""
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    if isinstance(value, datetime):
        return value
    try:
        return parse_iso_datetime(str(value))
    except ValueError:
        raise ValidationError(f"{field} must be an ISO-8601 datetime")
