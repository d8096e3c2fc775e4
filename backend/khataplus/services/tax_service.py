# Overview: GST computation (taxable value, tax and its CGST/SGST/IGST split) and HSN rate lookup.

"""
TaxEngine invariants

- Money is Decimal end to end; rounding is ROUND_HALF_UP to the paisa and is
  applied once, at the end of the chain.
- Exclusive: taxable = amount, tax = amount * rate / 100.
- Inclusive: taxable = amount / (1 + rate / 100), tax = amount - taxable, so
  taxable + tax reproduces the input exactly.
- Intra-state: cgst = round(tax / 2), sgst = tax - cgst. Inter-state: igst = tax.
- An unknown HSN code is an error; no default rate is ever assumed.
- No global tax state: callers pass a TaxConfig built from org settings.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Optional

from ..errors import InvalidAmountError, UnknownHSNCodeError, ValidationError
from ..money import ZERO, money_str, quantize_money
from ..validation import parse_decimal
from .hsn_rates import HSN_RATES

TAX_MODES = ("exclusive", "inclusive")
JURISDICTIONS = ("intra", "inter")

HUNDRED = Decimal("100")

_GSTIN_RE = re.compile(r"^[0-9]{2}[A-Z]{5}[0-9]{4}[A-Z][1-9A-Z]Z[0-9A-Z]$")
_HSN_RE = re.compile(r"^[0-9]{2,8}$")


@dataclass(frozen=True)
class TaxSplit:
    taxable_value: Decimal
    tax_amount: Decimal
    cgst: Decimal
    sgst: Decimal
    igst: Decimal
    total: Decimal
    rate: Decimal
    mode: str
    jurisdiction: str

    def to_dict(self) -> dict:
        return {
            "taxable_value": money_str(self.taxable_value),
            "tax_amount": money_str(self.tax_amount),
            "cgst": money_str(self.cgst),
            "sgst": money_str(self.sgst),
            "igst": money_str(self.igst),
            "total": money_str(self.total),
            "rate": money_str(self.rate),
            "mode": self.mode,
            "jurisdiction": self.jurisdiction,
        }


@dataclass(frozen=True)
class TaxConfig:
    """Tax settings in force for one computation, read from the organization."""
    gst_enabled: bool = True
    mode: str = "exclusive"
    jurisdiction: str = "intra"


def parse_rate(value: Any, field: str = "rate_percent") -> Decimal:
    rate = parse_decimal(value, field)
    if rate > HUNDRED:
        raise InvalidAmountError(f"{field} must be between 0 and 100")
    return rate


def _normalize_hsn(code: Any) -> str:
    if code is None:
        raise ValidationError("hsn_code is required")
    normalized = str(code).strip().replace(" ", "").replace(".", "")
    if not _HSN_RE.match(normalized):
        raise ValidationError("hsn_code must be 2 to 8 digits", details={"hsn_code": code})
    return normalized


def lookup_hsn(code: Any) -> dict:
    """
    Resolve an HSN/SAC code against the rate table.

    Order: exact code, then the 4-digit heading of a longer code. Anything
    else is UnknownHSNCodeError. Returns {code, heading, rate, description}.
    """
    normalized = _normalize_hsn(code)

    candidates = [normalized]
    if len(normalized) > 4:
        candidates.append(normalized[:4])

    for key in candidates:
        entry = HSN_RATES.get(key)
        if entry is not None:
            rate, description = entry
            return {
                "code": normalized,
                "heading": key,
                "rate": Decimal(rate),
                "description": description,
            }

    raise UnknownHSNCodeError(f"Unknown HSN/SAC code {normalized}", details={"hsn_code": normalized})


def lookup_hsn_rate(code: Any) -> Decimal:
    return lookup_hsn(code)["rate"]


def compute_tax(
    amount: Any,
    rate_percent: Any = None,
    *,
    mode: str = "exclusive",
    jurisdiction: str = "intra",
    hsn_code: Optional[str] = None,
) -> TaxSplit:
    """
    Split an amount into taxable value and GST.

    rate_percent wins when given; otherwise the rate comes from hsn_code.
    """
    if mode not in TAX_MODES:
        raise ValidationError(f"mode must be one of {', '.join(TAX_MODES)}")
    if jurisdiction not in JURISDICTIONS:
        raise ValidationError(f"jurisdiction must be one of {', '.join(JURISDICTIONS)}")

    value = parse_decimal(amount, "amount")

    if rate_percent is None:
        if hsn_code is None:
            raise ValidationError("rate_percent or hsn_code is required")
        rate = lookup_hsn_rate(hsn_code)
    else:
        rate = parse_rate(rate_percent)

    if rate == 0:
        taxable = quantize_money(value)
        tax = ZERO
    elif mode == "exclusive":
        taxable = quantize_money(value)
        tax = quantize_money(value * rate / HUNDRED)
    else:
        gross = quantize_money(value)
        taxable = quantize_money(value / (1 + rate / HUNDRED))
        tax = gross - taxable

    cgst, sgst, igst = split_tax(tax, jurisdiction)

    return TaxSplit(
        taxable_value=taxable,
        tax_amount=tax,
        cgst=cgst,
        sgst=sgst,
        igst=igst,
        total=taxable + tax,
        rate=rate,
        mode=mode,
        jurisdiction=jurisdiction,
    )


def compute_for_config(amount: Any, rate_percent: Any, config: TaxConfig) -> TaxSplit:
    """compute_tax under an org's TaxConfig; GST-disabled orgs charge no tax."""
    if not config.gst_enabled:
        rate_percent = 0
    return compute_tax(amount, rate_percent, mode=config.mode, jurisdiction=config.jurisdiction)


def split_tax(tax: Decimal, jurisdiction: str) -> tuple[Decimal, Decimal, Decimal]:
    """(cgst, sgst, igst) for an already-rounded tax amount."""
    if jurisdiction == "inter":
        return ZERO, ZERO, tax
    cgst = quantize_money(tax / 2)
    return cgst, tax - cgst, ZERO


def validate_gstin(value: Any) -> str:
    """Normalize a GSTIN (upper-case, trimmed) and check its 15-character shape."""
    if value is None:
        raise ValidationError("gstin is required")
    gstin = str(value).strip().upper()
    if len(gstin) != 15 or not _GSTIN_RE.match(gstin):
        raise ValidationError("gstin must be a valid 15-character GSTIN", details={"gstin": value})
    return gstin


def resolve_place_of_supply(place_of_supply: Optional[str], customer_gstin: Optional[str]) -> Optional[str]:
    """Explicit state code first, else the state digits of the buyer's GSTIN."""
    if place_of_supply:
        pos = str(place_of_supply).strip()
        if len(pos) != 2 or not pos.isdigit():
            raise ValidationError("place_of_supply must be a 2-digit state code")
        return pos
    if customer_gstin:
        return customer_gstin[:2]
    return None


def tax_config_for(org, place_of_supply: Optional[str] = None) -> TaxConfig:
    """
    Snapshot an organization's GST settings for one sale.

    Inter-state when the place of supply is known and differs from the
    seller's state code; intra-state otherwise.
    """
    jurisdiction = "intra"
    if place_of_supply and org.state_code and place_of_supply != org.state_code:
        jurisdiction = "inter"
    return TaxConfig(
        gst_enabled=bool(org.gst_enabled),
        mode="inclusive" if org.gst_inclusive else "exclusive",
        jurisdiction=jurisdiction,
    )
