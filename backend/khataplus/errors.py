# Overview: Error taxonomy shared by every service and route.

"""
Two families, never mixed:

- CoreError and subclasses are rejected operations (bad input, missing rows,
  business-rule conflicts). Services roll back before raising them, so the
  caller can retry or show the message; nothing was written.
- InternalConsistencyError and subclasses mean the books disagree with
  themselves. They abort the enclosing transaction and are logged at CRITICAL.
"""

from __future__ import annotations


class CoreError(Exception):
    """Rejected operation; `details` is returned to API callers verbatim."""

    http_status = 400

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


class ValidationError(CoreError):
    """400-level input problem."""


class InvalidAmountError(ValidationError):
    """Malformed, negative, NaN or out-of-range numeric input."""


class InvalidQuantityError(ValidationError):
    """Quantity that is not a positive whole number."""


class NotFoundError(CoreError):
    """Referenced row is missing or belongs to another organization."""

    http_status = 404


class ConflictError(CoreError):
    """409-level business rule conflict (e.g., duplicate SKU)."""

    http_status = 409


class InsufficientStockError(ConflictError):
    """Sale quantity exceeds stock, including losing a concurrent race."""


class EditWindowExpiredError(ConflictError):
    """Mutation attempted after the bounded edit window closed."""


class LedgerError(ConflictError):
    """Ledger rule conflict (e.g., reversing an already reversed entry)."""


class UnknownHSNCodeError(CoreError):
    """HSN/SAC code absent from the rate table; no rate is ever guessed."""

    http_status = 422


class InternalConsistencyError(Exception):
    """Fatal: stored state contradicts its own invariants."""

    http_status = 500

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


class BalanceInvariantViolation(InternalConsistencyError):
    """Cached account balance differs from the fold of its transactions."""
