"""Money helpers for INR wallet amounts.

Storage and API unit: rupees as ``Decimal`` with exactly 2 places (paise).
Amounts cross the API boundary as decimal strings ("400.00"), never floats.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Annotated, Any

from libs.common.errors import InvalidAmount
from pydantic import BeforeValidator, PlainSerializer

# ─── constants ───────────────────────────────────────────────────────────────

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


# ─── conversion helpers ───────────────────────────────────────────────────────


def to_decimal(value: Any) -> Decimal:
    """Coerce ``value`` to Decimal. Binary floats are refused outright."""
    if isinstance(value, bool) or isinstance(value, float):
        raise InvalidAmount(
            "Amounts must be given as decimal strings, not floating point numbers"
        )
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise InvalidAmount(f"'{value}' is not a valid amount")


def quantize_amount(value: Any) -> Decimal:
    """Return ``value`` at 2 places. Raises InvalidAmount on sub-paisa precision."""
    amount = to_decimal(value)
    if not amount.is_finite():
        raise InvalidAmount(f"'{value}' is not a valid amount")
    try:
        quantized = amount.quantize(CENT, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        raise InvalidAmount(f"'{value}' is out of range")
    if quantized != amount:
        raise InvalidAmount("Amounts cannot have more than 2 decimal places")
    return quantized


def require_positive(value: Any) -> Decimal:
    """Quantize and require ``amount > 0``."""
    amount = quantize_amount(value)
    if amount <= ZERO:
        raise InvalidAmount("Amount must be greater than zero")
    return amount


def format_amount(amount: Decimal) -> str:
    """Render as a fixed-point string, e.g. ``Decimal("400") -> "400.00"``."""
    return str(Decimal(amount).quantize(CENT))


def _reject_float(value: Any) -> Any:
    if isinstance(value, float):
        raise ValueError("amount must be a decimal string, not a float")
    return value


# Pydantic field type: parses "400.00"/400, refuses 400.0, emits "400.00".
Amount = Annotated[
    Decimal,
    BeforeValidator(_reject_float),
    PlainSerializer(format_amount, return_type=str, when_used="json"),
]
