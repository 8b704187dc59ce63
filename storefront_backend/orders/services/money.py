# orders/services/money.py

"""
MONEY HELPERS

Hard rules:
- Money is Decimal end-to-end (never float).
- Checkout math runs unrounded; values are rounded exactly once, when they are
  persisted, to the currency's minor unit (ROUND_HALF_UP).
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

ZERO = Decimal("0")

# ISO 4217 exponents that differ from the common 2 decimal places.
_MINOR_UNIT_OVERRIDES = {
    "BHD": 3,
    "IQD": 3,
    "JOD": 3,
    "KWD": 3,
    "LYD": 3,
    "OMR": 3,
    "TND": 3,
    "JPY": 0,
    "KRW": 0,
    "CLP": 0,
    "VND": 0,
}


def minor_units_for(currency) -> int:
    return _MINOR_UNIT_OVERRIDES.get(str(currency or "").strip().upper(), 2)


def quantum_for(places: int) -> Decimal:
    return Decimal(1).scaleb(-int(places))


def to_decimal(value) -> Decimal:
    if value is None or value == "":
        return ZERO
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise ValueError("money value must be numeric")
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError) as exc:
        raise ValueError(f"invalid money value: {value!r}") from exc


def round_money(value, places: int = 2) -> Decimal:
    return to_decimal(value).quantize(quantum_for(places), rounding=ROUND_HALF_UP)
