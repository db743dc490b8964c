"""Currency and quantity parsing.

Catalog prices are kept in major units (rupees). Batch and purchase prices are
kept in minor units (paise), rounded half-up from the submitted text, so
"10.005" becomes 1001 regardless of binary float representation.
"""
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Optional, Union

Number = Union[str, int, float, Decimal]

MINOR_UNITS_PER_MAJOR = Decimal("100")


def parse_decimal(value: Optional[Number]) -> Optional[Decimal]:
    """Parse user input into a finite Decimal. Returns None when it is not a number."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, float):
        # repr keeps the shortest round-tripping text, e.g. 10.005 -> "10.005"
        value = repr(value)
    text = str(value).strip()
    if not text:
        return None
    try:
        parsed = Decimal(text)
    except InvalidOperation:
        return None
    if not parsed.is_finite():
        return None
    return parsed


def to_minor_units(amount: Number) -> int:
    """Major units -> integer minor units, ROUND_HALF_UP."""
    parsed = parse_decimal(amount)
    if parsed is None:
        raise ValueError(f"Not a number: {amount!r}")
    return int((parsed * MINOR_UNITS_PER_MAJOR).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def to_major_units(minor: Union[int, Decimal]) -> Decimal:
    """Integer minor units -> Decimal major units with 2 places."""
    return (Decimal(minor) / MINOR_UNITS_PER_MAJOR).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


# Batch.quantity / Purchase.total_quantity are Numeric(12, 2)
QUANTITY_STEP = Decimal("0.01")


def parse_quantity(value: Optional[Number]) -> Optional[Decimal]:
    """
    Parse a stock quantity. Returns None when it is not a number or carries
    more decimal places than the ledger stores, so the value written is
    exactly the value validated.
    """
    parsed = parse_decimal(value)
    if parsed is None:
        return None
    try:
        if parsed != parsed.quantize(QUANTITY_STEP):
            return None
    except InvalidOperation:
        # too many digits to represent at 2 places
        return None
    return parsed
