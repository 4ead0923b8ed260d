"""Conversions between USDT amounts and the integer cents stored in the ledger."""
from decimal import Decimal, ROUND_HALF_UP

CENTS_FACTOR = 100
CENT = Decimal('0.01')
# Largest single amount accepted from clients; keeps cents well inside a signed 64-bit column
MAX_AMOUNT = Decimal('1000000000000')


def to_cents(amount) -> int:
    """Decimal/number/str USDT amount -> integer cents, rounding half up."""
    value = Decimal(str(amount)).quantize(CENT, rounding=ROUND_HALF_UP)
    return int(value * CENTS_FACTOR)


def from_cents(cents: int) -> Decimal:
    return (Decimal(int(cents)) / CENTS_FACTOR).quantize(CENT)


def format_cents(cents: int) -> str:
    """Balance representation used in API responses, e.g. ``"100.00"``."""
    return f"{from_cents(cents):.2f}"


def cents_to_number(cents: int) -> float:
    """Bet and win amounts are reported as plain JSON numbers."""
    return float(from_cents(cents))


def round_cents(value: Decimal) -> int:
    """Round a fractional cent amount to whole cents."""
    return int(Decimal(value).quantize(Decimal(1), rounding=ROUND_HALF_UP))
