# backend/workshop/domain/money.py
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation

from .constants import MONEY_PLACES, TAX_RATE


def to_money(val) -> Decimal:
    """Decimal with 2 places, ROUND_HALF_UP. None counts as zero."""
    if val is None:
        return Decimal("0.00")
    try:
        d = val if isinstance(val, Decimal) else Decimal(str(val))
    except (InvalidOperation, TypeError, ValueError):
        raise ValueError(f"not a valid amount: {val!r}")
    return d.quantize(MONEY_PLACES, rounding=ROUND_HALF_UP)


def with_tax(amount) -> Decimal:
    return to_money(to_money(amount) * (1 + TAX_RATE))


def tax_of(amount) -> Decimal:
    return to_money(to_money(amount) * TAX_RATE)
