from decimal import Decimal, ROUND_HALF_UP
from typing import Any

from app.core.constants import HUNDRED, MONEY_QUANTUM


def to_money(value: Any) -> int:
    """Round a catalog or computed amount half-up to whole currency units."""
    return int(Decimal(str(value)).quantize(MONEY_QUANTUM, rounding=ROUND_HALF_UP))


def apply_percent_off(unit_price: int, percent_off: Decimal) -> int:
    # per-unit rounding; callers multiply by quantity afterwards
    return to_money(Decimal(unit_price) * (HUNDRED - percent_off) / HUNDRED)
