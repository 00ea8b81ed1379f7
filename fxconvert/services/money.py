"""Money / rounding helpers.

Centralized so the result text and API responses use identical rounding
semantics.
"""

from __future__ import annotations
from decimal import Decimal, ROUND_HALF_UP


def round2(value: float) -> float:
    return float(Decimal(str(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def format_amount(value: float) -> str:
    return f"{round2(value):.2f}"
