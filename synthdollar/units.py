"""18-decimal fixed-point helpers shared by every engine component."""
from __future__ import annotations

from decimal import ROUND_DOWN, Decimal
from typing import Union

PRECISION_DECIMALS = 18
PRECISION = 10**PRECISION_DECIMALS

Number = Union[int, float, str, Decimal]


def to_wei(value: Number, decimals: int = PRECISION_DECIMALS) -> int:
    """Convert a human-readable number into a scaled integer, rounding down.

    Floats go through ``str`` first so ``0.1`` becomes exactly ``10**17``.
    """
    scaled = Decimal(str(value)) * (Decimal(10) ** decimals)
    return int(scaled.to_integral_value(rounding=ROUND_DOWN))


def from_wei(amount: int, decimals: int = PRECISION_DECIMALS) -> Decimal:
    return Decimal(amount) / (Decimal(10) ** decimals)


def normalize_price(price: int, decimals: int) -> int:
    """Scale a feed price with ``decimals`` places to the engine's 18."""
    if decimals <= PRECISION_DECIMALS:
        return price * 10 ** (PRECISION_DECIMALS - decimals)
    return price // 10 ** (decimals - PRECISION_DECIMALS)
