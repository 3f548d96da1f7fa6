"""Health factor: discounted collateral value over debt, 18 decimals."""
from __future__ import annotations

from ..units import PRECISION

LIQUIDATION_THRESHOLD = 50
LIQUIDATION_PRECISION = 100
MIN_HEALTH_FACTOR = PRECISION
MAX_HEALTH_FACTOR = 2**256 - 1


def calculate_health_factor(total_debt: int, collateral_value_usd: int) -> int:
    """Return the health factor; zero debt is always fully healthy."""
    if total_debt == 0:
        return MAX_HEALTH_FACTOR
    adjusted = collateral_value_usd * LIQUIDATION_THRESHOLD // LIQUIDATION_PRECISION
    return adjusted * PRECISION // total_debt


def is_broken(health_factor: int) -> bool:
    return health_factor < MIN_HEALTH_FACTOR
