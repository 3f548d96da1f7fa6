"""Liquidation math: collateral owed to a liquidator for repaying debt."""
from __future__ import annotations

from dataclasses import dataclass

from .health import LIQUIDATION_PRECISION
from .valuation import Valuation

LIQUIDATION_BONUS = 10


@dataclass(frozen=True)
class Seizure:
    asset: str
    debt_to_cover: int
    base_amount: int
    bonus: int

    @property
    def total(self) -> int:
        return self.base_amount + self.bonus


def compute_seizure(valuation: Valuation, asset: str, debt_to_cover: int) -> Seizure:
    """Collateral equal in value to ``debt_to_cover`` plus the liquidation bonus.

    Assumes the position is still over-collateralised; at or below 100% there
    may not be enough collateral to pay both debt and bonus, and the caller
    rejects the seizure rather than capping it.
    """
    base_amount = valuation.asset_amount_from_usd(asset, debt_to_cover)
    bonus = base_amount * LIQUIDATION_BONUS // LIQUIDATION_PRECISION
    return Seizure(asset, debt_to_cover, base_amount, bonus)


def improved(starting_health_factor: int, ending_health_factor: int) -> bool:
    return ending_health_factor > starting_health_factor
