"""Data models — all frozen (immutable)."""
from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping


@dataclass(frozen=True)
class PriceReading:
    """Raw oracle answer: integer price with its own decimal count."""

    price: int
    decimals: int
    observed_at: float


@dataclass(frozen=True)
class AccountInformation:
    total_debt: int
    collateral_value_usd: int


@dataclass(frozen=True)
class Position:
    """Read-only snapshot of one account's position."""

    account: str
    debt: int
    collateral: Mapping[str, int] = field(default_factory=lambda: MappingProxyType({}))
    collateral_value_usd: int = 0
    health_factor: int = 0


@dataclass(frozen=True)
class LiquidationResult:
    liquidator: str
    target: str
    asset: str
    debt_covered: int
    collateral_seized: int
    bonus: int
    starting_health_factor: int
    ending_health_factor: int
