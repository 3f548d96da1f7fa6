"""Position accounting and solvency enforcement."""
from .atomic import ReentrancyGuard, Transaction
from .core import DEFAULT_ENGINE_ADDRESS, SolvencyEngine
from .health import (
    LIQUIDATION_PRECISION,
    LIQUIDATION_THRESHOLD,
    MAX_HEALTH_FACTOR,
    MIN_HEALTH_FACTOR,
    calculate_health_factor,
)
from .ledger import PositionLedger
from .liquidation import LIQUIDATION_BONUS, Seizure, compute_seizure
from .valuation import Valuation

__all__ = [
    "DEFAULT_ENGINE_ADDRESS",
    "LIQUIDATION_BONUS",
    "LIQUIDATION_PRECISION",
    "LIQUIDATION_THRESHOLD",
    "MAX_HEALTH_FACTOR",
    "MIN_HEALTH_FACTOR",
    "PositionLedger",
    "ReentrancyGuard",
    "Seizure",
    "SolvencyEngine",
    "Transaction",
    "Valuation",
    "calculate_health_factor",
    "compute_seizure",
]
