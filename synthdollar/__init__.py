"""Over-collateralised synthetic dollar issuance engine."""
from .engine import SolvencyEngine
from .errors import EngineError
from .oracles import OracleAdapter, PythPriceSource, StaticPriceSource
from .tokens import DebtTokenLedger, TokenLedger

__all__ = [
    "DebtTokenLedger",
    "EngineError",
    "OracleAdapter",
    "PythPriceSource",
    "SolvencyEngine",
    "StaticPriceSource",
    "TokenLedger",
]
