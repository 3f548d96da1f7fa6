"""Price sources and the staleness-checking oracle adapter."""
from .adapter import STALENESS_TIMEOUT, OracleAdapter
from .pyth import PythPriceSource
from .static import StaticPriceSource

__all__ = ["OracleAdapter", "PythPriceSource", "STALENESS_TIMEOUT", "StaticPriceSource"]
