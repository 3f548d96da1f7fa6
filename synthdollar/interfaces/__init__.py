"""Collaborator interfaces for the issuance engine."""
from .price_source import PriceSource
from .token import DebtToken, FungibleToken

__all__ = ["DebtToken", "FungibleToken", "PriceSource"]
