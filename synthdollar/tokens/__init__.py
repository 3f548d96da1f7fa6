"""In-process token collaborators."""
from .debt_token import DebtTokenLedger
from .ledger import InsufficientAllowance, InsufficientBalance, TokenError, TokenLedger

__all__ = [
    "DebtTokenLedger",
    "InsufficientAllowance",
    "InsufficientBalance",
    "TokenError",
    "TokenLedger",
]
