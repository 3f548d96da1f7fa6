"""Dollar-pegged debt token whose supply only its owner controls."""
from __future__ import annotations

from .ledger import TokenError, TokenLedger


class DebtTokenLedger(TokenLedger):
    """Fungible ledger with owner-only mint and burn; the owner is the engine."""

    def __init__(self, address: str = "dUSD", owner: str = "") -> None:
        super().__init__(address)
        self.owner = owner

    def mint(self, caller: str, to: str, amount: int) -> bool:
        self._require_owner(caller)
        if not to:
            raise TokenError("Cannot mint to an empty account")
        if amount <= 0:
            raise TokenError("Mint amount must be more than zero")
        self.mint_to(to, amount)
        return True

    def burn(self, caller: str, amount: int) -> None:
        self._require_owner(caller)
        if amount <= 0:
            raise TokenError("Burn amount must be more than zero")
        self._destroy(caller, amount)

    def _require_owner(self, caller: str) -> None:
        if caller != self.owner:
            raise TokenError(f"{caller} is not the owner of {self.address}")
