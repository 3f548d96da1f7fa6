"""Token protocols — collateral asset and debt token collaborators.

Callers are passed explicitly; an in-process ledger has no ambient sender.
"""
from typing import Protocol


class FungibleToken(Protocol):
    """Standard fungible-token ledger used for collateral assets."""

    @property
    def address(self) -> str: ...

    def balance_of(self, account: str) -> int: ...

    def total_supply(self) -> int: ...

    def approve(self, owner: str, spender: str, amount: int) -> bool: ...

    def transfer(self, sender: str, recipient: str, amount: int) -> bool: ...

    def transfer_from(
        self, spender: str, owner: str, recipient: str, amount: int
    ) -> bool: ...


class DebtToken(FungibleToken, Protocol):
    """The dollar-pegged token; only its owner may issue or destroy supply."""

    def mint(self, caller: str, to: str, amount: int) -> bool: ...

    def burn(self, caller: str, amount: int) -> None: ...
