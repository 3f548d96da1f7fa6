"""In-process fungible token ledger."""
from __future__ import annotations

import logging

logger = logging.getLogger(__name__)


class TokenError(Exception):
    """Raised by a token ledger when a movement cannot happen."""


class InsufficientBalance(TokenError):
    pass


class InsufficientAllowance(TokenError):
    pass


class TokenLedger:
    """Balances and allowances for a single fungible token."""

    def __init__(self, address: str, decimals: int = 18) -> None:
        self._address = address
        self.decimals = decimals
        self._balances: dict[str, int] = {}
        self._allowances: dict[tuple[str, str], int] = {}
        self._total_supply = 0

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._address!r})"

    @property
    def address(self) -> str:
        return self._address

    def balance_of(self, account: str) -> int:
        return self._balances.get(account, 0)

    def total_supply(self) -> int:
        return self._total_supply

    def allowance(self, owner: str, spender: str) -> int:
        return self._allowances.get((owner, spender), 0)

    def approve(self, owner: str, spender: str, amount: int) -> bool:
        if amount < 0:
            raise TokenError(f"Negative allowance {amount}")
        self._allowances[(owner, spender)] = amount
        return True

    def transfer(self, sender: str, recipient: str, amount: int) -> bool:
        self._move(sender, recipient, amount)
        return True

    def transfer_from(self, spender: str, owner: str, recipient: str, amount: int) -> bool:
        allowed = self.allowance(owner, spender)
        if allowed < amount:
            raise InsufficientAllowance(
                f"{spender} may move {allowed} of {owner}'s {self._address}, not {amount}"
            )
        self._move(owner, recipient, amount)
        self._allowances[(owner, spender)] = allowed - amount
        return True

    def mint_to(self, account: str, amount: int) -> None:
        """Credit fresh supply; used to fund accounts in scenarios and tests."""
        if amount < 0:
            raise TokenError(f"Negative mint {amount}")
        self._balances[account] = self.balance_of(account) + amount
        self._total_supply += amount

    def _move(self, sender: str, recipient: str, amount: int) -> None:
        if amount < 0:
            raise TokenError(f"Negative transfer {amount}")
        balance = self.balance_of(sender)
        if balance < amount:
            raise InsufficientBalance(
                f"{sender} holds {balance} {self._address}, cannot move {amount}"
            )
        self._balances[sender] = balance - amount
        self._balances[recipient] = self.balance_of(recipient) + amount
        logger.debug("%s: %s -> %s %d", self._address, sender, recipient, amount)

    def _destroy(self, account: str, amount: int) -> None:
        balance = self.balance_of(account)
        if balance < amount:
            raise InsufficientBalance(
                f"{account} holds {balance} {self._address}, cannot burn {amount}"
            )
        self._balances[account] = balance - amount
        self._total_supply -= amount
