"""Position ledger — per-account collateral and debt, no business rules."""
from __future__ import annotations

from types import MappingProxyType
from typing import Iterator, Mapping, Optional

from ..errors import InsufficientCollateral, InsufficientDebt

# (kind, key, previous value); kind is "collateral" or "debt", None marks an absent key
UndoEntry = tuple[str, object, Optional[int]]


class PositionLedger:
    """Keyed store of collateral balances and minted debt.

    While a journal is open every mutation records the value it replaced, so
    the owner can restore the exact prior state with :meth:`revert`.
    """

    def __init__(self) -> None:
        self._collateral: dict[tuple[str, str], int] = {}
        self._debt: dict[str, int] = {}
        self._journal: Optional[list[UndoEntry]] = None

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def collateral_of(self, account: str, asset: str) -> int:
        return self._collateral.get((account, asset), 0)

    def debt_of(self, account: str) -> int:
        return self._debt.get(account, 0)

    def collateral_balances(self, account: str) -> Mapping[str, int]:
        return MappingProxyType(
            {asset: amount for (owner, asset), amount in self._collateral.items()
             if owner == account and amount}
        )

    def accounts(self) -> Iterator[str]:
        seen = {owner for owner, _ in self._collateral} | set(self._debt)
        return iter(sorted(seen))

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def adjust_collateral(self, account: str, asset: str, delta: int) -> int:
        key = (account, asset)
        previous = self._collateral.get(key)
        current = previous or 0
        updated = current + delta
        if updated < 0:
            raise InsufficientCollateral(account, asset, current, -delta)
        self._record("collateral", key, previous)
        self._collateral[key] = updated
        return updated

    def adjust_debt(self, account: str, delta: int) -> int:
        previous = self._debt.get(account)
        current = previous or 0
        updated = current + delta
        if updated < 0:
            raise InsufficientDebt(account, current, -delta)
        self._record("debt", account, previous)
        self._debt[account] = updated
        return updated

    # ------------------------------------------------------------------
    # Journal
    # ------------------------------------------------------------------

    def open_journal(self) -> None:
        if self._journal is not None:
            raise RuntimeError("Ledger journal already open")
        self._journal = []

    def close_journal(self) -> list[UndoEntry]:
        entries, self._journal = self._journal or [], None
        return entries

    def revert(self, entries: list[UndoEntry]) -> None:
        for kind, key, previous in reversed(entries):
            store = self._collateral if kind == "collateral" else self._debt
            if previous is None:
                store.pop(key, None)  # type: ignore[call-overload]
            else:
                store[key] = previous  # type: ignore[index]

    def _record(self, kind: str, key: object, previous: Optional[int]) -> None:
        if self._journal is not None:
            self._journal.append((kind, key, previous))
