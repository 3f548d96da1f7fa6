"""All-or-nothing execution of engine operations.

Ledger mutations are applied immediately under a journal; external effects
are queued as interactions and run only at commit. Any failure undoes the
interactions that already ran and restores the ledger.
"""
from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Callable, Iterator, NoReturn, Optional

from ..errors import CompensationFailed, EngineError, ReentrantCall, TransferFailed
from .ledger import PositionLedger

logger = logging.getLogger(__name__)


class ReentrancyGuard:
    """Serialise operations and reject nested entry from the running thread.

    Reads are re-entrant: a view called from the thread that is mid-operation
    (a token hook, say) does not take the lock and sees the in-flight ledger,
    including collateral credited before its transfer has run.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._owner: Optional[int] = None

    @property
    def entered(self) -> bool:
        return self._owner == threading.get_ident()

    def enter(self) -> None:
        if self.entered:
            raise ReentrantCall()
        self._lock.acquire()
        self._owner = threading.get_ident()

    def exit(self) -> None:
        self._owner = None
        self._lock.release()

    @contextmanager
    def observe(self) -> Iterator[None]:
        """Hold the lock for a read unless this thread is mid-operation."""
        if self.entered:
            yield
            return
        with self._lock:
            yield


@dataclass(frozen=True)
class Interaction:
    """One call into a collaborator, with the call that reverses it."""

    description: str
    call: Callable[[], Optional[bool]]
    undo: Optional[Callable[[], Optional[bool]]] = None
    error: type[EngineError] = TransferFailed


class Transaction:
    def __init__(self, ledger: PositionLedger) -> None:
        self._ledger = ledger
        self._interactions: list[Interaction] = []
        self._ledger.open_journal()
        self._closed = False

    def schedule(
        self,
        description: str,
        call: Callable[[], Optional[bool]],
        undo: Optional[Callable[[], Optional[bool]]] = None,
        error: type[EngineError] = TransferFailed,
    ) -> None:
        self._interactions.append(Interaction(description, call, undo, error))

    def commit(self) -> None:
        # reversible interactions first, so an irreversible one never has to be undone
        ordered = [i for i in self._interactions if i.undo is not None]
        ordered += [i for i in self._interactions if i.undo is None]

        executed: list[Interaction] = []
        for interaction in ordered:
            try:
                result = interaction.call()
            except Exception as e:
                self._fail(
                    executed, interaction.error(f"{interaction.description} failed: {e}"), e
                )
            if result is False:
                self._fail(
                    executed, interaction.error(f"{interaction.description} returned failure")
                )
            executed.append(interaction)

        self._ledger.close_journal()
        self._closed = True

    def rollback(self) -> None:
        if self._closed:
            return
        self._ledger.revert(self._ledger.close_journal())
        self._closed = True

    def _fail(
        self,
        executed: list[Interaction],
        error: EngineError,
        cause: Optional[BaseException] = None,
    ) -> NoReturn:
        error.__cause__ = cause
        stuck = self._compensate(executed)
        if stuck:
            raise CompensationFailed(error, stuck) from error
        raise error

    @staticmethod
    def _compensate(executed: list[Interaction]) -> list[str]:
        """Undo executed interactions newest first; return those left in place."""
        stuck: list[str] = []
        for interaction in reversed(executed):
            if interaction.undo is None:
                logger.error("'%s' cannot be undone", interaction.description)
                stuck.append(interaction.description)
                continue
            try:
                result = interaction.undo()
            except Exception as e:
                logger.error("Undo of '%s' failed: %s", interaction.description, e)
                stuck.append(interaction.description)
                continue
            if result is False:
                logger.error("Undo of '%s' returned failure", interaction.description)
                stuck.append(interaction.description)
        return stuck
