"""Exception hierarchy for the issuance engine.

Every error aborts the whole operation that raised it; nothing is retried.
"""
from __future__ import annotations

from .units import from_wei


class EngineError(Exception):
    """Base class for every failure raised by the engine."""


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


class ValidationError(EngineError):
    pass


class NeedsMoreThanZero(ValidationError):
    def __init__(self) -> None:
        super().__init__("Amount must be more than zero")


class NotAllowedAsset(ValidationError):
    def __init__(self, asset: str) -> None:
        self.asset = asset
        super().__init__(f"Asset '{asset}' is not an allowed collateral")


class ConfigurationError(ValidationError, ValueError):
    pass


class InsufficientCollateral(ValidationError):
    def __init__(self, account: str, asset: str, available: int, requested: int) -> None:
        self.account = account
        self.asset = asset
        self.available = available
        self.requested = requested
        super().__init__(
            f"Account '{account}' holds {available} of '{asset}', {requested} requested"
        )


class InsufficientDebt(ValidationError):
    def __init__(self, account: str, available: int, requested: int) -> None:
        self.account = account
        self.available = available
        self.requested = requested
        super().__init__(
            f"Account '{account}' owes {available}, cannot burn {requested}"
        )


# ---------------------------------------------------------------------------
# Transfers and issuance
# ---------------------------------------------------------------------------


class TransferFailed(EngineError):
    pass


class CompensationFailed(EngineError):
    """An operation failed and some of its token movements could not be undone.

    The ledger is rolled back regardless; ``stuck`` names the movements that
    remain in effect and need manual reconciliation.
    """

    def __init__(self, error: EngineError, stuck: list[str]) -> None:
        self.error = error
        self.stuck = tuple(stuck)
        super().__init__(f"{error}; could not undo: {', '.join(self.stuck)}")


class IssuanceError(EngineError):
    pass


class MintFailed(IssuanceError):
    pass


class BurnFailed(IssuanceError):
    pass


# ---------------------------------------------------------------------------
# Solvency
# ---------------------------------------------------------------------------


class SolvencyError(EngineError):
    pass


class HealthFactorBroken(SolvencyError):
    def __init__(self, account: str, factor: int) -> None:
        self.account = account
        self.factor = factor
        super().__init__(
            f"Health factor of '{account}' would drop to {from_wei(factor):.6f}"
        )


class HealthFactorOK(SolvencyError):
    def __init__(self, account: str, factor: int) -> None:
        self.account = account
        self.factor = factor
        super().__init__(f"Account '{account}' is not liquidatable")


class HealthFactorNotImproved(SolvencyError):
    def __init__(self, account: str, starting: int, ending: int) -> None:
        self.account = account
        self.starting = starting
        self.ending = ending
        super().__init__(
            f"Liquidation would move health factor of '{account}' from "
            f"{from_wei(starting):.6f} to {from_wei(ending):.6f}"
        )


# ---------------------------------------------------------------------------
# Oracle
# ---------------------------------------------------------------------------


class PriceUnavailable(EngineError):
    def __init__(self, feed_id: str, reason: str = "no reading") -> None:
        self.feed_id = feed_id
        super().__init__(f"Price feed '{feed_id}': {reason}")


class PriceStale(PriceUnavailable):
    def __init__(self, feed_id: str, age: float | None) -> None:
        self.age = age
        reason = "never updated" if age is None else f"reading is {age:.0f}s old"
        super().__init__(feed_id, reason)


class InvalidPrice(PriceUnavailable):
    def __init__(self, feed_id: str, price: int) -> None:
        self.price = price
        super().__init__(feed_id, f"invalid price {price}")


# ---------------------------------------------------------------------------
# Concurrency
# ---------------------------------------------------------------------------


class ReentrantCall(EngineError):
    def __init__(self) -> None:
        super().__init__("Engine operation re-entered before completion")
