"""Solvency engine — the only component allowed to mutate positions."""
from __future__ import annotations

import functools
import logging
from contextlib import contextmanager
from types import MappingProxyType
from typing import Any, Callable, Iterator, Mapping, Sequence, TypeVar

from ..errors import (
    BurnFailed,
    ConfigurationError,
    HealthFactorBroken,
    HealthFactorNotImproved,
    HealthFactorOK,
    InsufficientCollateral,
    MintFailed,
    NeedsMoreThanZero,
    NotAllowedAsset,
)
from ..interfaces.token import DebtToken, FungibleToken
from ..models import AccountInformation, LiquidationResult, Position
from ..oracles.adapter import OracleAdapter
from ..units import PRECISION
from .atomic import ReentrancyGuard, Transaction
from .health import (
    LIQUIDATION_THRESHOLD,
    MAX_HEALTH_FACTOR,
    MIN_HEALTH_FACTOR,
    calculate_health_factor,
    is_broken,
)
from .ledger import PositionLedger
from .liquidation import LIQUIDATION_BONUS, compute_seizure, improved
from .valuation import Valuation

logger = logging.getLogger(__name__)

DEFAULT_ENGINE_ADDRESS = "synthdollar-engine"

F = TypeVar("F", bound=Callable[..., Any])


def _view(method: F) -> F:
    """Run a ledger read under the guard so it never sees a half-applied call."""

    @functools.wraps(method)
    def wrapper(self: "SolvencyEngine", *args: Any, **kwargs: Any) -> Any:
        with self._guard.observe():
            return method(self, *args, **kwargs)

    return wrapper  # type: ignore[return-value]


def _require_more_than_zero(*amounts: int) -> None:
    for amount in amounts:
        if amount <= 0:
            raise NeedsMoreThanZero()


class SolvencyEngine:
    """Lock collateral, issue debt tokens and keep every account solvent.

    Every public mutating call is atomic: ledger changes and token movements
    either all take effect or none do. Token movements are executed only after
    all ledger updates and health-factor checks of the call have passed.
    """

    def __init__(
        self,
        collateral_tokens: Sequence[FungibleToken],
        price_feed_ids: Sequence[str],
        debt_token: DebtToken,
        oracle: OracleAdapter,
        address: str = DEFAULT_ENGINE_ADDRESS,
    ) -> None:
        if len(collateral_tokens) != len(price_feed_ids):
            raise ConfigurationError(
                "Collateral token and price feed lists must be the same length "
                f"({len(collateral_tokens)} != {len(price_feed_ids)})"
            )

        price_feeds: dict[str, str] = {}
        tokens: dict[str, FungibleToken] = {}
        for token, feed in zip(collateral_tokens, price_feed_ids):
            if token.address in price_feeds:
                raise ConfigurationError(f"Collateral '{token.address}' listed twice")
            price_feeds[token.address] = feed
            tokens[token.address] = token

        self.address = address
        self._price_feeds = MappingProxyType(price_feeds)
        self._tokens = MappingProxyType(tokens)
        self._debt_token = debt_token
        self._ledger = PositionLedger()
        self._valuation = Valuation(self._price_feeds, oracle)
        self._guard = ReentrancyGuard()

    # ------------------------------------------------------------------
    # Deposit / mint
    # ------------------------------------------------------------------

    def deposit_collateral(self, account: str, asset: str, amount: int) -> None:
        _require_more_than_zero(amount)
        self._require_allowed(asset)
        with self._atomic("deposit") as tx:
            self._deposit(tx, account, asset, amount)
        logger.info("Deposited %d %s for %s", amount, asset, account)

    def mint(self, account: str, amount: int) -> None:
        _require_more_than_zero(amount)
        with self._atomic("mint") as tx:
            self._mint(tx, account, amount)
            self._revert_if_health_factor_is_broken(account)
        logger.info("Minted %d debt tokens to %s", amount, account)

    def deposit_collateral_and_mint(
        self, account: str, asset: str, collateral_amount: int, mint_amount: int
    ) -> None:
        _require_more_than_zero(collateral_amount, mint_amount)
        self._require_allowed(asset)
        with self._atomic("deposit and mint") as tx:
            self._deposit(tx, account, asset, collateral_amount)
            self._mint(tx, account, mint_amount)
            self._revert_if_health_factor_is_broken(account)
        logger.info(
            "Deposited %d %s and minted %d for %s",
            collateral_amount, asset, mint_amount, account,
        )

    # ------------------------------------------------------------------
    # Redeem / burn
    # ------------------------------------------------------------------

    def redeem_collateral(self, account: str, asset: str, amount: int) -> None:
        _require_more_than_zero(amount)
        self._require_allowed(asset)
        with self._atomic("redeem") as tx:
            self._redeem(tx, asset, amount, source=account, to=account)
            self._revert_if_health_factor_is_broken(account)
        logger.info("Redeemed %d %s for %s", amount, asset, account)

    def burn(self, account: str, amount: int) -> None:
        _require_more_than_zero(amount)
        with self._atomic("burn") as tx:
            self._burn(tx, amount, on_behalf_of=account, payer=account)
            # burning can only raise the factor; checked anyway
            self._revert_if_health_factor_is_broken(account)
        logger.info("Burned %d debt tokens for %s", amount, account)

    def redeem_collateral_for_debt(
        self, account: str, asset: str, collateral_amount: int, burn_amount: int
    ) -> None:
        """Burn debt and withdraw collateral, checking health once at the end."""
        _require_more_than_zero(collateral_amount, burn_amount)
        self._require_allowed(asset)
        with self._atomic("redeem for debt") as tx:
            self._burn(tx, burn_amount, on_behalf_of=account, payer=account)
            self._redeem(tx, asset, collateral_amount, source=account, to=account)
            self._revert_if_health_factor_is_broken(account)
        logger.info(
            "Burned %d and redeemed %d %s for %s",
            burn_amount, collateral_amount, asset, account,
        )

    # ------------------------------------------------------------------
    # Liquidation
    # ------------------------------------------------------------------

    def liquidate(
        self, liquidator: str, target: str, asset: str, debt_to_cover: int
    ) -> LiquidationResult:
        """Repay part of ``target``'s debt and seize its collateral plus a bonus.

        Only allowed while ``target`` is below the minimum health factor, and
        only if the repayment strictly raises that factor.
        """
        _require_more_than_zero(debt_to_cover)
        self._require_allowed(asset)
        with self._atomic("liquidation") as tx:
            starting = self._health_factor(target)
            if not is_broken(starting):
                raise HealthFactorOK(target, starting)

            seizure = compute_seizure(self._valuation, asset, debt_to_cover)
            held = self._ledger.collateral_of(target, asset)
            if seizure.total > held:
                raise InsufficientCollateral(target, asset, held, seizure.total)

            self._burn(tx, debt_to_cover, on_behalf_of=target, payer=liquidator)
            self._redeem(tx, asset, seizure.total, source=target, to=liquidator)

            ending = self._health_factor(target)
            if not improved(starting, ending):
                raise HealthFactorNotImproved(target, starting, ending)
            self._revert_if_health_factor_is_broken(liquidator)

        logger.warning(
            "Liquidated %s: %s repaid %d, seized %d %s (bonus %d)",
            target, liquidator, debt_to_cover, seizure.total, asset, seizure.bonus,
        )
        return LiquidationResult(
            liquidator=liquidator,
            target=target,
            asset=asset,
            debt_covered=debt_to_cover,
            collateral_seized=seizure.total,
            bonus=seizure.bonus,
            starting_health_factor=starting,
            ending_health_factor=ending,
        )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @_view
    def account_information(self, account: str) -> AccountInformation:
        return self._account_information(account)

    @_view
    def position(self, account: str) -> Position:
        info = self._account_information(account)
        return Position(
            account=account,
            debt=info.total_debt,
            collateral=self._ledger.collateral_balances(account),
            collateral_value_usd=info.collateral_value_usd,
            health_factor=calculate_health_factor(
                info.total_debt, info.collateral_value_usd
            ),
        )

    @_view
    def health_factor(self, account: str) -> int:
        return self._health_factor(account)

    @_view
    def account_collateral_value(self, account: str) -> int:
        return self._valuation.collateral_value(self._ledger.collateral_balances(account))

    @_view
    def collateral_balance_of(self, account: str, asset: str) -> int:
        return self._ledger.collateral_of(account, asset)

    @_view
    def accounts(self) -> list[str]:
        return list(self._ledger.accounts())

    @_view
    def total_collateral_value(self) -> int:
        """USD value of all collateral held in engine custody."""
        custody = {
            asset: token.balance_of(self.address) for asset, token in self._tokens.items()
        }
        return self._valuation.collateral_value(custody)

    def usd_value(self, asset: str, amount: int) -> int:
        return self._valuation.usd_value(asset, amount)

    def asset_amount_from_usd(self, asset: str, usd_amount: int) -> int:
        return self._valuation.asset_amount_from_usd(asset, usd_amount)

    @staticmethod
    def calculate_health_factor(total_debt: int, collateral_value_usd: int) -> int:
        return calculate_health_factor(total_debt, collateral_value_usd)

    def collateral_assets(self) -> tuple[str, ...]:
        return tuple(self._price_feeds)

    def price_feed_of(self, asset: str) -> str:
        self._require_allowed(asset)
        return self._price_feeds[asset]

    @property
    def price_feeds(self) -> Mapping[str, str]:
        return self._price_feeds

    @property
    def debt_token(self) -> DebtToken:
        return self._debt_token

    @property
    def precision(self) -> int:
        return PRECISION

    @property
    def liquidation_threshold(self) -> int:
        return LIQUIDATION_THRESHOLD

    @property
    def liquidation_bonus(self) -> int:
        return LIQUIDATION_BONUS

    @property
    def min_health_factor(self) -> int:
        return MIN_HEALTH_FACTOR

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @contextmanager
    def _atomic(self, operation: str) -> Iterator[Transaction]:
        self._guard.enter()
        try:
            tx = Transaction(self._ledger)
            try:
                yield tx
                tx.commit()
            except BaseException as e:
                tx.rollback()
                logger.warning("%s rolled back: %s", operation.capitalize(), e)
                raise
        finally:
            self._guard.exit()

    def _require_allowed(self, asset: str) -> None:
        if asset not in self._price_feeds:
            raise NotAllowedAsset(asset)

    def _deposit(self, tx: Transaction, account: str, asset: str, amount: int) -> None:
        self._ledger.adjust_collateral(account, asset, amount)
        token = self._tokens[asset]
        tx.schedule(
            f"Pull {amount} {asset} from {account}",
            lambda: token.transfer_from(self.address, account, self.address, amount),
            undo=lambda: token.transfer(self.address, account, amount),
        )

    def _redeem(
        self, tx: Transaction, asset: str, amount: int, source: str, to: str
    ) -> None:
        self._ledger.adjust_collateral(source, asset, -amount)
        token = self._tokens[asset]
        tx.schedule(
            f"Send {amount} {asset} to {to}",
            lambda: token.transfer(self.address, to, amount),
        )

    def _mint(self, tx: Transaction, account: str, amount: int) -> None:
        self._ledger.adjust_debt(account, amount)
        debt_token = self._debt_token
        tx.schedule(
            f"Mint {amount} debt tokens to {account}",
            lambda: debt_token.mint(self.address, account, amount),
            error=MintFailed,
        )

    def _burn(
        self, tx: Transaction, amount: int, on_behalf_of: str, payer: str
    ) -> None:
        self._ledger.adjust_debt(on_behalf_of, -amount)
        debt_token = self._debt_token
        tx.schedule(
            f"Pull {amount} debt tokens from {payer}",
            lambda: debt_token.transfer_from(self.address, payer, self.address, amount),
            undo=lambda: debt_token.transfer(self.address, payer, amount),
        )
        tx.schedule(
            f"Burn {amount} debt tokens",
            lambda: debt_token.burn(self.address, amount),
            undo=lambda: debt_token.mint(self.address, self.address, amount),
            error=BurnFailed,
        )

    def _account_information(self, account: str) -> AccountInformation:
        return AccountInformation(
            total_debt=self._ledger.debt_of(account),
            collateral_value_usd=self._valuation.collateral_value(
                self._ledger.collateral_balances(account)
            ),
        )

    def _health_factor(self, account: str) -> int:
        if self._ledger.debt_of(account) == 0:
            # no oracle read needed
            return MAX_HEALTH_FACTOR
        info = self._account_information(account)
        return calculate_health_factor(info.total_debt, info.collateral_value_usd)

    def _revert_if_health_factor_is_broken(self, account: str) -> None:
        factor = self._health_factor(account)
        logger.debug("Health factor of %s is %d", account, factor)
        if is_broken(factor):
            raise HealthFactorBroken(account, factor)
