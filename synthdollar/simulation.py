"""Scenario runner — drives an in-memory engine through scripted steps."""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Optional

import yaml

from .config import AppConfig
from .engine import MAX_HEALTH_FACTOR, SolvencyEngine
from .errors import EngineError, PriceUnavailable
from .models import Position
from .oracles import OracleAdapter, StaticPriceSource
from .tokens import DebtTokenLedger, TokenError, TokenLedger
from .units import from_wei, to_wei

logger = logging.getLogger(__name__)

DEFAULT_FEED_DECIMALS = 8
UNLIMITED_ALLOWANCE = 2**256 - 1


@dataclass(frozen=True)
class Scenario:
    prices: dict[str, dict[str, Any]] = field(default_factory=dict)
    balances: dict[str, dict[str, Any]] = field(default_factory=dict)
    steps: tuple[dict[str, Any], ...] = ()
    start_time: Optional[float] = None


@dataclass(frozen=True)
class StepResult:
    index: int
    action: str
    ok: bool
    error: str = ""


@dataclass(frozen=True)
class SimulationReport:
    steps: tuple[StepResult, ...]
    positions: tuple[Position, ...]
    total_collateral_value: int
    debt_supply: int
    pricing_error: str = ""

    @property
    def failed_steps(self) -> tuple[StepResult, ...]:
        return tuple(s for s in self.steps if not s.ok)

    @property
    def invariant_holds(self) -> Optional[bool]:
        if self.pricing_error:
            return None
        return self.total_collateral_value >= self.debt_supply


class SimulatedClock:
    def __init__(self, start: float) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------


def load_scenario(path: str | Path) -> Scenario:
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Scenario file not found: {path}")

    with open(path) as f:
        raw = yaml.safe_load(f) or {}

    steps = tuple(raw.get("steps", []))
    for i, step in enumerate(steps):
        action = step.get("action")
        if action not in _ACTIONS:
            raise ValueError(f"Step {i} has unknown action '{action}'")

    start_time = raw.get("start_time")
    return Scenario(
        prices=dict(raw.get("prices", {})),
        balances=dict(raw.get("balances", {})),
        steps=steps,
        start_time=float(start_time) if start_time is not None else None,
    )


# ---------------------------------------------------------------------------
# Running
# ---------------------------------------------------------------------------


class Simulation:
    """Wire tokens, feeds and an engine together for one scenario run."""

    def __init__(self, config: AppConfig, scenario: Scenario) -> None:
        self._scenario = scenario
        self.clock = SimulatedClock(
            scenario.start_time if scenario.start_time is not None else time.time()
        )
        self.prices = StaticPriceSource(clock=self.clock)
        self.tokens = {
            entry.token: TokenLedger(entry.token) for entry in config.engine.collateral
        }
        self.debt_token = DebtTokenLedger(owner=config.engine.address)
        self.engine = SolvencyEngine(
            list(self.tokens.values()),
            list(config.price_feeds),
            self.debt_token,
            OracleAdapter(
                self.prices,
                timeout=config.oracle.staleness_timeout_seconds,
                clock=self.clock,
            ),
            address=config.engine.address,
        )

        for asset, spec in scenario.prices.items():
            self._set_price(asset, spec)

        for account, holdings in scenario.balances.items():
            for asset, amount in holdings.items():
                token = self.tokens.get(asset)
                if token is None:
                    raise ValueError(f"Balance for unknown token '{asset}'")
                token.mint_to(account, to_wei(amount))
            self._approve_engine(account)

    def run(self) -> SimulationReport:
        results: list[StepResult] = []
        for index, step in enumerate(self._scenario.steps):
            action = step["action"]
            try:
                _ACTIONS[action](self, step)
            except (EngineError, TokenError) as e:
                logger.warning("Step %d (%s) failed: %s", index, action, e)
                results.append(StepResult(index, action, False, f"{type(e).__name__}: {e}"))
                continue
            logger.info("Step %d (%s) ok", index, action)
            results.append(StepResult(index, action, True))
        return self._report(tuple(results))

    # ------------------------------------------------------------------
    # Step handlers
    # ------------------------------------------------------------------

    def _deposit(self, step: dict[str, Any]) -> None:
        self.engine.deposit_collateral(
            step["account"], step["asset"], to_wei(step["amount"])
        )

    def _mint(self, step: dict[str, Any]) -> None:
        self.engine.mint(step["account"], to_wei(step["amount"]))

    def _deposit_and_mint(self, step: dict[str, Any]) -> None:
        self.engine.deposit_collateral_and_mint(
            step["account"],
            step["asset"],
            to_wei(step["collateral"]),
            to_wei(step["mint"]),
        )

    def _redeem(self, step: dict[str, Any]) -> None:
        self.engine.redeem_collateral(
            step["account"], step["asset"], to_wei(step["amount"])
        )

    def _burn(self, step: dict[str, Any]) -> None:
        self.engine.burn(step["account"], to_wei(step["amount"]))

    def _redeem_for_debt(self, step: dict[str, Any]) -> None:
        self.engine.redeem_collateral_for_debt(
            step["account"],
            step["asset"],
            to_wei(step["collateral"]),
            to_wei(step["burn"]),
        )

    def _liquidate(self, step: dict[str, Any]) -> None:
        self._approve_engine(step["liquidator"])
        self.engine.liquidate(
            step["liquidator"], step["target"], step["asset"], to_wei(step["debt"])
        )

    def _set_price_step(self, step: dict[str, Any]) -> None:
        self._set_price(step["asset"], step)

    def _advance_time(self, step: dict[str, Any]) -> None:
        self.clock.advance(float(step["seconds"]))

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _set_price(self, asset: str, spec: dict[str, Any]) -> None:
        feed = self.engine.price_feed_of(asset)
        decimals = int(spec.get("decimals", DEFAULT_FEED_DECIMALS))
        self.prices.set_price(feed, to_wei(spec["price"], decimals), decimals)

    def _approve_engine(self, account: str) -> None:
        spender = self.engine.address
        for token in self.tokens.values():
            token.approve(account, spender, UNLIMITED_ALLOWANCE)
        self.debt_token.approve(account, spender, UNLIMITED_ALLOWANCE)

    def _report(self, steps: tuple[StepResult, ...]) -> SimulationReport:
        try:
            positions = tuple(self.engine.position(a) for a in self.engine.accounts())
            total_value = self.engine.total_collateral_value()
        except PriceUnavailable as e:
            logger.warning("Cannot value final positions: %s", e)
            return SimulationReport(
                steps=steps,
                positions=(),
                total_collateral_value=0,
                debt_supply=self.debt_token.total_supply(),
                pricing_error=str(e),
            )
        return SimulationReport(
            steps=steps,
            positions=positions,
            total_collateral_value=total_value,
            debt_supply=self.debt_token.total_supply(),
        )


_ACTIONS: dict[str, Callable[[Simulation, dict[str, Any]], None]] = {
    "deposit": Simulation._deposit,
    "mint": Simulation._mint,
    "deposit_and_mint": Simulation._deposit_and_mint,
    "redeem": Simulation._redeem,
    "burn": Simulation._burn,
    "redeem_for_debt": Simulation._redeem_for_debt,
    "liquidate": Simulation._liquidate,
    "set_price": Simulation._set_price_step,
    "advance_time": Simulation._advance_time,
}


def run_scenario(config: AppConfig, scenario: Scenario) -> SimulationReport:
    return Simulation(config, scenario).run()


# ---------------------------------------------------------------------------
# Formatting
# ---------------------------------------------------------------------------


def _format_health_factor(factor: int) -> str:
    if factor == MAX_HEALTH_FACTOR:
        return "∞"
    return f"{from_wei(factor):.4f}"


def format_report(report: SimulationReport) -> str:
    lines: list[str] = ["Steps:"]
    for step in report.steps:
        status = "ok" if step.ok else f"FAILED — {step.error}"
        lines.append(f"  [{step.index}] {step.action}: {status}")

    lines.append("")
    lines.append("Positions:")
    if report.pricing_error:
        lines.append(f"  unavailable ({report.pricing_error})")
    elif not report.positions:
        lines.append("  none")
    for position in report.positions:
        held = ", ".join(
            f"{from_wei(amount):,.4f} {asset}" for asset, amount in position.collateral.items()
        ) or "—"
        lines.append(
            f"  {position.account}: debt {from_wei(position.debt):,.2f} · "
            f"collateral {held} (${from_wei(position.collateral_value_usd):,.2f}) · "
            f"HF {_format_health_factor(position.health_factor)}"
        )

    lines.append("")
    lines.append(f"Collateral in custody: ${from_wei(report.total_collateral_value):,.2f}")
    lines.append(f"Debt token supply:     {from_wei(report.debt_supply):,.2f}")
    holds = report.invariant_holds
    verdict = "unknown" if holds is None else ("holds" if holds else "VIOLATED")
    lines.append(f"Solvency invariant:    {verdict}")
    return "\n".join(lines)
