"""Shared test fixtures: tokens, feeds and a wired-up engine."""
from __future__ import annotations

import textwrap
from pathlib import Path

import pytest

from synthdollar.config import AppConfig, CollateralConfig, EngineConfig, OracleConfig
from synthdollar.engine import SolvencyEngine
from synthdollar.oracles import OracleAdapter, StaticPriceSource
from synthdollar.tokens import DebtTokenLedger, TokenLedger
from synthdollar.units import to_wei

ENGINE = "synthdollar-engine"
USER = "user"
LIQUIDATOR = "liquidator"
ETH_USD = "ETH/USD"
BTC_USD = "BTC/USD"
NOW = 1_700_000_000.0
UNLIMITED = 2**256 - 1


class FakeClock:
    def __init__(self, now: float = NOW) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


# ---------------------------------------------------------------------------
# Collaborators
# ---------------------------------------------------------------------------


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def price_source(clock: FakeClock) -> StaticPriceSource:
    source = StaticPriceSource(clock=clock)
    source.set_price(ETH_USD, 2000 * 10**8, decimals=8)
    source.set_price(BTC_USD, 1000 * 10**8, decimals=8)
    return source


@pytest.fixture()
def oracle(price_source: StaticPriceSource, clock: FakeClock) -> OracleAdapter:
    return OracleAdapter(price_source, clock=clock)


@pytest.fixture()
def weth() -> TokenLedger:
    token = TokenLedger("WETH")
    token.mint_to(USER, to_wei(10))
    token.mint_to(LIQUIDATOR, to_wei(20))
    return token


@pytest.fixture()
def wbtc() -> TokenLedger:
    token = TokenLedger("WBTC")
    token.mint_to(USER, to_wei(10))
    return token


@pytest.fixture()
def dsc() -> DebtTokenLedger:
    return DebtTokenLedger("dUSD", owner=ENGINE)


def approve_all(account: str, *tokens: TokenLedger) -> None:
    for token in tokens:
        token.approve(account, ENGINE, UNLIMITED)


@pytest.fixture()
def engine(
    weth: TokenLedger, wbtc: TokenLedger, dsc: DebtTokenLedger, oracle: OracleAdapter
) -> SolvencyEngine:
    engine = SolvencyEngine([weth, wbtc], [ETH_USD, BTC_USD], dsc, oracle, address=ENGINE)
    approve_all(USER, weth, wbtc, dsc)
    approve_all(LIQUIDATOR, weth, wbtc, dsc)
    return engine


@pytest.fixture()
def deposited(engine: SolvencyEngine) -> SolvencyEngine:
    engine.deposit_collateral(USER, "WETH", to_wei(10))
    return engine


@pytest.fixture()
def deposited_and_minted(engine: SolvencyEngine) -> SolvencyEngine:
    engine.deposit_collateral_and_mint(USER, "WETH", to_wei(10), to_wei(100))
    return engine


# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------


@pytest.fixture()
def sample_app_config() -> AppConfig:
    return AppConfig(
        engine=EngineConfig(
            address=ENGINE,
            collateral=(
                CollateralConfig(token="WETH", price_feed=ETH_USD),
                CollateralConfig(token="WBTC", price_feed=BTC_USD),
            ),
        ),
        oracle=OracleConfig(staleness_timeout_seconds=10800),
    )


SAMPLE_YAML = textwrap.dedent("""\
    engine:
      address: test-engine
      collateral:
        - token: WETH
          price_feed: "0xaaa"
        - token: WBTC
          price_feed: "0xbbb"
    oracle:
      staleness_timeout_seconds: 3600
      pyth:
        hermes_url: "https://hermes.example.com"
        feeds: {ETH: "aaa", BTC: "bbb"}
""")


@pytest.fixture()
def sample_yaml_path(tmp_path: Path) -> Path:
    cfg_file = tmp_path / "config.yaml"
    cfg_file.write_text(SAMPLE_YAML)
    return cfg_file
