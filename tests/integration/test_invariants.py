"""Randomised operation sequences against the solvency invariants."""
from __future__ import annotations

import random

import pytest

from synthdollar.engine import SolvencyEngine
from synthdollar.engine.health import is_broken
from synthdollar.errors import EngineError
from synthdollar.oracles import OracleAdapter
from synthdollar.tokens import DebtTokenLedger, TokenError, TokenLedger
from synthdollar.units import to_wei

ENGINE = "synthdollar-engine"
ACCOUNTS = ("alice", "bob", "carol")
ASSETS = ("WETH", "WBTC")
UNLIMITED = 2**256 - 1


@pytest.fixture()
def world(oracle: OracleAdapter) -> tuple[SolvencyEngine, dict[str, TokenLedger], DebtTokenLedger]:
    tokens = {asset: TokenLedger(asset) for asset in ASSETS}
    dsc = DebtTokenLedger("dUSD", owner=ENGINE)
    engine = SolvencyEngine(
        list(tokens.values()), ["ETH/USD", "BTC/USD"], dsc, oracle, address=ENGINE
    )
    for account in ACCOUNTS:
        for token in tokens.values():
            token.mint_to(account, to_wei(100))
            token.approve(account, ENGINE, UNLIMITED)
        dsc.approve(account, ENGINE, UNLIMITED)
    return engine, tokens, dsc


def _random_call(rng: random.Random, engine: SolvencyEngine) -> None:
    account = rng.choice(ACCOUNTS)
    asset = rng.choice(ASSETS)
    amount = to_wei(rng.randint(1, 50))
    debt = to_wei(rng.randint(1, 20_000))
    action = rng.choice(
        ["deposit", "mint", "deposit_and_mint", "redeem", "burn", "redeem_for_debt"]
    )
    if action == "deposit":
        engine.deposit_collateral(account, asset, amount)
    elif action == "mint":
        engine.mint(account, debt)
    elif action == "deposit_and_mint":
        engine.deposit_collateral_and_mint(account, asset, amount, debt)
    elif action == "redeem":
        engine.redeem_collateral(account, asset, amount)
    elif action == "burn":
        engine.burn(account, debt)
    else:
        engine.redeem_collateral_for_debt(account, asset, amount, debt)


class TestInvariants:
    @pytest.mark.parametrize("seed", range(8))
    def test_random_operations_keep_engine_solvent(self, world, seed: int) -> None:
        engine, tokens, dsc = world
        rng = random.Random(seed)

        for _ in range(200):
            try:
                _random_call(rng, engine)
            except (EngineError, TokenError):
                pass

            assert engine.total_collateral_value() >= dsc.total_supply()
            assert sum(
                engine.account_information(a).total_debt for a in ACCOUNTS
            ) == dsc.total_supply()
            for asset, token in tokens.items():
                assert sum(
                    engine.collateral_balance_of(a, asset) for a in ACCOUNTS
                ) == token.balance_of(ENGINE)
            for account in ACCOUNTS:
                assert not is_broken(engine.health_factor(account))
