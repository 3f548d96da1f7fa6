"""Asset amount <-> USD value conversion at the current oracle price."""
from __future__ import annotations

from typing import Mapping

from ..errors import NotAllowedAsset
from ..oracles.adapter import OracleAdapter
from ..units import PRECISION, normalize_price


class Valuation:
    """Stateless conversions over the registered assets.

    Prices are re-read from the oracle on every call; nothing is cached.
    """

    def __init__(self, price_feeds: Mapping[str, str], oracle: OracleAdapter) -> None:
        self._price_feeds = price_feeds
        self._oracle = oracle

    def price_of(self, asset: str) -> int:
        """Current USD price of one whole unit of ``asset``, 18 decimals."""
        feed = self._price_feeds.get(asset)
        if feed is None:
            raise NotAllowedAsset(asset)
        reading = self._oracle.latest_price(feed)
        return normalize_price(reading.price, reading.decimals)

    def usd_value(self, asset: str, amount: int) -> int:
        return self.price_of(asset) * amount // PRECISION

    def asset_amount_from_usd(self, asset: str, usd_amount: int) -> int:
        return usd_amount * PRECISION // self.price_of(asset)

    def collateral_value(self, balances: Mapping[str, int]) -> int:
        """Sum of USD values; assets with a zero balance skip the oracle."""
        return sum(
            self.usd_value(asset, amount) for asset, amount in balances.items() if amount
        )
