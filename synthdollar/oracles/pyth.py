"""Pyth Network price source."""
from __future__ import annotations

import logging
import ssl
from typing import Optional

import aiohttp
import certifi

from ..config import PythConfig
from ..models import PriceReading

logger = logging.getLogger(__name__)


def _normalize_feed_id(feed_id: str) -> str:
    feed_id = feed_id.lower()
    return feed_id[2:] if feed_id.startswith("0x") else feed_id


class PythPriceSource:
    """Cache the latest Pyth Hermes answers and serve them synchronously."""

    def __init__(self, config: PythConfig) -> None:
        self.hermes_url = config.hermes_url
        self.price_feeds = dict(config.feeds)
        self._readings: dict[str, PriceReading] = {}

    def latest_reading(self, feed_id: str) -> Optional[PriceReading]:
        return self._readings.get(_normalize_feed_id(feed_id))

    async def refresh(self, feed_ids: list[str] | None = None) -> dict[str, PriceReading]:
        """Fetch current prices from Pyth Network into the cache.

        Args:
            feed_ids: Optional list of feed ids to fetch. If None, fetches all
                      configured feeds.

        Returns the readings received by this call; on failure the cache is
        left as it was and an empty dict is returned.
        """
        received: dict[str, PriceReading] = {}

        if feed_ids is None:
            feed_ids = list(self.price_feeds.values())
        wanted = sorted({_normalize_feed_id(fid) for fid in feed_ids})
        if not wanted:
            return received

        query_params = "&".join([f"ids[]={fid}" for fid in wanted])
        url = f"{self.hermes_url}?{query_params}"

        ssl_context = ssl.create_default_context(cafile=certifi.where())
        connector = aiohttp.TCPConnector(ssl=ssl_context)

        try:
            async with aiohttp.ClientSession(connector=connector) as session:
                async with session.get(url) as response:
                    if response.status != 200:
                        logger.error(
                            "Error fetching prices from Pyth: HTTP %s", response.status
                        )
                        return received

                    data = await response.json()
                    for item in data.get("parsed", []):
                        feed_id = _normalize_feed_id(str(item.get("id", "")))
                        price_data = item.get("price", {})
                        received[feed_id] = PriceReading(
                            price=int(price_data.get("price", 0)),
                            decimals=-int(price_data.get("expo", 0)),
                            observed_at=float(price_data.get("publish_time", 0)),
                        )

        except (
            aiohttp.ClientError,
            ConnectionError,
            ValueError,
            AttributeError,
            TypeError,
            KeyError,
        ) as e:
            logger.error("Error fetching prices from Pyth: %s", e)
            return {}

        self._readings.update(received)
        logger.info("Fetched %d price(s) from Pyth Network", len(received))
        return received
