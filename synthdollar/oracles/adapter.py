"""Oracle adapter — the single entry point for external price data.

Readings that are missing, stale or non-positive never reach the engine.
"""
from __future__ import annotations

import logging
import time
from typing import Callable

from ..errors import InvalidPrice, PriceStale, PriceUnavailable
from ..interfaces.price_source import PriceSource
from ..models import PriceReading

logger = logging.getLogger(__name__)

STALENESS_TIMEOUT = 3 * 60 * 60


class OracleAdapter:
    """Validate freshness and sign of the latest reading of a feed."""

    def __init__(
        self,
        source: PriceSource,
        timeout: float = STALENESS_TIMEOUT,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._source = source
        self.timeout = timeout
        self._clock = clock

    def latest_price(self, feed_id: str) -> PriceReading:
        reading = self._source.latest_reading(feed_id)
        if reading is None:
            raise PriceUnavailable(feed_id)

        if reading.observed_at <= 0:
            raise PriceStale(feed_id, None)

        age = self._clock() - reading.observed_at
        if age > self.timeout:
            logger.warning("Rejecting stale reading for %s (%.0fs old)", feed_id, age)
            raise PriceStale(feed_id, age)

        if reading.price <= 0:
            logger.warning("Rejecting non-positive price %d for %s", reading.price, feed_id)
            raise InvalidPrice(feed_id, reading.price)

        return reading
