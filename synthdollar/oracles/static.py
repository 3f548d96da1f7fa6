"""In-memory price source whose answers are set by hand."""
from __future__ import annotations

import time
from typing import Callable, Optional

from ..models import PriceReading

DEFAULT_DECIMALS = 8


class StaticPriceSource:
    """Settable feeds, used by scenarios and tests to move prices."""

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self._readings: dict[str, PriceReading] = {}

    def set_price(
        self,
        feed_id: str,
        price: int,
        decimals: int = DEFAULT_DECIMALS,
        observed_at: Optional[float] = None,
    ) -> PriceReading:
        reading = PriceReading(
            price=price,
            decimals=decimals,
            observed_at=self._clock() if observed_at is None else observed_at,
        )
        self._readings[feed_id] = reading
        return reading

    def update_answer(self, feed_id: str, price: int) -> PriceReading:
        """Replace the price of an existing feed, keeping its decimals."""
        current = self._readings.get(feed_id)
        decimals = current.decimals if current else DEFAULT_DECIMALS
        return self.set_price(feed_id, price, decimals)

    def latest_reading(self, feed_id: str) -> Optional[PriceReading]:
        return self._readings.get(feed_id)
