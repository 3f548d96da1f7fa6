"""Price source protocol — raw price feed abstraction."""
from typing import Optional, Protocol

from ..models import PriceReading


class PriceSource(Protocol):
    """Abstract interface for reading the latest answer of a price feed."""

    def latest_reading(self, feed_id: str) -> Optional[PriceReading]: ...
