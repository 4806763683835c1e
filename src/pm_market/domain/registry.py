"""Market registry — owned arena of Market records keyed by a dense int id.

Ids are allocated 0, 1, 2, ... and never reused or removed.
"""

import threading
from collections.abc import Callable, Iterator

from src.pm_common.errors import MarketNotFoundError
from src.pm_market.domain.models import Market


class MarketRegistry:
    def __init__(self) -> None:
        self._markets: list[Market] = []
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._markets)

    def __iter__(self) -> Iterator[Market]:
        return iter(list(self._markets))

    def create(self, build: Callable[[int], Market]) -> Market:
        """Allocate the next id and store the market ``build(id)`` returns."""
        with self._lock:
            market_id = len(self._markets)
            market = build(market_id)
            if market.id != market_id:
                raise ValueError(f"built market has id {market.id}, expected {market_id}")
            self._markets.append(market)
            return market

    def get(self, market_id: int) -> Market:
        if not (0 <= market_id < len(self._markets)):
            raise MarketNotFoundError(market_id)
        return self._markets[market_id]
