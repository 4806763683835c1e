"""Claim ledger — per-market, per-holder YES/NO balances in share units.

Balances default to zero until first credited or debited. Once created a
record is kept; a zero balance is a normal steady state. Only a rollback to a
snapshot taken before the record existed removes it.
"""

from collections import defaultdict
from dataclasses import dataclass

from src.pm_common.enums import Side
from src.pm_common.errors import InsufficientBalanceError


@dataclass
class ClaimPosition:
    yes: int = 0
    no: int = 0

    def get(self, side: Side) -> int:
        return self.yes if side is Side.YES else self.no

    def set(self, side: Side, value: int) -> None:
        if side is Side.YES:
            self.yes = value
        else:
            self.no = value


class ClaimLedger:
    def __init__(self) -> None:
        # _positions[market_id][holder]
        self._positions: dict[int, dict[str, ClaimPosition]] = defaultdict(dict)

    def position(self, market_id: int, holder: str) -> ClaimPosition:
        """Live position record, created on first reference."""
        book = self._positions[market_id]
        if holder not in book:
            book[holder] = ClaimPosition()
        return book[holder]

    def balance(self, market_id: int, holder: str, side: Side) -> int:
        pos = self._positions.get(market_id, {}).get(holder)
        return pos.get(side) if pos else 0

    def credit(self, market_id: int, holder: str, side: Side, units: int) -> None:
        pos = self.position(market_id, holder)
        pos.set(side, pos.get(side) + units)

    def debit(self, market_id: int, holder: str, side: Side, units: int) -> None:
        pos = self.position(market_id, holder)
        available = pos.get(side)
        if available < units:
            raise InsufficientBalanceError(side.value, units, available)
        pos.set(side, available - units)

    def snapshot(self, market_id: int, holder: str) -> ClaimPosition | None:
        """Copy of the holder's position, or None if it has no record yet."""
        pos = self._positions.get(market_id, {}).get(holder)
        return ClaimPosition(yes=pos.yes, no=pos.no) if pos is not None else None

    def restore(self, market_id: int, holder: str, saved: ClaimPosition | None) -> None:
        book = self._positions[market_id]
        if saved is None:
            book.pop(holder, None)
        else:
            book[holder] = ClaimPosition(yes=saved.yes, no=saved.no)

    def holder_total(self, market_id: int, side: Side) -> int:
        return sum(pos.get(side) for pos in self._positions.get(market_id, {}).values())

    def holders(self, market_id: int) -> list[str]:
        return list(self._positions.get(market_id, {}))
