"""Global enums — values are also the wire format of API payloads and events."""

from enum import Enum


class Side(str, Enum):
    YES = "YES"
    NO = "NO"

    @property
    def opposite(self) -> "Side":
        return Side.NO if self is Side.YES else Side.YES


class MarketPhase(str, Enum):
    """Lifecycle: OPEN -> CLOSED -> RESOLVED (terminal)."""
    OPEN = "OPEN"
    CLOSED = "CLOSED"
    RESOLVED = "RESOLVED"


class EventType(str, Enum):
    MARKET_CREATED = "MARKET_CREATED"
    SET_MINTED = "SET_MINTED"
    SWAP_EXECUTED = "SWAP_EXECUTED"
    PAIRS_REDEEMED = "PAIRS_REDEEMED"
    MARKET_RESOLVED = "MARKET_RESOLVED"
    WINNINGS_REDEEMED = "WINNINGS_REDEEMED"
    FEE_RECIPIENT_UPDATED = "FEE_RECIPIENT_UPDATED"
