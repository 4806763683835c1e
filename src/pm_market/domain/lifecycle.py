"""Market lifecycle gates.

OPEN (now < close_time) -> CLOSED (closed, unresolved) -> RESOLVED (terminal).
Minting, swapping and pair redemption require OPEN.
"""

from datetime import datetime

from src.pm_common.enums import MarketPhase, Side
from src.pm_common.errors import (
    InvalidTimeError,
    MarketAlreadyResolvedError,
    MarketClosedError,
    MarketNotResolvedError,
)
from src.pm_market.domain.models import Market


def market_phase(market: Market, now: datetime) -> MarketPhase:
    if market.resolved:
        return MarketPhase.RESOLVED
    if now >= market.close_time:
        return MarketPhase.CLOSED
    return MarketPhase.OPEN


def require_open(market: Market, now: datetime) -> None:
    if now >= market.close_time:
        raise MarketClosedError(market.id)
    if market.resolved:
        raise MarketAlreadyResolvedError(market.id)


def require_resolvable(market: Market, now: datetime) -> None:
    if market.resolved:
        raise MarketAlreadyResolvedError(market.id)
    if now < market.resolve_after:
        raise InvalidTimeError(
            f"market {market.id} cannot resolve before {market.resolve_after.isoformat()}"
        )


def require_resolved(market: Market) -> Side:
    """Winning side of a resolved market."""
    if not market.resolved or market.outcome is None:
        raise MarketNotResolvedError(market.id)
    return market.outcome
