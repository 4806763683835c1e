"""Domain models for pm_market — pure dataclasses, no business logic."""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from src.pm_common.enums import Side

MAX_FEE_BPS = 1000  # 10%
BPS_DENOMINATOR = 10_000


@dataclass
class Market:
    id: int
    question: str
    creator: str
    close_time: datetime
    resolve_after: datetime
    fee_bps: int
    collateral: int             # native collateral units held for this market
    yes_reserve: int            # 18-decimal share units
    no_reserve: int             # 18-decimal share units
    created_at: datetime
    resolved: bool = False
    outcome: Side | None = None
    resolved_at: datetime | None = None
    collateral_deposited: int = 0   # lifetime inflow, seed included
    collateral_paid_out: int = 0    # lifetime outflow

    def reserve(self, side: Side) -> int:
        return self.yes_reserve if side is Side.YES else self.no_reserve

    def set_reserve(self, side: Side, value: int) -> None:
        if side is Side.YES:
            self.yes_reserve = value
        else:
            self.no_reserve = value


@dataclass(frozen=True)
class PriceQuote:
    """Implied probabilities from pool reserves. yes + no == 1 exactly."""

    market_id: int
    yes_price: Decimal
    no_price: Decimal
    yes_reserve: int
    no_reserve: int
