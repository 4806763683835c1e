"""Pydantic request/response schemas for the market and trading API.

Amounts are plain ints: collateral in native token units, claims in
18-decimal share units. Zero passes schema validation on purpose so the
engine reports it with its own InvalidParams code.
"""
from datetime import datetime

from pydantic import BaseModel, Field

from src.pm_clearing.domain.amm import SwapResult
from src.pm_clearing.domain.burn_service import RedemptionResult
from src.pm_clearing.domain.mint_service import MintResult
from src.pm_common.enums import MarketPhase, Side
from src.pm_engine.engine import BuyResult
from src.pm_market.domain.models import Market, PriceQuote

# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


class CreateMarketRequest(BaseModel):
    question: str = Field(min_length=1, max_length=500)
    close_time: datetime
    resolve_after: datetime
    seed_collateral: int = Field(ge=0, description="Native collateral units seeding both reserves")
    fee_bps: int = Field(0, ge=0, description="Swap fee in basis points, at most 1000")


class MintRequest(BaseModel):
    amount: int = Field(ge=0, description="Collateral to convert into YES+NO pairs")


class SwapRequest(BaseModel):
    from_side: Side
    in_units: int = Field(ge=0)
    min_out_units: int = Field(0, ge=0)


class BuyRequest(BaseModel):
    amount: int = Field(ge=0, description="Collateral to mint and swap into one side")
    min_out_units: int = Field(0, ge=0, description="Minimum output of the embedded swap")


class RedeemRequest(BaseModel):
    units: int = Field(ge=0, description="Share units (pairs, or winning claims)")


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------


class MarketDetail(BaseModel):
    id: int
    question: str
    creator: str
    phase: MarketPhase
    close_time: datetime
    resolve_after: datetime
    resolved: bool
    outcome: Side | None
    fee_bps: int
    collateral: int
    yes_reserve: int
    no_reserve: int
    created_at: datetime
    resolved_at: datetime | None

    @classmethod
    def from_domain(cls, m: Market, phase: MarketPhase) -> "MarketDetail":
        return cls(
            id=m.id,
            question=m.question,
            creator=m.creator,
            phase=phase,
            close_time=m.close_time,
            resolve_after=m.resolve_after,
            resolved=m.resolved,
            outcome=m.outcome,
            fee_bps=m.fee_bps,
            collateral=m.collateral,
            yes_reserve=m.yes_reserve,
            no_reserve=m.no_reserve,
            created_at=m.created_at,
            resolved_at=m.resolved_at,
        )


class PricesOut(BaseModel):
    market_id: int
    yes_price: str  # decimal string, yes_price + no_price == 1
    no_price: str
    yes_reserve: int
    no_reserve: int

    @classmethod
    def from_quote(cls, q: PriceQuote) -> "PricesOut":
        return cls(
            market_id=q.market_id,
            yes_price=str(q.yes_price),
            no_price=str(q.no_price),
            yes_reserve=q.yes_reserve,
            no_reserve=q.no_reserve,
        )


class BalancesOut(BaseModel):
    market_id: int
    holder: str
    yes_units: int
    no_units: int


class MintOut(BaseModel):
    market_id: int
    collateral_amount: int
    share_units: int

    @classmethod
    def from_result(cls, r: MintResult) -> "MintOut":
        return cls(
            market_id=r.market_id, collateral_amount=r.collateral_amount, share_units=r.share_units
        )


class SwapOut(BaseModel):
    market_id: int
    from_side: Side
    in_units: int
    out_units: int
    fee_units: int
    yes_reserve: int
    no_reserve: int

    @classmethod
    def from_result(cls, r: SwapResult) -> "SwapOut":
        return cls(
            market_id=r.market_id,
            from_side=r.from_side,
            in_units=r.in_units,
            out_units=r.out_units,
            fee_units=r.fee_units,
            yes_reserve=r.yes_reserve,
            no_reserve=r.no_reserve,
        )


class BuyOut(BaseModel):
    market_id: int
    side: Side
    collateral_amount: int
    minted_units: int
    swap_out_units: int
    fee_units: int
    total_units: int

    @classmethod
    def from_result(cls, r: BuyResult) -> "BuyOut":
        return cls(
            market_id=r.market_id,
            side=r.side,
            collateral_amount=r.collateral_amount,
            minted_units=r.minted_units,
            swap_out_units=r.swap_out_units,
            fee_units=r.fee_units,
            total_units=r.total_units,
        )


class RedemptionOut(BaseModel):
    market_id: int
    side: Side | None
    share_units: int
    payout: int

    @classmethod
    def from_result(cls, r: RedemptionResult) -> "RedemptionOut":
        return cls(market_id=r.market_id, side=r.side, share_units=r.share_units, payout=r.payout)
