"""Market and trading REST endpoints.

POST /markets                             — create (seed collateral pulled from caller)
GET  /markets/{market_id}                 — detail + lifecycle phase
GET  /markets/{market_id}/prices          — implied YES/NO probabilities
GET  /markets/{market_id}/balances        — caller's YES/NO claim units
POST /markets/{market_id}/mint            — collateral -> YES+NO pairs
POST /markets/{market_id}/swap            — YES <-> NO through the AMM
POST /markets/{market_id}/buy-yes|buy-no  — mint then swap
POST /markets/{market_id}/redeem-pairs    — YES+NO pairs -> collateral (open markets)
POST /markets/{market_id}/redeem-winner   — winning claims -> collateral (resolved markets)

Engine calls are synchronous and never await, so each request's operation
runs to completion before the event loop schedules another.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request

from src.pm_common.response import ApiResponse, success_response
from src.pm_engine.application.container import get_engine
from src.pm_engine.application.schemas import (
    BalancesOut,
    BuyOut,
    BuyRequest,
    CreateMarketRequest,
    MarketDetail,
    MintOut,
    MintRequest,
    PricesOut,
    RedeemRequest,
    RedemptionOut,
    SwapOut,
    SwapRequest,
)
from src.pm_engine.engine import PredictionMarketEngine
from src.pm_gateway.auth.dependencies import get_current_account

router = APIRouter(prefix="/markets", tags=["markets"])

Engine = Annotated[PredictionMarketEngine, Depends(get_engine)]
Account = Annotated[str, Depends(get_current_account)]


@router.post("", status_code=201)
async def create_market(
    body: CreateMarketRequest, request: Request, account: Account, engine: Engine
) -> ApiResponse:
    market_id = engine.create_market(
        account,
        body.question,
        body.close_time,
        body.resolve_after,
        body.seed_collateral,
        body.fee_bps,
    )
    market = engine.get_market(market_id)
    detail = MarketDetail.from_domain(market, engine.phase(market_id))
    return success_response(detail.model_dump(mode="json"), request, "Market created")


@router.get("/{market_id}")
async def get_market(market_id: int, request: Request, engine: Engine) -> ApiResponse:
    market = engine.get_market(market_id)
    detail = MarketDetail.from_domain(market, engine.phase(market_id))
    return success_response(detail.model_dump(mode="json"), request)


@router.get("/{market_id}/prices")
async def get_prices(market_id: int, request: Request, engine: Engine) -> ApiResponse:
    prices = PricesOut.from_quote(engine.get_prices(market_id))
    return success_response(prices.model_dump(mode="json"), request)


@router.get("/{market_id}/balances")
async def get_balances(
    market_id: int, request: Request, account: Account, engine: Engine
) -> ApiResponse:
    yes_units, no_units = engine.balances(market_id, account)
    out = BalancesOut(market_id=market_id, holder=account, yes_units=yes_units, no_units=no_units)
    return success_response(out.model_dump(mode="json"), request)


@router.post("/{market_id}/mint")
async def mint_set(
    market_id: int, body: MintRequest, request: Request, account: Account, engine: Engine
) -> ApiResponse:
    result = engine.mint_set(account, market_id, body.amount)
    return success_response(MintOut.from_result(result).model_dump(mode="json"), request)


@router.post("/{market_id}/swap")
async def swap(
    market_id: int, body: SwapRequest, request: Request, account: Account, engine: Engine
) -> ApiResponse:
    result = engine.swap(account, market_id, body.from_side, body.in_units, body.min_out_units)
    return success_response(SwapOut.from_result(result).model_dump(mode="json"), request)


@router.post("/{market_id}/buy-yes")
async def buy_yes(
    market_id: int, body: BuyRequest, request: Request, account: Account, engine: Engine
) -> ApiResponse:
    result = engine.buy_yes(account, market_id, body.amount, body.min_out_units)
    return success_response(BuyOut.from_result(result).model_dump(mode="json"), request)


@router.post("/{market_id}/buy-no")
async def buy_no(
    market_id: int, body: BuyRequest, request: Request, account: Account, engine: Engine
) -> ApiResponse:
    result = engine.buy_no(account, market_id, body.amount, body.min_out_units)
    return success_response(BuyOut.from_result(result).model_dump(mode="json"), request)


@router.post("/{market_id}/redeem-pairs")
async def redeem_pairs(
    market_id: int, body: RedeemRequest, request: Request, account: Account, engine: Engine
) -> ApiResponse:
    result = engine.redeem_pairs(account, market_id, body.units)
    return success_response(RedemptionOut.from_result(result).model_dump(mode="json"), request)


@router.post("/{market_id}/redeem-winner")
async def redeem_winner(
    market_id: int, body: RedeemRequest, request: Request, account: Account, engine: Engine
) -> ApiResponse:
    result = engine.redeem_winner(account, market_id, body.units)
    return success_response(RedemptionOut.from_result(result).model_dump(mode="json"), request)

