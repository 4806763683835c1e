# src/pm_admin/api/router.py
"""Admin REST API — resolution, fee recipient, stats, invariant audit."""
from typing import Annotated

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel, Field

from src.pm_common.enums import Side
from src.pm_common.response import ApiResponse, success_response
from src.pm_engine.application.container import get_engine
from src.pm_engine.application.schemas import MarketDetail
from src.pm_engine.engine import PredictionMarketEngine
from src.pm_gateway.auth.dependencies import get_current_account

router = APIRouter(prefix="/admin", tags=["admin"])

Engine = Annotated[PredictionMarketEngine, Depends(get_engine)]
Account = Annotated[str, Depends(get_current_account)]


class ResolveRequest(BaseModel):
    outcome: Side


class FeeRecipientRequest(BaseModel):
    recipient: str = Field(min_length=1, max_length=128)


@router.post("/markets/{market_id}/resolve")
async def resolve_market(
    market_id: int, body: ResolveRequest, request: Request, account: Account, engine: Engine
) -> ApiResponse:
    market = engine.resolve(account, market_id, body.outcome)
    detail = MarketDetail.from_domain(market, engine.phase(market_id))
    return success_response(detail.model_dump(mode="json"), request, "Market resolved")


@router.put("/fee-recipient")
async def set_fee_recipient(
    body: FeeRecipientRequest, request: Request, account: Account, engine: Engine
) -> ApiResponse:
    engine.set_fee_recipient(account, body.recipient)
    return success_response({"fee_recipient": engine.fee_recipient}, request)


@router.get("/markets/{market_id}/stats")
async def market_stats(
    market_id: int, request: Request, account: Account, engine: Engine
) -> ApiResponse:
    engine.require_owner(account, f"read stats of market {market_id}")
    return success_response(engine.market_stats(market_id), request)


@router.get("/invariants")
async def verify_invariants(request: Request, account: Account, engine: Engine) -> ApiResponse:
    engine.require_owner(account, "audit invariants")
    return success_response(engine.verify_all_invariants(), request)
