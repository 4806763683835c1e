"""Collateral endpoints for the in-process mock token.

POST /collateral/faucet   — mint mock collateral to the caller (FAUCET_ENABLED only)
POST /collateral/approve  — set the engine's allowance over the caller's collateral
GET  /collateral/balance  — caller's balance and allowance
"""
import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel, Field

from config.settings import settings
from src.pm_collateral.infrastructure.mock_token import InMemoryCollateralToken
from src.pm_common.errors import AppError, CollateralTransferFailedError
from src.pm_common.response import ApiResponse, success_response
from src.pm_engine.application.container import get_token
from src.pm_gateway.auth.dependencies import get_current_account

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/collateral", tags=["collateral"])

Token = Annotated[InMemoryCollateralToken, Depends(get_token)]
Account = Annotated[str, Depends(get_current_account)]


class FaucetRequest(BaseModel):
    amount: int = Field(gt=0)


class ApproveRequest(BaseModel):
    amount: int = Field(ge=0)


def _balance_view(token: InMemoryCollateralToken, account: str) -> dict[str, object]:
    return {
        "account": account,
        "symbol": token.symbol,
        "decimals": token.decimals(),
        "balance": token.balance_of(account),
        "allowance": token.allowance(account, settings.ENGINE_ACCOUNT),
    }


@router.post("/faucet")
async def faucet(body: FaucetRequest, request: Request, account: Account, token: Token) -> ApiResponse:
    if not settings.FAUCET_ENABLED:
        raise AppError(6010, "Collateral faucet is disabled", http_status=403)
    token.mint(account, body.amount)
    logger.info("Faucet: account=%s amount=%d", account, body.amount)
    return success_response(_balance_view(token, account), request)


@router.post("/approve")
async def approve(body: ApproveRequest, request: Request, account: Account, token: Token) -> ApiResponse:
    result = token.approve(account, settings.ENGINE_ACCOUNT, body.amount)
    if result is not True:
        raise CollateralTransferFailedError("approve", result)
    return success_response(_balance_view(token, account), request)


@router.get("/balance")
async def balance(request: Request, account: Account, token: Token) -> ApiResponse:
    return success_response(_balance_view(token, account), request)
