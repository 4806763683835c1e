"""Pair redemption — destroy matched YES+NO pairs, release collateral.

A matched pair is worth exactly one share unit of collateral whatever the
AMM price, because exactly one side wins.
"""
import logging
from dataclasses import dataclass

from src.pm_account.domain.claims import ClaimLedger
from src.pm_common.enums import Side
from src.pm_common.errors import (
    InsufficientBalanceError,
    InsufficientCollateralError,
    InvalidParamsError,
)
from src.pm_common.fixed_point import ShareConverter
from src.pm_market.domain.models import Market

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RedemptionResult:
    market_id: int
    holder: str
    share_units: int
    payout: int          # native collateral units
    side: Side | None    # None for pair redemption


def release_collateral(market: Market, payout: int) -> None:
    """Decrement tracked collateral, refusing to go below zero."""
    if market.collateral < payout:
        logger.error(
            "Solvency breach: market=%d payout=%d tracked=%d",
            market.id, payout, market.collateral,
        )
        raise InsufficientCollateralError(market.id, payout, market.collateral)
    market.collateral -= payout
    market.collateral_paid_out += payout


def payout_for_shares(converter: ShareConverter, share_units: int) -> int:
    if share_units <= 0:
        raise InvalidParamsError("redemption units must be positive")
    payout = converter.to_collateral(share_units)
    if payout == 0:
        raise InvalidParamsError(f"{share_units} share units redeem for zero collateral")
    return payout


def apply_pair_redemption(
    market: Market,
    ledger: ClaimLedger,
    holder: str,
    pair_units: int,
    converter: ShareConverter,
) -> RedemptionResult:
    payout = payout_for_shares(converter, pair_units)
    for side in (Side.YES, Side.NO):
        available = ledger.balance(market.id, holder, side)
        if available < pair_units:
            raise InsufficientBalanceError(side.value, pair_units, available)

    release_collateral(market, payout)
    ledger.debit(market.id, holder, Side.YES, pair_units)
    ledger.debit(market.id, holder, Side.NO, pair_units)
    logger.debug(
        "Pair redemption: market=%d holder=%s pairs=%d payout=%d tracked=%d",
        market.id, holder, pair_units, payout, market.collateral,
    )
    return RedemptionResult(
        market_id=market.id, holder=holder, share_units=pair_units, payout=payout, side=None
    )
