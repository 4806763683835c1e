"""Post-resolution settlement — pay winning claims, one holder at a time.

Losing-side balances are left in place; they are never paid and carry no
further economic effect.
"""
import logging

from src.pm_account.domain.claims import ClaimLedger
from src.pm_clearing.domain.burn_service import (
    RedemptionResult,
    payout_for_shares,
    release_collateral,
)
from src.pm_common.errors import InsufficientBalanceError
from src.pm_common.fixed_point import ShareConverter
from src.pm_market.domain.lifecycle import require_resolved
from src.pm_market.domain.models import Market

logger = logging.getLogger(__name__)


def apply_winner_redemption(
    market: Market,
    ledger: ClaimLedger,
    holder: str,
    units: int,
    converter: ShareConverter,
) -> RedemptionResult:
    winning = require_resolved(market)
    payout = payout_for_shares(converter, units)
    available = ledger.balance(market.id, holder, winning)
    if available < units:
        raise InsufficientBalanceError(winning.value, units, available)

    release_collateral(market, payout)
    ledger.debit(market.id, holder, winning, units)
    logger.debug(
        "Winner redemption: market=%d holder=%s side=%s units=%d payout=%d",
        market.id, holder, winning.value, units, payout,
    )
    return RedemptionResult(
        market_id=market.id, holder=holder, share_units=units, payout=payout, side=winning
    )
