"""Mint — convert collateral into equal YES+NO claim pairs.

Never touches the AMM reserves. Collateral must already be in custody when
this runs (the engine pulls it first).
"""
import logging
from dataclasses import dataclass

from src.pm_account.domain.claims import ClaimLedger
from src.pm_common.enums import Side
from src.pm_common.errors import InvalidParamsError
from src.pm_common.fixed_point import ShareConverter
from src.pm_market.domain.models import Market

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MintResult:
    market_id: int
    holder: str
    collateral_amount: int
    share_units: int


def shares_for_deposit(converter: ShareConverter, amount: int) -> int:
    """Share units a deposit buys; rejects deposits that round to nothing."""
    if amount <= 0:
        raise InvalidParamsError("collateral amount must be positive")
    shares = converter.to_shares(amount)
    if shares == 0:
        raise InvalidParamsError(f"collateral amount {amount} is below one share unit")
    return shares


def apply_mint(
    market: Market,
    ledger: ClaimLedger,
    holder: str,
    amount: int,
    converter: ShareConverter,
) -> MintResult:
    shares = shares_for_deposit(converter, amount)
    market.collateral += amount
    market.collateral_deposited += amount
    ledger.credit(market.id, holder, Side.YES, shares)
    ledger.credit(market.id, holder, Side.NO, shares)
    logger.debug(
        "Mint: market=%d holder=%s collateral=%d shares=%d tracked=%d",
        market.id, holder, amount, shares, market.collateral,
    )
    return MintResult(
        market_id=market.id, holder=holder, collateral_amount=amount, share_units=shares
    )
