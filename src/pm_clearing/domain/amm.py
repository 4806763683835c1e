"""Constant-product AMM between the YES and NO claim reserves.

    fee          = in_units * fee_bps // 10000      (floor)
    in_after_fee = in_units - fee
    out          = reserve_out * in_after_fee // (reserve_in + in_after_fee)

The full ``in_units`` (fee included) is added to ``reserve_in``, so the fee
stays in the pool and ``reserve_in * reserve_out`` never decreases. Every
floor division rounds against the trader.
"""
import logging
from dataclasses import dataclass
from decimal import Decimal

from src.pm_account.domain.claims import ClaimLedger
from src.pm_common.enums import Side
from src.pm_common.errors import InsufficientBalanceError, InvalidParamsError, SlippageError
from src.pm_market.domain.models import BPS_DENOMINATOR, Market, PriceQuote

logger = logging.getLogger(__name__)

_HALF = Decimal("0.5")


@dataclass(frozen=True)
class SwapQuote:
    fee_units: int
    in_after_fee: int
    out_units: int


@dataclass(frozen=True)
class SwapResult:
    market_id: int
    holder: str
    from_side: Side
    in_units: int
    out_units: int
    fee_units: int
    yes_reserve: int
    no_reserve: int


def calc_swap_fee(in_units: int, fee_bps: int) -> int:
    """Floor division fee. Sub-unit remainders are not collected."""
    return in_units * fee_bps // BPS_DENOMINATOR


def quote_swap(reserve_in: int, reserve_out: int, in_units: int, fee_bps: int) -> SwapQuote:
    if in_units <= 0:
        raise InvalidParamsError("swap input must be positive")
    fee = calc_swap_fee(in_units, fee_bps)
    in_after_fee = in_units - fee
    out = reserve_out * in_after_fee // (reserve_in + in_after_fee)
    return SwapQuote(fee_units=fee, in_after_fee=in_after_fee, out_units=out)


def apply_swap(
    market: Market,
    ledger: ClaimLedger,
    holder: str,
    from_side: Side,
    in_units: int,
    min_out_units: int,
) -> SwapResult:
    """Trade ``in_units`` of ``from_side`` for the opposite side.

    Validates everything before mutating; the caller owns gating and rollback.
    """
    if in_units <= 0:
        raise InvalidParamsError("swap input must be positive")
    if min_out_units < 0:
        raise InvalidParamsError("minimum output cannot be negative")
    available = ledger.balance(market.id, holder, from_side)
    if available < in_units:
        raise InsufficientBalanceError(from_side.value, in_units, available)

    to_side = from_side.opposite
    reserve_in = market.reserve(from_side)
    reserve_out = market.reserve(to_side)
    quote = quote_swap(reserve_in, reserve_out, in_units, market.fee_bps)
    if quote.out_units < min_out_units:
        raise SlippageError(quote.out_units, min_out_units)

    ledger.debit(market.id, holder, from_side, in_units)
    market.set_reserve(from_side, reserve_in + in_units)
    market.set_reserve(to_side, reserve_out - quote.out_units)
    ledger.credit(market.id, holder, to_side, quote.out_units)

    logger.debug(
        "Swap: market=%d holder=%s %s in=%d out=%d fee=%d reserves=%d/%d",
        market.id, holder, from_side.value, in_units, quote.out_units,
        quote.fee_units, market.yes_reserve, market.no_reserve,
    )
    return SwapResult(
        market_id=market.id,
        holder=holder,
        from_side=from_side,
        in_units=in_units,
        out_units=quote.out_units,
        fee_units=quote.fee_units,
        yes_reserve=market.yes_reserve,
        no_reserve=market.no_reserve,
    )


def implied_prices(market: Market) -> PriceQuote:
    """YES probability = no_reserve / (yes_reserve + no_reserve); NO is the complement.

    A side with the larger reserve is cheaper to acquire, hence the inversion.
    """
    total = market.yes_reserve + market.no_reserve
    if total == 0:
        yes_price = _HALF
    else:
        yes_price = Decimal(market.no_reserve) / Decimal(total)
    return PriceQuote(
        market_id=market.id,
        yes_price=yes_price,
        no_price=Decimal(1) - yes_price,
        yes_reserve=market.yes_reserve,
        no_reserve=market.no_reserve,
    )
