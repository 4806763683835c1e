"""Tests for pm_clearing.domain.amm — constant-product math, fee, prices."""

import random
from datetime import timedelta
from decimal import Decimal

import pytest

from src.pm_account.domain.claims import ClaimLedger
from src.pm_clearing.domain.amm import (
    apply_swap,
    calc_swap_fee,
    implied_prices,
    quote_swap,
)
from src.pm_common.enums import Side
from src.pm_common.errors import InsufficientBalanceError, InvalidParamsError, SlippageError
from src.pm_market.domain.models import Market
from tests.helpers import E18, START


def _market(yes: int, no: int, fee_bps: int = 0) -> Market:
    return Market(
        id=0,
        question="q",
        creator="c",
        close_time=START + timedelta(days=1),
        resolve_after=START + timedelta(days=2),
        fee_bps=fee_bps,
        collateral=yes,
        yes_reserve=yes,
        no_reserve=no,
        created_at=START,
    )


class TestFee:
    def test_fee_floor(self) -> None:
        assert calc_swap_fee(10_000, 30) == 30
        assert calc_swap_fee(333, 30) == 0

    def test_max_fee_never_consumes_whole_input(self) -> None:
        assert calc_swap_fee(1, 1000) == 0
        assert calc_swap_fee(10, 1000) == 1


class TestQuote:
    def test_constant_product_example(self) -> None:
        # Reserves 1000/1000, swap 100 in with no fee.
        q = quote_swap(1000 * E18, 1000 * E18, 100 * E18, 0)
        assert q.fee_units == 0
        assert q.out_units == 90_909_090_909_090_909_090

    def test_fee_reduces_effective_input(self) -> None:
        q = quote_swap(1000 * E18, 1000 * E18, 100 * E18, 100)
        assert q.fee_units == E18
        assert q.in_after_fee == 99 * E18
        assert q.out_units == (1000 * E18 * 99 * E18) // (1099 * E18)

    def test_output_always_below_reserve(self) -> None:
        assert quote_swap(10, 10, 10**30, 0).out_units == 9

    def test_one_unit_trade_rounds_to_zero(self) -> None:
        assert quote_swap(1000 * E18, 1000 * E18, 1, 30).out_units == 0

    def test_zero_input_rejected(self) -> None:
        with pytest.raises(InvalidParamsError):
            quote_swap(100, 100, 0, 0)

    def test_output_strictly_increases_as_fee_decreases(self) -> None:
        outs = [quote_swap(1000 * E18, 800 * E18, 50 * E18, fee).out_units
                for fee in (1000, 500, 100, 30, 1, 0)]
        assert all(a < b for a, b in zip(outs, outs[1:]))

    def test_product_never_decreases(self) -> None:
        rng = random.Random(7)
        for _ in range(500):
            r_in = rng.randint(1, 10**24)
            r_out = rng.randint(1, 10**24)
            amount = rng.randint(1, 10**24)
            fee = rng.randint(0, 1000)
            q = quote_swap(r_in, r_out, amount, fee)
            assert (r_in + amount) * (r_out - q.out_units) >= r_in * r_out
            assert r_out - q.out_units > 0


class TestApplySwap:
    def test_updates_reserves_and_balances(self) -> None:
        market = _market(1000 * E18, 1000 * E18, fee_bps=100)
        ledger = ClaimLedger()
        ledger.credit(0, "alice", Side.YES, 100 * E18)

        result = apply_swap(market, ledger, "alice", Side.YES, 100 * E18, 0)

        assert market.yes_reserve == 1100 * E18  # fee stays in the pool
        assert market.no_reserve == 1000 * E18 - result.out_units
        assert ledger.balance(0, "alice", Side.YES) == 0
        assert ledger.balance(0, "alice", Side.NO) == result.out_units
        assert result.fee_units == E18

    def test_insufficient_balance_leaves_state(self) -> None:
        market = _market(1000, 1000)
        ledger = ClaimLedger()
        ledger.credit(0, "alice", Side.NO, 5)
        with pytest.raises(InsufficientBalanceError):
            apply_swap(market, ledger, "alice", Side.NO, 6, 0)
        assert (market.yes_reserve, market.no_reserve) == (1000, 1000)
        assert ledger.balance(0, "alice", Side.NO) == 5

    def test_slippage_leaves_state(self) -> None:
        market = _market(1000, 1000)
        ledger = ClaimLedger()
        ledger.credit(0, "alice", Side.YES, 100)
        with pytest.raises(SlippageError):
            apply_swap(market, ledger, "alice", Side.YES, 100, 91)
        assert (market.yes_reserve, market.no_reserve) == (1000, 1000)
        assert ledger.balance(0, "alice", Side.YES) == 100

    def test_exact_min_out_accepted(self) -> None:
        market = _market(1000, 1000)
        ledger = ClaimLedger()
        ledger.credit(0, "alice", Side.YES, 100)
        assert apply_swap(market, ledger, "alice", Side.YES, 100, 90).out_units == 90

    def test_negative_min_out_rejected(self) -> None:
        market = _market(1000, 1000)
        ledger = ClaimLedger()
        ledger.credit(0, "alice", Side.YES, 100)
        with pytest.raises(InvalidParamsError):
            apply_swap(market, ledger, "alice", Side.YES, 10, -1)


class TestImpliedPrices:
    def test_equal_reserves_are_even(self) -> None:
        q = implied_prices(_market(500, 500))
        assert q.yes_price == Decimal("0.5")
        assert q.no_price == Decimal("0.5")

    def test_empty_pool_is_even(self) -> None:
        q = implied_prices(_market(0, 0))
        assert (q.yes_price, q.no_price) == (Decimal("0.5"), Decimal("0.5"))

    def test_larger_yes_reserve_means_cheaper_yes(self) -> None:
        q = implied_prices(_market(3, 1))
        assert q.yes_price == Decimal("0.25")
        assert q.no_price == Decimal("0.75")

    def test_prices_sum_to_one(self) -> None:
        q = implied_prices(_market(1100 * E18, 909 * E18 + 7))
        assert q.yes_price + q.no_price == 1
