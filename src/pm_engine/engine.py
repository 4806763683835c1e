"""PredictionMarketEngine — stateful orchestrator for all market operations.

Every public operation is atomic and serialized per market:
  - a per-market RLock serializes callers across threads
  - a per-market active marker rejects re-entrant calls (e.g. a collateral
    token calling back into the engine from inside a transfer)
  - the market record and the caller's claims are snapshotted on entry and
    restored if anything raises, including a failed token call
  - collateral is pulled before claims are credited; a pull made by an
    operation that later fails is refunded
  - payouts are pushed only after the market holds its post-operation state
    and the invariants have been checked
  - events are buffered and reach the log only when the operation commits
"""
import logging
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any

from src.pm_account.domain.claims import ClaimLedger
from src.pm_admin.domain.authority import ResolutionAuthority, SingleKeyAuthority
from src.pm_clearing.domain.amm import SwapResult, apply_swap, implied_prices
from src.pm_clearing.domain.burn_service import RedemptionResult, apply_pair_redemption
from src.pm_clearing.domain.invariants import verify_market_invariants
from src.pm_clearing.domain.mint_service import MintResult, apply_mint, shares_for_deposit
from src.pm_clearing.domain.settlement import apply_winner_redemption
from src.pm_clearing.infrastructure.event_log import EventLog, PendingEvents
from src.pm_collateral.domain.token import CollateralToken, safe_transfer, safe_transfer_from
from src.pm_common.datetime_utils import Clock, ensure_utc, utc_now
from src.pm_common.enums import EventType, MarketPhase, Side
from src.pm_common.errors import (
    AppError,
    InternalError,
    InvalidParamsError,
    InvalidTimeError,
    ReentrancyError,
)
from src.pm_common.fixed_point import ShareConverter
from src.pm_market.domain.lifecycle import market_phase, require_open, require_resolvable
from src.pm_market.domain.models import MAX_FEE_BPS, Market, PriceQuote
from src.pm_market.domain.registry import MarketRegistry

logger = logging.getLogger(__name__)

ENGINE_ACCOUNT = "prediction-market-engine"


@dataclass(frozen=True)
class BuyResult:
    """Outcome of a mint-then-swap composite."""

    market_id: int
    holder: str
    side: Side
    collateral_amount: int
    minted_units: int
    swap_out_units: int
    fee_units: int

    @property
    def total_units(self) -> int:
        return self.minted_units + self.swap_out_units


class PredictionMarketEngine:
    def __init__(
        self,
        token: CollateralToken,
        owner: str,
        *,
        account: str = ENGINE_ACCOUNT,
        fee_recipient: str | None = None,
        authority: ResolutionAuthority | None = None,
        clock: Clock = utc_now,
        event_log: EventLog | None = None,
        verify_each_operation: bool = True,
    ) -> None:
        self._token = token
        self.account = account
        # Precision is read once and treated as immutable.
        self.converter = ShareConverter(token.decimals())
        self._admin = SingleKeyAuthority(owner)
        self._authority: ResolutionAuthority = authority or self._admin
        self.fee_recipient = fee_recipient or owner
        self._clock = clock
        self.events = event_log or EventLog(clock)
        self._verify = verify_each_operation

        self._registry = MarketRegistry()
        self._claims = ClaimLedger()
        self._locks: dict[int, threading.RLock] = {}
        self._locks_guard = threading.Lock()
        self._active: set[int] = set()
        self._pulled: dict[int, list[tuple[str, int]]] = {}
        self._payouts: dict[int, list[tuple[str, int]]] = {}

    @property
    def owner(self) -> str:
        return self._admin.owner

    @property
    def market_count(self) -> int:
        return len(self._registry)

    # ------------------------------------------------------------------
    # Transaction scope
    # ------------------------------------------------------------------

    def _lock_for(self, market_id: int) -> threading.RLock:
        with self._locks_guard:
            if market_id not in self._locks:
                self._locks[market_id] = threading.RLock()
            return self._locks[market_id]

    @contextmanager
    def _atomic(self, market_id: int, holder: str) -> Iterator[tuple[Market, PendingEvents]]:
        market = self._registry.get(market_id)
        with self._lock_for(market_id):
            if market_id in self._active:
                raise ReentrancyError(market_id)
            self._active.add(market_id)
            saved_market = replace(market)
            saved_claims = self._claims.snapshot(market_id, holder)
            pending = PendingEvents()
            self._pulled[market_id] = []
            self._payouts[market_id] = []
            try:
                yield market, pending
                if self._verify:
                    violations = verify_market_invariants(market, self._claims, self.converter)
                    if violations:
                        raise InternalError("; ".join(violations))
                for to, amount in self._payouts[market_id]:
                    safe_transfer(self._token, self.account, to, amount)
            except BaseException:
                vars(market).update(vars(saved_market))
                self._claims.restore(market_id, holder, saved_claims)
                self._refund(market_id)
                raise
            finally:
                self._active.discard(market_id)
                self._pulled.pop(market_id, None)
                self._payouts.pop(market_id, None)
            self.events.append_batch(pending.drain())

    def _pull(self, market_id: int, owner: str, amount: int) -> None:
        safe_transfer_from(self._token, self.account, owner, self.account, amount)
        self._pulled[market_id].append((owner, amount))

    def _pay(self, market_id: int, to: str, amount: int) -> None:
        """Queue a payout; it is sent once the operation's state checks pass."""
        self._payouts[market_id].append((to, amount))

    def _refund(self, market_id: int) -> None:
        for owner, amount in reversed(self._pulled.get(market_id, [])):
            try:
                safe_transfer(self._token, self.account, owner, amount)
            except AppError:
                logger.exception(
                    "Refund failed: market=%d owner=%s amount=%d", market_id, owner, amount
                )

    def _now(self) -> datetime:
        return ensure_utc(self._clock())

    @staticmethod
    def _require_account(caller: str) -> None:
        if not caller:
            raise InvalidParamsError("caller account must be non-empty")

    @staticmethod
    def _side(value: Side | str) -> Side:
        try:
            return Side(value)
        except ValueError:
            raise InvalidParamsError(f"side must be YES or NO, got {value!r}") from None

    # ------------------------------------------------------------------
    # Market registry
    # ------------------------------------------------------------------

    def create_market(
        self,
        caller: str,
        question: str,
        close_time: datetime,
        resolve_after: datetime,
        seed_collateral: int,
        fee_bps: int,
    ) -> int:
        """Create a market seeded at 50/50 and return its id."""
        self._require_account(caller)
        now = self._now()
        close_time = ensure_utc(close_time)
        resolve_after = ensure_utc(resolve_after)
        if close_time <= now:
            raise InvalidTimeError("close time must be in the future")
        if resolve_after < close_time:
            raise InvalidTimeError("resolve-after must not precede close time")
        if seed_collateral <= 0:
            raise InvalidParamsError("seed collateral must be positive")
        if not (0 <= fee_bps <= MAX_FEE_BPS):
            raise InvalidParamsError(f"fee_bps must be 0-{MAX_FEE_BPS}, got {fee_bps}")
        seed_shares = shares_for_deposit(self.converter, seed_collateral)

        safe_transfer_from(self._token, self.account, caller, self.account, seed_collateral)

        def build(market_id: int) -> Market:
            return Market(
                id=market_id,
                question=question,
                creator=caller,
                close_time=close_time,
                resolve_after=resolve_after,
                fee_bps=fee_bps,
                collateral=seed_collateral,
                yes_reserve=seed_shares,
                no_reserve=seed_shares,
                created_at=now,
                collateral_deposited=seed_collateral,
            )

        market = self._registry.create(build)
        pending = PendingEvents()
        pending.emit(
            EventType.MARKET_CREATED,
            market.id,
            caller,
            question=question,
            close_time=close_time.isoformat(),
            resolve_after=resolve_after.isoformat(),
            seed_collateral=seed_collateral,
            seed_shares=seed_shares,
            fee_bps=fee_bps,
        )
        self.events.append_batch(pending.drain())
        logger.info(
            "Market created: id=%d creator=%s seed=%d fee_bps=%d close=%s",
            market.id, caller, seed_collateral, fee_bps, close_time.isoformat(),
        )
        return market.id

    def get_market(self, market_id: int) -> Market:
        """Detached copy of the market record."""
        market = self._registry.get(market_id)
        with self._lock_for(market_id):
            return replace(market)

    def phase(self, market_id: int) -> MarketPhase:
        return market_phase(self._registry.get(market_id), self._now())

    def balances(self, market_id: int, holder: str) -> tuple[int, int]:
        self._registry.get(market_id)
        return (
            self._claims.balance(market_id, holder, Side.YES),
            self._claims.balance(market_id, holder, Side.NO),
        )

    # ------------------------------------------------------------------
    # Claim ledger
    # ------------------------------------------------------------------

    def mint_set(self, caller: str, market_id: int, amount: int) -> MintResult:
        self._require_account(caller)
        with self._atomic(market_id, caller) as (market, pending):
            require_open(market, self._now())
            shares_for_deposit(self.converter, amount)
            self._pull(market_id, caller, amount)
            result = apply_mint(market, self._claims, caller, amount, self.converter)
            self._emit_mint(pending, result)
        return result

    def buy_yes(self, caller: str, market_id: int, amount: int, min_out_units: int = 0) -> BuyResult:
        return self._buy(caller, market_id, Side.YES, amount, min_out_units)

    def buy_no(self, caller: str, market_id: int, amount: int, min_out_units: int = 0) -> BuyResult:
        return self._buy(caller, market_id, Side.NO, amount, min_out_units)

    def _buy(
        self, caller: str, market_id: int, side: Side, amount: int, min_out_units: int
    ) -> BuyResult:
        """Mint a set, then swap the freshly minted opposite units into ``side``."""
        self._require_account(caller)
        with self._atomic(market_id, caller) as (market, pending):
            require_open(market, self._now())
            shares_for_deposit(self.converter, amount)
            self._pull(market_id, caller, amount)
            minted = apply_mint(market, self._claims, caller, amount, self.converter)
            self._emit_mint(pending, minted)
            swapped = apply_swap(
                market, self._claims, caller, side.opposite, minted.share_units, min_out_units
            )
            self._emit_swap(pending, swapped)
        return BuyResult(
            market_id=market_id,
            holder=caller,
            side=side,
            collateral_amount=amount,
            minted_units=minted.share_units,
            swap_out_units=swapped.out_units,
            fee_units=swapped.fee_units,
        )

    # ------------------------------------------------------------------
    # AMM exchange
    # ------------------------------------------------------------------

    def swap(
        self,
        caller: str,
        market_id: int,
        from_side: Side,
        in_units: int,
        min_out_units: int = 0,
    ) -> SwapResult:
        self._require_account(caller)
        with self._atomic(market_id, caller) as (market, pending):
            require_open(market, self._now())
            result = apply_swap(
                market, self._claims, caller, self._side(from_side), in_units, min_out_units
            )
            self._emit_swap(pending, result)
        return result

    def get_prices(self, market_id: int) -> PriceQuote:
        market = self._registry.get(market_id)
        with self._lock_for(market_id):
            return implied_prices(market)

    # ------------------------------------------------------------------
    # Settlement
    # ------------------------------------------------------------------

    def redeem_pairs(self, caller: str, market_id: int, pair_units: int) -> RedemptionResult:
        self._require_account(caller)
        with self._atomic(market_id, caller) as (market, pending):
            require_open(market, self._now())
            result = apply_pair_redemption(
                market, self._claims, caller, pair_units, self.converter
            )
            pending.emit(
                EventType.PAIRS_REDEEMED,
                market_id,
                caller,
                pair_units=pair_units,
                payout=result.payout,
            )
            self._pay(market_id, caller, result.payout)
        return result

    def redeem_winner(self, caller: str, market_id: int, units: int) -> RedemptionResult:
        self._require_account(caller)
        with self._atomic(market_id, caller) as (market, pending):
            result = apply_winner_redemption(
                market, self._claims, caller, units, self.converter
            )
            pending.emit(
                EventType.WINNINGS_REDEEMED,
                market_id,
                caller,
                side=result.side.value if result.side else None,
                units=units,
                payout=result.payout,
            )
            self._pay(market_id, caller, result.payout)
        return result

    # ------------------------------------------------------------------
    # Lifecycle / administration
    # ------------------------------------------------------------------

    def resolve(self, caller: str, market_id: int, outcome: Side) -> Market:
        outcome = self._side(outcome)
        with self._atomic(market_id, caller) as (market, pending):
            self._authority.authorize(caller, market)
            now = self._now()
            require_resolvable(market, now)
            market.resolved = True
            market.outcome = outcome
            market.resolved_at = now
            pending.emit(EventType.MARKET_RESOLVED, market_id, caller, outcome=outcome.value)
        logger.info("Market resolved: id=%d outcome=%s by=%s", market_id, outcome.value, caller)
        return replace(market)

    def require_owner(self, caller: str, action: str) -> None:
        self._admin.require_owner(caller, action)

    def set_fee_recipient(self, caller: str, recipient: str) -> None:
        self._admin.require_owner(caller, "update the fee recipient")
        if not recipient:
            raise InvalidParamsError("fee recipient must be non-empty")
        previous, self.fee_recipient = self.fee_recipient, recipient
        pending = PendingEvents()
        pending.emit(
            EventType.FEE_RECIPIENT_UPDATED, None, caller, previous=previous, recipient=recipient
        )
        self.events.append_batch(pending.drain())
        logger.info("Fee recipient updated: %s -> %s", previous, recipient)

    def verify_invariants(self, market_id: int) -> list[str]:
        market = self._registry.get(market_id)
        with self._lock_for(market_id):
            return verify_market_invariants(market, self._claims, self.converter)

    def verify_all_invariants(self) -> dict[str, Any]:
        violations: list[str] = []
        for market in self._registry:
            violations.extend(self.verify_invariants(market.id))
        return {"ok": not violations, "violations": violations}

    def market_stats(self, market_id: int) -> dict[str, Any]:
        market = self.get_market(market_id)
        prices = self.get_prices(market_id)
        return {
            "market_id": market.id,
            "phase": market_phase(market, self._now()).value,
            "outcome": market.outcome.value if market.outcome else None,
            "collateral": market.collateral,
            "collateral_deposited": market.collateral_deposited,
            "collateral_paid_out": market.collateral_paid_out,
            "yes_reserve": market.yes_reserve,
            "no_reserve": market.no_reserve,
            "yes_price": str(prices.yes_price),
            "no_price": str(prices.no_price),
            "holders": len(self._claims.holders(market_id)),
            "events": len(self.events.since(0, market_id=market_id)),
        }

    # ------------------------------------------------------------------
    # Event helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _emit_mint(pending: PendingEvents, result: MintResult) -> None:
        pending.emit(
            EventType.SET_MINTED,
            result.market_id,
            result.holder,
            collateral_amount=result.collateral_amount,
            share_units=result.share_units,
        )

    @staticmethod
    def _emit_swap(pending: PendingEvents, result: SwapResult) -> None:
        pending.emit(
            EventType.SWAP_EXECUTED,
            result.market_id,
            result.holder,
            from_side=result.from_side.value,
            in_units=result.in_units,
            out_units=result.out_units,
            fee_units=result.fee_units,
            yes_reserve=result.yes_reserve,
            no_reserve=result.no_reserve,
        )
