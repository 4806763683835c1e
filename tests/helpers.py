"""Constants and helpers shared by unit and integration tests."""

from datetime import UTC, datetime, timedelta

from src.pm_collateral.infrastructure.mock_token import InMemoryCollateralToken
from src.pm_engine.engine import PredictionMarketEngine

E18 = 10**18
START = datetime(2026, 1, 1, tzinfo=UTC)
CLOSE = START + timedelta(days=1)
RESOLVE_AFTER = START + timedelta(days=2)
OWNER = "owner"
CREATOR = "creator"
ALICE = "alice"
BOB = "bob"
FUNDING = 10**30


class FakeClock:
    """Mutable clock injected into the engine."""

    def __init__(self, now: datetime = START) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


def fund(token: InMemoryCollateralToken, engine: PredictionMarketEngine, *accounts: str) -> None:
    for account in accounts:
        token.mint(account, FUNDING)
        token.approve(account, engine.account, FUNDING)


def make_engine(
    decimals: int = 18, clock: FakeClock | None = None
) -> tuple[PredictionMarketEngine, InMemoryCollateralToken, FakeClock]:
    clock = clock or FakeClock()
    token = InMemoryCollateralToken(decimals=decimals)
    engine = PredictionMarketEngine(token, owner=OWNER, clock=clock)
    fund(token, engine, CREATOR, ALICE, BOB)
    return engine, token, clock


def open_market(
    engine: PredictionMarketEngine, seed: int = 1000 * E18, fee_bps: int = 0
) -> int:
    return engine.create_market(CREATOR, "Will it rain tomorrow?", CLOSE, RESOLVE_AFTER, seed, fee_bps)
