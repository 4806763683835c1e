"""Shared test fixtures."""

# ruff: noqa: E402  -- settings must see the test environment before import

import os

os.environ.setdefault("JWT_SECRET", "test-secret-do-not-use-in-production")
os.environ.setdefault("FAUCET_ENABLED", "true")

from collections.abc import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient

from src.main import app
from src.pm_collateral.infrastructure.mock_token import InMemoryCollateralToken
from src.pm_engine.application.container import get_engine, get_token
from src.pm_engine.engine import PredictionMarketEngine
from tests.helpers import FakeClock, make_engine, open_market


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def engine_and_token(
    clock: FakeClock,
) -> tuple[PredictionMarketEngine, InMemoryCollateralToken]:
    engine, token, _ = make_engine(decimals=18, clock=clock)
    return engine, token


@pytest.fixture
def engine(engine_and_token: tuple[PredictionMarketEngine, InMemoryCollateralToken]) -> PredictionMarketEngine:
    return engine_and_token[0]


@pytest.fixture
def token(engine_and_token: tuple[PredictionMarketEngine, InMemoryCollateralToken]) -> InMemoryCollateralToken:
    return engine_and_token[1]


@pytest.fixture
def market_id(engine: PredictionMarketEngine) -> int:
    """Open market: seed 1000 shares, 0 fee, closes in 1 day, resolvable after 2 days."""
    return open_market(engine)


@pytest.fixture
async def client(
    engine: PredictionMarketEngine, token: InMemoryCollateralToken
) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client bound to the test engine and token."""
    app.dependency_overrides[get_engine] = lambda: engine
    app.dependency_overrides[get_token] = lambda: token
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
