"""Process-wide engine and collateral token, built lazily from settings.

FastAPI routers depend on get_engine / get_token; tests override them via
app.dependency_overrides or reset_container().
"""
import logging

from config.settings import settings
from src.pm_collateral.infrastructure.mock_token import InMemoryCollateralToken
from src.pm_engine.engine import PredictionMarketEngine

logger = logging.getLogger(__name__)

_token: InMemoryCollateralToken | None = None
_engine: PredictionMarketEngine | None = None


def get_token() -> InMemoryCollateralToken:
    global _token
    if _token is None:
        _token = InMemoryCollateralToken(decimals=settings.COLLATERAL_DECIMALS)
    return _token


def get_engine() -> PredictionMarketEngine:
    global _engine
    if _engine is None:
        _engine = PredictionMarketEngine(
            get_token(),
            owner=settings.OWNER_ACCOUNT,
            account=settings.ENGINE_ACCOUNT,
            fee_recipient=settings.FEE_RECIPIENT,
        )
        logger.info(
            "Engine ready: owner=%s custody=%s collateral_decimals=%d",
            settings.OWNER_ACCOUNT, settings.ENGINE_ACCOUNT, settings.COLLATERAL_DECIMALS,
        )
    return _engine


def reset_container() -> None:
    """Drop the singletons so the next call rebuilds them (tests)."""
    global _token, _engine
    _token = None
    _engine = None
