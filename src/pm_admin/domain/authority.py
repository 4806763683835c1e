# src/pm_admin/domain/authority.py
"""Resolution authority — who may finalize a market's outcome.

Settlement logic depends only on the Protocol, so a multi-party or
oracle-backed authority can replace the single trusted key.
"""
from typing import Protocol

from src.pm_common.errors import UnauthorizedError
from src.pm_market.domain.models import Market


class ResolutionAuthority(Protocol):
    def authorize(self, caller: str, market: Market) -> None:
        """Raise UnauthorizedError unless ``caller`` may resolve ``market``."""
        ...


class SingleKeyAuthority:
    """One trusted account resolves every market and administers the engine."""

    def __init__(self, owner: str) -> None:
        if not owner:
            raise ValueError("owner account must be non-empty")
        self.owner = owner

    def authorize(self, caller: str, market: Market) -> None:
        if caller != self.owner:
            raise UnauthorizedError(caller, f"resolve market {market.id}")

    def require_owner(self, caller: str, action: str) -> None:
        if caller != self.owner:
            raise UnauthorizedError(caller, action)
