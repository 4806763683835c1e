# src/pm_collateral/domain/token.py
"""Collateral token Protocol and checked call helpers.

The engine only moves collateral through these helpers. A token call counts
as successful only when it returns exactly ``True``; ``False``, ``None`` or
any other value aborts the surrounding operation.
"""
import logging
from typing import Protocol

from src.pm_common.errors import CollateralTransferFailedError

logger = logging.getLogger(__name__)


class CollateralToken(Protocol):
    def transfer(self, sender: str, to: str, amount: int) -> bool: ...

    def transfer_from(self, spender: str, owner: str, to: str, amount: int) -> bool: ...

    def approve(self, owner: str, spender: str, amount: int) -> bool: ...

    def balance_of(self, who: str) -> int: ...

    def decimals(self) -> int: ...


def _require_success(operation: str, result: object) -> None:
    if result is not True:
        logger.warning("Collateral %s rejected: result=%r", operation, result)
        raise CollateralTransferFailedError(operation, result)


def safe_transfer(token: CollateralToken, sender: str, to: str, amount: int) -> None:
    """Push ``amount`` from ``sender`` (the engine custody account) to ``to``."""
    _require_success("transfer", token.transfer(sender, to, amount))


def safe_transfer_from(
    token: CollateralToken, spender: str, owner: str, to: str, amount: int
) -> None:
    """Pull ``amount`` from ``owner`` into ``to`` using ``spender``'s allowance."""
    _require_success("transfer_from", token.transfer_from(spender, owner, to, amount))
