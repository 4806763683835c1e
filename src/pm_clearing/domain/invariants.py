"""Market solvency invariants, checked after every state-changing operation."""

import logging

from src.pm_account.domain.claims import ClaimLedger
from src.pm_common.enums import Side
from src.pm_common.fixed_point import ShareConverter
from src.pm_market.domain.models import Market

logger = logging.getLogger(__name__)


def verify_market_invariants(
    market: Market, ledger: ClaimLedger, converter: ShareConverter
) -> list[str]:
    """Return violation strings (empty when the market is sound).

    INV-1 (unresolved): holders + reserve is the same on both sides
    INV-2: redeemable claims never exceed to_shares(collateral)
    INV-3: collateral_paid_out <= collateral_deposited
    INV-4: collateral == collateral_deposited - collateral_paid_out
    """
    violations: list[str] = []
    issued_yes = ledger.holder_total(market.id, Side.YES) + market.yes_reserve
    issued_no = ledger.holder_total(market.id, Side.NO) + market.no_reserve

    if not market.resolved and issued_yes != issued_no:
        violations.append(
            f"INV-1 violated: market={market.id} yes_issued={issued_yes} != no_issued={issued_no}"
        )

    backing = converter.to_shares(market.collateral)
    for side, issued in ((Side.YES, issued_yes), (Side.NO, issued_no)):
        # Once resolved only the winning side is still redeemable.
        if market.resolved and side is not market.outcome:
            continue
        if issued > backing:
            violations.append(
                f"INV-2 violated: market={market.id} {side.value} issued={issued} "
                f"> backing_shares={backing}"
            )

    if market.collateral_paid_out > market.collateral_deposited:
        violations.append(
            f"INV-3 violated: market={market.id} paid_out={market.collateral_paid_out} "
            f"> deposited={market.collateral_deposited}"
        )

    expected = market.collateral_deposited - market.collateral_paid_out
    if market.collateral != expected:
        violations.append(
            f"INV-4 violated: market={market.id} collateral={market.collateral} "
            f"!= deposited - paid_out = {expected}"
        )

    for msg in violations:
        logger.error(msg)
    if not violations:
        logger.debug(
            "Invariants OK: market=%d collateral=%d issued=%d/%d",
            market.id, market.collateral, issued_yes, issued_no,
        )
    return violations
