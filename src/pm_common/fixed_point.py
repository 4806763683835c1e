"""Integer fixed-point conversion between collateral units and claim shares.

Claims are always accounted in 18-decimal share units. Collateral keeps the
token's native precision. No float, no Decimal: conversions are integer
scaling and always round down, in both directions.
"""

from src.pm_common.errors import InvalidParamsError

SHARE_DECIMALS = 18
MAX_DECIMALS = 77  # 10**77 is the largest power of ten below 2**256


class ShareConverter:
    """Scales between a token's native decimals and 18-decimal shares.

    The precision is fixed at construction: 6-decimal USDC multiplies by
    10**12 into shares, a 24-decimal token divides by 10**6 and forfeits the
    sub-share remainder.
    """

    def __init__(self, collateral_decimals: int) -> None:
        if not (0 <= collateral_decimals <= MAX_DECIMALS):
            raise InvalidParamsError(
                f"collateral decimals must be 0-{MAX_DECIMALS}, got {collateral_decimals}"
            )
        self.collateral_decimals = collateral_decimals
        self._up = 10 ** max(SHARE_DECIMALS - collateral_decimals, 0)
        self._down = 10 ** max(collateral_decimals - SHARE_DECIMALS, 0)

    def to_shares(self, amount: int) -> int:
        """Collateral units -> share units (truncating when decimals > 18)."""
        return amount * self._up // self._down

    def to_collateral(self, shares: int) -> int:
        """Share units -> collateral units (truncating when decimals < 18)."""
        return shares * self._down // self._up
