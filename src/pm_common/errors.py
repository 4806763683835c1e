"""Unified error codes and custom exceptions.

Error code ranges:
  1xxx: Auth / privilege
  2xxx: Balances (claims, tracked collateral)
  3xxx: Market state and time windows
  4xxx: Trade parameters
  6xxx: Collateral token
  9xxx: System
"""


class AppError(Exception):
    """Base application error."""

    def __init__(
        self,
        code: int,
        message: str,
        http_status: int = 500,
    ) -> None:
        self.code = code
        self.message = message
        self.http_status = http_status
        super().__init__(message)


# --- 1xxx: Auth / privilege ---

class InvalidCredentialsError(AppError):
    def __init__(self) -> None:
        super().__init__(1003, "Invalid or expired credentials", 401)


class UnauthorizedError(AppError):
    def __init__(self, caller: str, action: str) -> None:
        super().__init__(1010, f"Caller {caller} is not allowed to {action}", 403)


# --- 2xxx: Balances ---

class InsufficientBalanceError(AppError):
    def __init__(self, side: str, required: int, available: int) -> None:
        super().__init__(
            2001,
            f"Insufficient {side} balance: required {required} units, available {available} units",
            422,
        )


class InsufficientCollateralError(AppError):
    """Tracked collateral cannot cover a payout.

    On a well-formed market this means the solvency invariant broke.
    """

    def __init__(self, market_id: int, required: int, available: int) -> None:
        super().__init__(
            2003,
            f"Insufficient collateral in market {market_id}: "
            f"required {required}, tracked {available}",
            500,
        )


# --- 3xxx: Market state / time ---

class MarketNotFoundError(AppError):
    def __init__(self, market_id: int) -> None:
        super().__init__(3001, f"Market not found: {market_id}", 404)


class MarketClosedError(AppError):
    def __init__(self, market_id: int) -> None:
        super().__init__(3002, f"Market is closed: {market_id}", 422)


class MarketAlreadyResolvedError(AppError):
    def __init__(self, market_id: int) -> None:
        super().__init__(3003, f"Market already resolved: {market_id}", 409)


class MarketNotResolvedError(AppError):
    def __init__(self, market_id: int) -> None:
        super().__init__(3004, f"Market not resolved yet: {market_id}", 409)


class InvalidTimeError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(3005, f"Invalid time: {detail}", 422)


# --- 4xxx: Trade parameters ---

class InvalidParamsError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(4001, f"Invalid parameters: {detail}", 400)


class SlippageError(AppError):
    def __init__(self, out_units: int, min_out_units: int) -> None:
        super().__init__(
            4010,
            f"Slippage: output {out_units} below minimum {min_out_units}",
            422,
        )


# --- 6xxx: Collateral token ---

class CollateralTransferFailedError(AppError):
    def __init__(self, operation: str, result: object) -> None:
        super().__init__(
            6001,
            f"Collateral {operation} did not confirm success (returned {result!r})",
            502,
        )


# --- 9xxx: System ---

class ReentrancyError(AppError):
    def __init__(self, market_id: int) -> None:
        super().__init__(9003, f"Re-entrant call into market {market_id}", 409)


class InternalError(AppError):
    def __init__(self, detail: str = "Internal server error") -> None:
        super().__init__(9002, detail, 500)
