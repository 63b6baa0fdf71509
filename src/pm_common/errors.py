"""Unified error codes and custom exceptions.

Error code ranges:
  1xxx: Auth
  2xxx: Treasury / pools
  3xxx: Prediction
  4xxx: Settlement
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


class InvalidArgumentError(AppError):
    """Locally validated bad input. No partial effect is ever possible."""

    def __init__(self, code: int, message: str) -> None:
        super().__init__(code, message, 422)


# --- 1xxx: Auth ---

class InvalidCredentialsError(AppError):
    def __init__(self) -> None:
        super().__init__(1003, "Invalid or expired token", 401)


class AdminRequiredError(AppError):
    def __init__(self) -> None:
        super().__init__(1006, "Admin privileges required", 403)


# --- 2xxx: Treasury / pools ---

class InsufficientPoolBalanceError(AppError):
    def __init__(self, pool_key: str, required: int, available: int) -> None:
        self.pool_key = pool_key
        self.required = required
        self.available = available
        super().__init__(
            2001,
            f"Insufficient balance in pool {pool_key}: "
            f"required {required} micros, available {available} micros",
            422,
        )


class InvalidTransferError(InvalidArgumentError):
    def __init__(self, detail: str) -> None:
        super().__init__(2002, f"Invalid transfer: {detail}")


class UnknownPoolError(InvalidArgumentError):
    def __init__(self, pool_key: str) -> None:
        super().__init__(2003, f"Unknown pool: {pool_key}")


# --- 3xxx: Prediction ---

class PredictionNotFoundError(AppError):
    def __init__(self, prediction_id: str) -> None:
        super().__init__(3001, f"Prediction not found: {prediction_id}", 404)


class PredictionAlreadyResolvedError(AppError):
    def __init__(self, prediction_id: str) -> None:
        super().__init__(3002, f"Prediction already resolved: {prediction_id}", 409)


class InvalidWinningOptionError(InvalidArgumentError):
    def __init__(self, detail: str) -> None:
        super().__init__(3003, f"Invalid winning option: {detail}")


class PredictionNotResolvedError(AppError):
    def __init__(self, prediction_id: str) -> None:
        super().__init__(3004, f"Prediction is not resolved yet: {prediction_id}", 422)


# --- 4xxx: Settlement ---

class SettlementInvariantError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(4001, f"Settlement invariant violated: {detail}", 500)


# --- 9xxx: System ---

class RateLimitError(AppError):
    def __init__(self) -> None:
        super().__init__(9001, "Rate limit exceeded", 429)


class InternalError(AppError):
    def __init__(self, detail: str = "Internal server error") -> None:
        super().__init__(9002, detail, 500)


class TransactionFailedError(AppError):
    """The unit of work could not commit. Nothing was persisted; safe to retry."""

    def __init__(self, detail: str = "Transaction could not be committed") -> None:
        super().__init__(9003, f"Transaction failed: {detail}", 503)
