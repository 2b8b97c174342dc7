"""Unified error codes and custom exceptions.

Error code ranges:
  1xxx: InvalidInput      rejected before any mutation
  2xxx: Unauthorized      caller mismatch against stored authority / owner
  3xxx: InvalidState      wrong lifecycle state or time window
  4xxx: NotEligible       liquidation / claim threshold not met
  5xxx: InsufficientFunds custody balance too low for a hard debit
  6xxx: OracleUnavailable stale or missing price, fails closed
  7xxx: NotFound
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


# --- 1xxx: InvalidInput ---

class InvalidInputError(AppError):
    def __init__(self, detail: str, code: int = 1000) -> None:
        super().__init__(code, f"Invalid input: {detail}", 422)


class InvalidPriceError(InvalidInputError):
    def __init__(self, price: int) -> None:
        super().__init__(f"price must be greater than zero, got {price}", 1001)


class InvalidDirectionError(InvalidInputError):
    def __init__(self, direction: object) -> None:
        super().__init__(f"direction must be LONG or SHORT, got {direction!r}", 1002)


class NameTooLongError(InvalidInputError):
    def __init__(self, name: str, max_bytes: int) -> None:
        super().__init__(f"name {name!r} exceeds {max_bytes} bytes", 1003)


class InvalidAmountError(InvalidInputError):
    def __init__(self, amount: int) -> None:
        super().__init__(f"amount must be greater than zero, got {amount}", 1004)


class BetMismatchError(InvalidInputError):
    def __init__(self, detail: str) -> None:
        super().__init__(f"repeat bet must keep side and currency: {detail}", 1005)


class UnsupportedCurrencyError(InvalidInputError):
    def __init__(self, currency: str) -> None:
        super().__init__(f"unsupported currency {currency!r}", 1006)


class BetBelowMinimumError(InvalidInputError):
    def __init__(self, usd_value: int, minimum: int) -> None:
        super().__init__(f"bet USD value {usd_value} below minimum {minimum}", 1007)


# --- 2xxx: Unauthorized ---

class UnauthorizedError(AppError):
    def __init__(self, detail: str = "caller is not the stored authority") -> None:
        super().__init__(2001, f"Unauthorized: {detail}", 403)


# --- 3xxx: InvalidState ---

class InvalidStateError(AppError):
    def __init__(self, detail: str, code: int = 3000) -> None:
        super().__init__(code, f"Invalid state: {detail}", 409)


class PositionClosedError(InvalidStateError):
    def __init__(self, position_id: str) -> None:
        super().__init__(f"position {position_id} is already closed", 3001)


class RoundResolvedError(InvalidStateError):
    def __init__(self, round_id: int) -> None:
        super().__init__(f"round {round_id} is already resolved", 3002)


class RoundNotResolvedError(InvalidStateError):
    def __init__(self, round_id: int) -> None:
        super().__init__(f"round {round_id} is not resolved", 3003)


class RoundWindowError(InvalidStateError):
    def __init__(self, round_id: int, detail: str) -> None:
        super().__init__(f"round {round_id}: {detail}", 3004)


class AlreadyClaimedError(InvalidStateError):
    def __init__(self, round_id: int, currency: str) -> None:
        super().__init__(f"round {round_id} {currency} entitlement already claimed", 3005)


class ProtocolPausedError(InvalidStateError):
    def __init__(self) -> None:
        super().__init__("protocol is paused", 3006)


class DuplicateEntityError(InvalidStateError):
    def __init__(self, detail: str) -> None:
        super().__init__(f"already exists: {detail}", 3007)


# --- 4xxx: NotEligible ---

class NotEligibleError(AppError):
    def __init__(self, detail: str, code: int = 4000) -> None:
        super().__init__(code, f"Not eligible: {detail}", 422)


class NotLiquidatableError(NotEligibleError):
    def __init__(self, position_id: str, loss_bps: int) -> None:
        super().__init__(
            f"position {position_id} loss {loss_bps} bps below liquidation threshold", 4001
        )


class NothingToClaimError(NotEligibleError):
    def __init__(self, round_id: int) -> None:
        super().__init__(f"no payout owed in round {round_id}", 4002)


# --- 5xxx: InsufficientFunds ---

class InsufficientFundsError(AppError):
    def __init__(self, bucket: str, required: int, available: int) -> None:
        super().__init__(
            5001,
            f"Insufficient funds in {bucket}: required {required}, available {available}",
            422,
        )


# --- 6xxx: OracleUnavailable ---

class OracleUnavailableError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(6001, f"Oracle unavailable: {detail}", 503)


# --- 7xxx: NotFound ---

class MarketNotFoundError(AppError):
    def __init__(self, market_id: str) -> None:
        super().__init__(7001, f"Market not found: {market_id}", 404)


class PositionNotFoundError(AppError):
    def __init__(self, position_id: str) -> None:
        super().__init__(7002, f"Position not found: {position_id}", 404)


class RoundNotFoundError(AppError):
    def __init__(self, round_id: int) -> None:
        super().__init__(7003, f"Round not found: {round_id}", 404)


class BetNotFoundError(AppError):
    def __init__(self, round_id: int, owner: str) -> None:
        super().__init__(7004, f"No bet by {owner} in round {round_id}", 404)


# --- 9xxx: System ---

class InternalError(AppError):
    def __init__(self, detail: str = "Internal server error") -> None:
        super().__init__(9002, detail, 500)
