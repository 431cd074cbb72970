"""Unified error codes and custom exceptions.

Error code ranges:
  1xxx: Authorization (identity, PIN, account status, roles)
  2xxx: Account / funds
  3xxx: State transitions (journal, positions, onboarding)
  4xxx: Validation (amounts, PIN format, offers)
  5xxx: Investments
  6xxx: Withdrawals / payout destinations / maintenance windows
  9xxx: System (store, retries, maintenance)

Families map onto the retry policy in ``src.iv_common.unit_of_work``:
only ConflictError and TransientStoreError are ever retried.
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


# --- Families ---

class AuthorizationError(AppError):
    """Caller may not perform the action. Never retried."""

    sign_out: bool = False

    def __init__(self, code: int, message: str) -> None:
        super().__init__(code, message, 403)


class ValidationError(AppError):
    """Bad input (amount, PIN format, offer range). Never retried."""

    def __init__(self, code: int, message: str) -> None:
        super().__init__(code, message, 422)


class NotFoundError(AppError):
    def __init__(self, code: int, message: str) -> None:
        super().__init__(code, message, 404)


class InvalidStateTransitionError(AppError):
    def __init__(self, code: int, message: str) -> None:
        super().__init__(code, message, 409)


# --- 1xxx: Authorization ---

class WrongPinError(AuthorizationError):
    def __init__(self) -> None:
        super().__init__(1001, "Incorrect payout PIN")


class VoucherWithdrawalError(AuthorizationError):
    def __init__(self) -> None:
        super().__init__(
            1002,
            "Withdrawals are not available for voucher accounts. "
            "Voucher balances can only be used inside the platform.",
        )


class AccountSuspendedError(AuthorizationError):
    def __init__(self, reason: str | None = None) -> None:
        detail = f": {reason}" if reason else ""
        super().__init__(1003, f"Account is suspended{detail}")


class AccountBannedError(AuthorizationError):
    sign_out = True

    def __init__(self, reason: str | None = None) -> None:
        detail = f": {reason}" if reason else ""
        super().__init__(1004, f"Account is banned{detail}")


class AdminRequiredError(AuthorizationError):
    def __init__(self) -> None:
        super().__init__(1005, "Administrator account required")


class EmailNotVerifiedError(AuthorizationError):
    def __init__(self) -> None:
        super().__init__(1006, "E-mail address must be verified first")


class InvalidCredentialsError(AppError):
    def __init__(self) -> None:
        super().__init__(1007, "Invalid or expired access token", 401)


# --- 2xxx: Account / funds ---

class InsufficientFundsError(AppError):
    def __init__(self, required: int, available: int) -> None:
        super().__init__(
            2001,
            f"Insufficient funds: required {required} cents, available {available} cents",
            422,
        )


class AccountNotFoundError(NotFoundError):
    def __init__(self, account_id: str) -> None:
        super().__init__(2002, f"Account not found: {account_id}")


class ReferralCodeNotFoundError(NotFoundError):
    def __init__(self, code: str) -> None:
        super().__init__(2003, f"Referral code not found: {code}")


class AccountNotEmptyError(ValidationError):
    def __init__(self, detail: str) -> None:
        super().__init__(2004, f"Account cannot be deleted: {detail}")


# --- 3xxx: State transitions ---

class JournalEntryNotFoundError(NotFoundError):
    def __init__(self, entry_id: int) -> None:
        super().__init__(3001, f"Journal entry not found: {entry_id}")


class EntryAlreadyResolvedError(InvalidStateTransitionError):
    def __init__(self, entry_id: int, status: str) -> None:
        super().__init__(3002, f"Journal entry {entry_id} is already {status}")


class AccountAlreadyOnboardedError(InvalidStateTransitionError):
    def __init__(self, account_id: str) -> None:
        super().__init__(3003, f"Account already onboarded: {account_id}")


class PositionAlreadyClosedError(InvalidStateTransitionError):
    def __init__(self, position_id: int) -> None:
        super().__init__(3004, f"Position {position_id} is already closed")


class PositionPaymentPendingError(InvalidStateTransitionError):
    def __init__(self, position_id: int) -> None:
        super().__init__(3005, f"Position {position_id} is still awaiting payment")


class WithdrawalStepError(InvalidStateTransitionError):
    def __init__(self, current: str, attempted: str) -> None:
        super().__init__(3006, f"Cannot go from {current} to {attempted}")


# --- 4xxx: Validation ---

class BelowMinimumError(ValidationError):
    def __init__(self, operation: str, minimum: int) -> None:
        super().__init__(4001, f"Minimum {operation} amount is {minimum} cents")


class AmountOutOfRangeError(ValidationError):
    def __init__(self, offer_name: str, minimum: int, maximum: int) -> None:
        super().__init__(
            4002,
            f"Amount for {offer_name} must be between {minimum} and {maximum} cents",
        )


class InvalidPinFormatError(ValidationError):
    def __init__(self, length: int) -> None:
        super().__init__(4003, f"Payout PIN must be exactly {length} digits")


class InvalidBalanceEditError(ValidationError):
    def __init__(self, detail: str) -> None:
        super().__init__(4004, f"Invalid balance edit: {detail}")


class InvalidDestinationError(ValidationError):
    def __init__(self, detail: str) -> None:
        super().__init__(4005, f"Invalid payout destination: {detail}")


class InvalidAmountError(ValidationError):
    def __init__(self, amount: int, maximum: int) -> None:
        super().__init__(4006, f"Amount must be between 1 and {maximum} cents, got {amount}")


class StoreValueError(ValidationError):
    """The store refused a value (out of range, bad encoding). Never retried."""

    def __init__(self) -> None:
        super().__init__(4007, "Value out of range for the ledger")


# --- 5xxx: Investments ---

class OfferNotFoundError(NotFoundError):
    def __init__(self, offer_name: str) -> None:
        super().__init__(5001, f"Investment offer not found: {offer_name}")


class PositionNotFoundError(NotFoundError):
    def __init__(self, position_id: int) -> None:
        super().__init__(5002, f"Position not found: {position_id}")


# --- 6xxx: Withdrawals / destinations / maintenance ---

class DestinationNotFoundError(NotFoundError):
    def __init__(self, destination_id: int) -> None:
        super().__init__(6001, f"Payout destination not found: {destination_id}")


class MaintenanceWindowNotFoundError(NotFoundError):
    def __init__(self, window_id: int) -> None:
        super().__init__(6002, f"Maintenance window not found: {window_id}")


# --- 9xxx: System ---

class InternalError(AppError):
    def __init__(self, detail: str = "Internal server error") -> None:
        super().__init__(9002, detail, 500)


class ConflictError(AppError):
    """Concurrent mutation lost the race. Retried once by the unit-of-work runner."""

    def __init__(self, detail: str = "Concurrent update conflict, please retry") -> None:
        super().__init__(9003, detail, 409)


class TransientStoreError(AppError):
    """Store unreachable or timed out. Retried with backoff, then surfaced."""

    def __init__(self, detail: str = "Service temporarily unavailable") -> None:
        super().__init__(9004, detail, 503)


class MaintenanceError(AppError):
    def __init__(self, until: str | None = None) -> None:
        detail = f" (expected back at {until})" if until else ""
        super().__init__(
            9005,
            f"The platform is under scheduled maintenance. Try again later{detail}.",
            503,
        )
