"""Error Hierarchy - typed, categorized exceptions for every lending failure mode.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Guard errors (400-level) are raised before any mutation and are recoverable
    - InvariantViolationError is critical and never shows internals to clients
    - to_response() produces the REST error envelope

Design Decisions:
    - Single hierarchy rooted at LendingError, caught by one FastAPI handler
    - ErrorContext is a dataclass carried on the exception, logged by the shell
"""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any
from datetime import datetime, timezone


class ErrorSeverity(str, Enum):
    """Error severity for observability and client handling."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """High-level error categories for routing and handling."""
    VALIDATION = "validation"
    BUSINESS_RULE = "business_rule"
    RESOURCE_NOT_FOUND = "resource_not_found"
    CONFLICT = "conflict"
    INVARIANT = "invariant"
    DATABASE = "database"
    INTERNAL = "internal"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    reservation_id: str | None = None
    user_id: str | None = None
    item_id: str | None = None
    user_message: str | None = None
    debug_info: dict[str, Any] | None = None


class LendingError(Exception):
    """Base exception for all lending errors."""

    def __init__(
        self,
        message: str,
        code: str,
        category: ErrorCategory,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: ErrorContext | None = None,
        http_status: int = 500,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.severity = severity
        self.context = context or ErrorContext()
        self.http_status = http_status

    @property
    def recoverable(self) -> bool:
        return self.severity in (ErrorSeverity.INFO, ErrorSeverity.WARNING, ErrorSeverity.ERROR)

    def to_response(self) -> dict:
        """Convert to standardized REST error response."""
        return {
            "error": {
                "code": self.code,
                "message": self.context.user_message or self.message,
                "category": self.category.value,
                "severity": self.severity.value,
                "timestamp": self.context.timestamp.isoformat(),
                "context": {
                    "reservation_id": self.context.reservation_id,
                    "user_id": self.context.user_id,
                    "item_id": self.context.item_id,
                },
            }
        }


# ─── Not Found (404) ─────────────────────────────────────────────

class ResourceNotFoundError(LendingError):
    """Requested resource does not exist."""
    def __init__(
        self, resource_type: str, resource_id: str, context: ErrorContext | None = None,
    ):
        super().__init__(
            f"{resource_type} '{resource_id}' not found",
            "RESOURCE_NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.ERROR, context, 404,
        )
        self.resource_type = resource_type
        self.resource_id = resource_id


class UserNotFoundError(ResourceNotFoundError):
    def __init__(self, user_id: str, context: ErrorContext | None = None):
        super().__init__("User", user_id, context)
        self.code = "USER_NOT_FOUND"


class ItemNotFoundError(ResourceNotFoundError):
    def __init__(self, item_id: str, context: ErrorContext | None = None):
        super().__init__("Item", item_id, context)
        self.code = "ITEM_NOT_FOUND"


class ReservationNotFoundError(ResourceNotFoundError):
    def __init__(self, reservation_id: str, context: ErrorContext | None = None):
        super().__init__("Reservation", reservation_id, context)
        self.code = "RESERVATION_NOT_FOUND"


class WalletNotFoundError(ResourceNotFoundError):
    def __init__(self, owner: str, context: ErrorContext | None = None):
        super().__init__("Wallet", owner, context)
        self.code = "WALLET_NOT_FOUND"


# ─── Business Rules (400-level) ──────────────────────────────────

class UserInactiveError(LendingError):
    """Inactive accounts cannot borrow."""
    def __init__(self, user_id: str, context: ErrorContext | None = None):
        super().__init__(
            f"User '{user_id}' account is not active",
            "USER_INACTIVE", ErrorCategory.BUSINESS_RULE,
            ErrorSeverity.ERROR, context, 403,
        )


class InsufficientFundsError(LendingError):
    """Wallet balance is lower than the requested charge."""
    def __init__(
        self, balance: Decimal, amount: Decimal, context: ErrorContext | None = None,
    ):
        super().__init__(
            f"Insufficient funds: balance {balance} is lower than {amount}",
            "INSUFFICIENT_FUNDS", ErrorCategory.BUSINESS_RULE,
            ErrorSeverity.ERROR, context, 402,
        )
        self.balance = balance
        self.amount = amount


class InvalidAmountError(LendingError):
    """Deposit/withdraw amounts must be strictly positive."""
    def __init__(self, amount: Decimal, context: ErrorContext | None = None):
        super().__init__(
            f"Amount must be positive, got {amount}",
            "INVALID_AMOUNT", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, 400,
        )
        self.amount = amount


# ─── Conflicts (409) ─────────────────────────────────────────────

class ItemUnavailableError(LendingError):
    """No copy left to lend."""
    def __init__(self, item_id: str, context: ErrorContext | None = None):
        super().__init__(
            f"Item '{item_id}' has no available copies",
            "ITEM_UNAVAILABLE", ErrorCategory.CONFLICT,
            ErrorSeverity.ERROR, context, 409,
        )


class DuplicateBorrowError(LendingError):
    """User already holds an open reservation for this item."""
    def __init__(self, user_id: str, item_id: str, context: ErrorContext | None = None):
        super().__init__(
            f"User '{user_id}' already has item '{item_id}'",
            "DUPLICATE_BORROW", ErrorCategory.CONFLICT,
            ErrorSeverity.ERROR, context, 409,
        )


class BorrowLimitExceededError(LendingError):
    """User reached the maximum number of open reservations."""
    def __init__(self, limit: int, context: ErrorContext | None = None):
        super().__init__(
            f"User has reached the maximum number of items allowed ({limit})",
            "BORROW_LIMIT_EXCEEDED", ErrorCategory.CONFLICT,
            ErrorSeverity.ERROR, context, 409,
        )
        self.limit = limit


class AlreadyFinalizedError(LendingError):
    """Reservation was already returned or converted to a purchase."""
    def __init__(self, reservation_id: str, status: str, context: ErrorContext | None = None):
        super().__init__(
            f"Reservation '{reservation_id}' is already {status}",
            "ALREADY_FINALIZED", ErrorCategory.CONFLICT,
            ErrorSeverity.ERROR, context, 409,
        )
        self.status = status


class InvalidTransitionError(LendingError):
    """Requested status change is not an edge of the reservation state machine."""
    def __init__(self, current: str, target: str, context: ErrorContext | None = None):
        super().__init__(
            f"Cannot move reservation from {current} to {target}",
            "INVALID_TRANSITION", ErrorCategory.CONFLICT,
            ErrorSeverity.ERROR, context, 409,
        )
        self.current = current
        self.target = target


class WalletAlreadyExistsError(LendingError):
    """One wallet per user."""
    def __init__(self, user_id: str, context: ErrorContext | None = None):
        super().__init__(
            f"User '{user_id}' already has a wallet",
            "WALLET_EXISTS", ErrorCategory.CONFLICT,
            ErrorSeverity.ERROR, context, 409,
        )


class ConcurrencyError(LendingError):
    """Concurrent modification detected by a compare-and-set write."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "CONCURRENCY_CONFLICT", ErrorCategory.CONFLICT,
            ErrorSeverity.ERROR, context, 409,
        )


# ─── Fatal (500-level) ───────────────────────────────────────────

class InvariantViolationError(LendingError):
    """A record would break its own invariant. Indicates an earlier bug."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.user_message = ctx.user_message or "An internal consistency error occurred"
        super().__init__(
            message, "INVARIANT_VIOLATION", ErrorCategory.INVARIANT,
            ErrorSeverity.CRITICAL, ctx, 500,
        )


class DatabaseError(LendingError):
    """Database operation failed."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"Database {operation} failed: {message}",
            "DATABASE_ERROR", ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, context, 503,
        )
        self.operation = operation
