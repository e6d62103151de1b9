"""Explicit success/failure results for catalog, borrower and circulation operations.

Expected business-rule failures (missing records, policy violations, write
conflicts) are returned as a failed :class:`Outcome` carrying a
:class:`FailureReason`.  Only store faults are raised, as
:class:`circdesk.domain.errors.StoreFailure`.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


class ErrorKind(str, Enum):
    NOT_FOUND = "not_found"
    POLICY_VIOLATION = "policy_violation"
    CONFLICT = "conflict"


class FailureReason(str, Enum):
    BOOK_NOT_FOUND = "book_not_found"
    BORROWER_NOT_FOUND = "borrower_not_found"
    TRANSACTION_NOT_FOUND = "transaction_not_found"
    NO_ACTIVE_LOAN = "no_active_loan"

    BOOK_UNAVAILABLE = "book_unavailable"
    BORROWER_INACTIVE = "borrower_inactive"
    LIMIT_EXCEEDED = "limit_exceeded"
    HAS_OVERDUE_BOOKS = "has_overdue_books"
    INVALID_LOAN_PERIOD = "invalid_loan_period"
    INVALID_RETURN_DATE = "invalid_return_date"
    NOT_RENEWABLE = "not_renewable"
    INVALID_BOOK = "invalid_book"
    INVALID_BORROWER = "invalid_borrower"
    INVALID_COPY_COUNT = "invalid_copy_count"
    HAS_ACTIVE_LOANS = "has_active_loans"
    HAS_TRANSACTION_HISTORY = "has_transaction_history"

    DUPLICATE_ISBN = "duplicate_isbn"
    DUPLICATE_EMAIL = "duplicate_email"
    AVAILABILITY_CONFLICT = "availability_conflict"

    @property
    def kind(self) -> ErrorKind:
        return _REASON_KINDS.get(self, ErrorKind.POLICY_VIOLATION)


_REASON_KINDS = {
    FailureReason.BOOK_NOT_FOUND: ErrorKind.NOT_FOUND,
    FailureReason.BORROWER_NOT_FOUND: ErrorKind.NOT_FOUND,
    FailureReason.TRANSACTION_NOT_FOUND: ErrorKind.NOT_FOUND,
    FailureReason.NO_ACTIVE_LOAN: ErrorKind.NOT_FOUND,
    FailureReason.DUPLICATE_ISBN: ErrorKind.CONFLICT,
    FailureReason.DUPLICATE_EMAIL: ErrorKind.CONFLICT,
    FailureReason.AVAILABILITY_CONFLICT: ErrorKind.CONFLICT,
}


@dataclass(frozen=True)
class Outcome(Generic[T]):
    """Result of an operation: either ``value`` or a ``reason`` with a message."""

    value: Optional[T] = None
    reason: Optional[FailureReason] = None
    message: str = ""

    @classmethod
    def success(cls, value: T, message: str = "") -> "Outcome[T]":
        return cls(value=value, message=message)

    @classmethod
    def failure(cls, reason: FailureReason, message: str) -> "Outcome[T]":
        return cls(reason=reason, message=message)

    @property
    def ok(self) -> bool:
        return self.reason is None

    @property
    def kind(self) -> Optional[ErrorKind]:
        return self.reason.kind if self.reason else None

    def __bool__(self) -> bool:
        return self.ok
