"""Circulation policy: loan periods, borrowing limits and the overdue fine rate."""

from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

FINE_PER_DAY = Decimal("0.50")
DEFAULT_LOAN_DAYS = 14
MIN_LOAN_DAYS = 1
MAX_LOAN_DAYS = 365

MIN_BOOKS_ALLOWED = 1
MAX_BOOKS_ALLOWED = 20

# Keyed by membership code as persisted.
DEFAULT_MAX_BOOKS: dict[str, int] = {
    "Student": 8,
    "Faculty": 15,
    "Staff": 10,
    "Public": 5,
}

CENTS = Decimal("0.01")


def is_valid_loan_period(days: int) -> bool:
    return MIN_LOAN_DAYS <= days <= MAX_LOAN_DAYS


def days_overdue(due_date: Optional[date], on: date) -> int:
    """Whole days between ``due_date`` and ``on``; 0 when not past due."""
    if due_date is None or on <= due_date:
        return 0
    return (on - due_date).days


def fine_for(days: int, fine_per_day: Decimal = FINE_PER_DAY) -> Decimal:
    """Fine for ``days`` overdue, rounded to cents and never negative."""
    if days <= 0:
        return Decimal("0.00")
    return (Decimal(days) * Decimal(fine_per_day)).quantize(CENTS, rounding=ROUND_HALF_UP)
