from datetime import date, datetime
from decimal import Decimal

import pytest

from circdesk.domain import policy
from circdesk.domain.entities import (
    Book,
    Borrower,
    MembershipType,
    Transaction,
    TransactionStatus,
    TransactionType,
)
from circdesk.domain.outcome import ErrorKind, FailureReason, Outcome


@pytest.mark.parametrize(
    "membership, expected",
    [
        (MembershipType.STUDENT, 8),
        (MembershipType.FACULTY, 15),
        (MembershipType.STAFF, 10),
        (MembershipType.PUBLIC, 5),
    ],
)
def test_membership_default_limit(membership, expected):
    borrower = Borrower(first_name="A", last_name="B", email="a@b.c", membership_type=membership)
    assert borrower.max_books_allowed == expected


def test_explicit_limit_overrides_membership_default():
    borrower = Borrower(
        first_name="A", last_name="B", email="a@b.c",
        membership_type=MembershipType.STUDENT, max_books_allowed=3,
    )
    assert borrower.max_books_allowed == 3


def test_inactive_borrower_cannot_borrow_more():
    borrower = Borrower(first_name="A", last_name="B", email="a@b.c", is_active=False)
    assert not borrower.can_borrow_more(0)


def test_borrower_validation():
    borrower = Borrower(first_name="", last_name="B", email="nope", max_books_allowed=25)
    errors = borrower.validation_errors()
    assert "First name is required" in errors
    assert "A valid email address is required" in errors
    assert any("Max books allowed" in e for e in errors)


def test_book_copy_counts_stay_in_range():
    book = Book(title="T", author="A", isbn="1", total_copies=1, available_copies=1)
    assert book.borrow_copy()
    assert not book.borrow_copy()
    assert book.available_copies == 0
    assert book.return_copy()
    assert not book.return_copy()
    assert book.available_copies == 1


def test_book_validation_rejects_future_year_and_bad_counts():
    book = Book(title="T", author="A", isbn="1", publication_year=2031,
                total_copies=2, available_copies=3)
    errors = book.validation_errors(date(2024, 1, 1))
    assert any("Publication year" in e for e in errors)
    assert any("Available copies" in e for e in errors)


def test_fine_formula():
    assert policy.fine_for(6, Decimal("0.50")) == Decimal("3.00")
    assert policy.fine_for(0, Decimal("0.50")) == Decimal("0.00")
    assert policy.fine_for(-3, Decimal("0.50")) == Decimal("0.00")
    assert policy.fine_for(3, Decimal("0.333")) == Decimal("1.00")


def test_loan_period_bounds():
    assert policy.is_valid_loan_period(1)
    assert policy.is_valid_loan_period(365)
    assert not policy.is_valid_loan_period(0)
    assert not policy.is_valid_loan_period(366)


def _loan(due: date, status=TransactionStatus.ACTIVE, kind=TransactionType.BORROW):
    return Transaction(
        book_id=1, borrower_id=1, transaction_type=kind,
        transaction_date=datetime(2024, 1, 1), due_date=due, status=status,
    )


def test_overdue_is_computed_from_due_date():
    loan = _loan(date(2024, 1, 15))
    assert not loan.is_overdue(date(2024, 1, 15))
    assert loan.is_overdue(date(2024, 1, 16))
    assert loan.days_overdue(date(2024, 1, 21)) == 6


def test_swept_loan_keeps_accruing_fine():
    loan = _loan(date(2024, 1, 15))
    loan.mark_overdue(date(2024, 1, 17))
    assert loan.status == TransactionStatus.OVERDUE
    assert loan.fine_amount == Decimal("1.00")
    assert loan.calculate_fine(date(2024, 1, 21)) == Decimal("3.00")


def test_closed_loan_is_never_overdue():
    loan = _loan(date(2024, 1, 15), status=TransactionStatus.COMPLETED)
    assert not loan.is_overdue(date(2024, 2, 1))
    assert loan.calculate_fine(date(2024, 2, 1)) == Decimal("0.00")


def test_mark_returned_settles_fine_and_return_date():
    loan = _loan(date(2024, 1, 15))
    fine = loan.mark_returned(datetime(2024, 1, 21, 16, 30))
    assert fine == Decimal("3.00")
    assert loan.return_date == date(2024, 1, 21)
    assert loan.status == TransactionStatus.COMPLETED
    assert not loan.is_open


def test_renew_extends_due_date_and_marks_type():
    loan = _loan(date(2024, 1, 15))
    assert loan.renew(7, date(2024, 1, 10)) == date(2024, 1, 22)
    assert loan.transaction_type == TransactionType.RENEW
    assert loan.is_open


def test_outcome_kinds():
    assert FailureReason.BOOK_NOT_FOUND.kind == ErrorKind.NOT_FOUND
    assert FailureReason.DUPLICATE_EMAIL.kind == ErrorKind.CONFLICT
    assert FailureReason.LIMIT_EXCEEDED.kind == ErrorKind.POLICY_VIOLATION

    failed = Outcome.failure(FailureReason.AVAILABILITY_CONFLICT, "gone")
    assert not failed
    assert failed.kind == ErrorKind.CONFLICT
    assert Outcome.success(1).ok
