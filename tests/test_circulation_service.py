from datetime import date, datetime, timedelta
from decimal import Decimal

import pytest
from sqlalchemy.exc import OperationalError

from circdesk.core.dependencies import build_services
from circdesk.domain.entities import (
    Book,
    Borrower,
    MembershipType,
    TransactionStatus,
    TransactionType,
)
from circdesk.domain.errors import StoreFailure
from circdesk.domain.outcome import ErrorKind, FailureReason
from circdesk.domain.repositories import LedgerFilter


async def _available(services, book_id):
    return (await services.catalog.get_book(book_id)).available_copies


async def test_borrow_success(services, clock, book, borrower):
    outcome = await services.circulation.borrow(book.id, borrower.id, 14)

    assert outcome.ok, outcome.message
    transaction = outcome.value
    assert transaction.transaction_type == TransactionType.BORROW
    assert transaction.status == TransactionStatus.ACTIVE
    assert transaction.due_date == clock().date() + timedelta(days=14)
    assert transaction.fine_amount == Decimal("0.00")
    assert await _available(services, book.id) == 2

    summary = (await services.borrowers.summarize(borrower.id)).value
    assert summary.current_borrowed_count == 1
    assert summary.remaining_limit == 4


async def test_borrow_uses_default_loan_period(services, clock, book, borrower):
    outcome = await services.circulation.borrow(book.id, borrower.id)
    assert outcome.value.due_date == date(2024, 3, 15)


async def test_borrow_unavailable_book(services, make_book, make_borrower):
    single = await make_book("111", copies=1)
    first = await make_borrower("first@example.com")
    second = await make_borrower("second@example.com")
    assert (await services.circulation.borrow(single.id, first.id)).ok

    outcome = await services.circulation.borrow(single.id, second.id)

    assert outcome.reason == FailureReason.BOOK_UNAVAILABLE
    assert outcome.kind == ErrorKind.POLICY_VIOLATION
    assert await _available(services, single.id) == 0
    assert await services.borrowers.current_borrowings(second.id) == []


async def test_borrow_limit_exceeded(services, make_book, borrower):
    for n in range(5):
        copy = await make_book(f"limit-{n}")
        assert (await services.circulation.borrow(copy.id, borrower.id)).ok

    extra = await make_book("limit-extra")
    outcome = await services.circulation.borrow(extra.id, borrower.id)

    assert outcome.reason == FailureReason.LIMIT_EXCEEDED
    assert await _available(services, extra.id) == 1


async def test_borrow_rejected_while_loan_is_past_due_but_not_swept(
    services, clock, make_book, borrower
):
    first = await make_book("due-1")
    second = await make_book("due-2")
    assert (await services.circulation.borrow(first.id, borrower.id, 7)).ok

    clock.advance(days=9)
    loans = await services.borrowers.current_borrowings(borrower.id)
    assert loans[0].status == TransactionStatus.ACTIVE

    outcome = await services.circulation.borrow(second.id, borrower.id)

    assert outcome.reason == FailureReason.HAS_OVERDUE_BOOKS
    assert await _available(services, second.id) == 1


async def test_borrow_inactive_borrower(services, book, borrower):
    assert (await services.borrowers.deactivate(borrower.id)).ok

    outcome = await services.circulation.borrow(book.id, borrower.id)

    assert outcome.reason == FailureReason.BORROWER_INACTIVE


@pytest.mark.parametrize("loan_days", [0, -1, 366])
async def test_borrow_invalid_loan_period(services, book, borrower, loan_days):
    outcome = await services.circulation.borrow(book.id, borrower.id, loan_days)
    assert outcome.reason == FailureReason.INVALID_LOAN_PERIOD


async def test_borrow_missing_records(services, book, borrower):
    no_book = await services.circulation.borrow(999, borrower.id)
    assert no_book.reason == FailureReason.BOOK_NOT_FOUND
    missing = await services.circulation.borrow(book.id, 999)
    assert missing.reason == FailureReason.BORROWER_NOT_FOUND
    assert missing.kind == ErrorKind.NOT_FOUND


async def test_borrow_checks_period_before_existence(services):
    outcome = await services.circulation.borrow(999, 999, 0)
    assert outcome.reason == FailureReason.INVALID_LOAN_PERIOD


async def test_borrow_reports_conflict_when_copy_disappears(
    services, book, borrower, monkeypatch
):
    async def _gone(book_id):
        return False

    monkeypatch.setattr(services.circulation.uow.books, "decrement_available", _gone)

    outcome = await services.circulation.borrow(book.id, borrower.id)

    assert outcome.reason == FailureReason.AVAILABILITY_CONFLICT
    assert outcome.kind == ErrorKind.CONFLICT
    assert await services.borrowers.current_borrowings(borrower.id) == []


async def test_borrow_rolls_back_when_ledger_write_fails(services, book, borrower, monkeypatch):
    async def _broken(transaction):
        raise OperationalError("INSERT INTO transactions", {}, Exception("disk I/O error"))

    monkeypatch.setattr(services.circulation.uow.ledger, "create", _broken)

    with pytest.raises(StoreFailure):
        await services.circulation.borrow(book.id, borrower.id)

    assert await _available(services, book.id) == 3


async def test_return_with_fine(services, clock, book, borrower):
    assert (await services.circulation.borrow(book.id, borrower.id, 14)).ok
    clock.advance(days=20)

    outcome = await services.circulation.return_book(book.id, borrower.id)

    assert outcome.ok
    assert outcome.value == Decimal("3.00")
    assert "Fine amount: $3.00" in outcome.message
    history = await services.borrowers.borrowing_history(borrower.id)
    assert history[0].status == TransactionStatus.COMPLETED
    assert history[0].fine_amount == Decimal("3.00")
    assert history[0].return_date == clock().date()


async def test_round_trip_restores_availability(services, clock, book, borrower):
    before = await _available(services, book.id)
    assert (await services.circulation.borrow(book.id, borrower.id)).ok
    clock.advance(days=3)

    outcome = await services.circulation.return_book(book.id, borrower.id)

    assert outcome.value == Decimal("0.00")
    assert await _available(services, book.id) == before
    history = await services.borrowers.borrowing_history(borrower.id)
    assert [t.status for t in history] == [TransactionStatus.COMPLETED]


async def test_return_without_open_loan(services, book, borrower):
    outcome = await services.circulation.return_book(book.id, borrower.id)
    assert outcome.reason == FailureReason.NO_ACTIVE_LOAN
    assert await _available(services, book.id) == 3


async def test_return_before_borrow_date_is_rejected(services, clock, book, borrower):
    assert (await services.circulation.borrow(book.id, borrower.id)).ok

    outcome = await services.circulation.return_book(
        book.id, borrower.id, returned_at=clock() - timedelta(days=1)
    )

    assert outcome.reason == FailureReason.INVALID_RETURN_DATE
    assert await _available(services, book.id) == 2


async def test_swept_and_renewed_loans_can_still_be_returned(services, clock, make_book, borrower):
    swept = await make_book("swept")
    renewed = await make_book("renewed")
    assert (await services.circulation.borrow(swept.id, borrower.id, 5)).ok
    loan = (await services.circulation.borrow(renewed.id, borrower.id, 5)).value
    assert (await services.circulation.renew(loan.id, 30)).ok

    clock.advance(days=8)
    await services.circulation.detect_overdue()

    assert (await services.circulation.return_book(swept.id, borrower.id)).value == Decimal("1.50")
    assert (await services.circulation.return_book(renewed.id, borrower.id)).value == Decimal("0.00")
    assert await _available(services, swept.id) == 1
    assert await _available(services, renewed.id) == 1


async def test_detect_overdue_is_idempotent(services, clock, make_book, make_borrower):
    late = await make_book("late")
    on_time = await make_book("on-time")
    reader = await make_borrower("reader@example.com")
    other = await make_borrower("other@example.com")
    assert (await services.circulation.borrow(late.id, reader.id, 3)).ok
    assert (await services.circulation.borrow(on_time.id, other.id, 30)).ok
    clock.advance(days=7)

    first = await services.circulation.detect_overdue()
    second = await services.circulation.detect_overdue()

    assert [t.id for t in first] == [t.id for t in second]
    assert len(first) == 1
    assert second[0].status == TransactionStatus.OVERDUE
    assert second[0].fine_amount == Decimal("2.00")

    clock.advance(days=2)
    third = await services.circulation.detect_overdue()
    assert third[0].fine_amount == Decimal("3.00")


async def test_renew_extends_due_date(services, book, borrower):
    loan = (await services.circulation.borrow(book.id, borrower.id, 14)).value

    outcome = await services.circulation.renew(loan.id, 7)

    assert outcome.ok
    assert outcome.value == loan.due_date + timedelta(days=7)
    stored = await services.circulation.get_transaction(loan.id)
    assert stored.transaction_type == TransactionType.RENEW
    assert stored.due_date == outcome.value


async def test_renew_rejects_overdue_and_closed_loans(services, clock, book, borrower):
    loan = (await services.circulation.borrow(book.id, borrower.id, 2)).value
    clock.advance(days=5)
    await services.circulation.detect_overdue()

    assert (await services.circulation.renew(loan.id)).reason == FailureReason.NOT_RENEWABLE

    assert (await services.circulation.return_book(book.id, borrower.id)).ok
    assert (await services.circulation.renew(loan.id)).reason == FailureReason.NOT_RENEWABLE
    assert (await services.circulation.renew(999)).reason == FailureReason.TRANSACTION_NOT_FOUND


async def test_copy_counts_stay_within_bounds(services, clock, make_book, make_borrower):
    title = await make_book("bounded", copies=2)
    readers = [await make_borrower(f"r{n}@example.com", membership_type=MembershipType.STUDENT)
               for n in range(3)]

    results = [await services.circulation.borrow(title.id, r.id) for r in readers]
    assert [r.ok for r in results] == [True, True, False]

    for reader in readers:
        await services.circulation.return_book(title.id, reader.id)
        book = await services.catalog.get_book(title.id)
        assert 0 <= book.available_copies <= book.total_copies

    assert await _available(services, title.id) == 2
    open_loans = await services.circulation.uow.ledger.count(
        LedgerFilter.open_loans(book_id=title.id)
    )
    assert open_loans == 0


async def test_borrow_records_clock_time(services, clock, book, borrower):
    clock.now = datetime(2024, 5, 2, 9, 15)
    loan = (await services.circulation.borrow(book.id, borrower.id, 1)).value
    assert loan.transaction_date == datetime(2024, 5, 2, 9, 15)
    assert loan.due_date == date(2024, 5, 3)


async def test_fine_rate_can_be_overridden_per_call(services, clock, make_book, make_borrower):
    swept = await make_book("rate-sweep")
    returned = await make_book("rate-return")
    reader = await make_borrower("rate-reader@example.com")
    other = await make_borrower("rate-other@example.com")
    assert (await services.circulation.borrow(swept.id, reader.id, 14)).ok
    assert (await services.circulation.borrow(returned.id, other.id, 14)).ok
    clock.advance(days=20)

    overdue = await services.circulation.detect_overdue(fine_per_day=Decimal("1.25"))
    assert {t.book_id: t.fine_amount for t in overdue} == {
        swept.id: Decimal("7.50"),
        returned.id: Decimal("7.50"),
    }

    outcome = await services.circulation.return_book(
        returned.id, other.id, fine_per_day=Decimal("0.25")
    )

    assert outcome.value == Decimal("1.50")
    swept_loan = next(t for t in overdue if t.book_id == swept.id)
    stored = await services.circulation.get_transaction(swept_loan.id)
    assert stored.fine_amount == Decimal("7.50")


async def test_configured_policy_reaches_circulation(session, clock, config):
    tuned = build_services(
        session,
        config.model_copy(update={"fine_per_day": Decimal("1.00"), "default_loan_days": 7}),
        clock=clock,
    )
    added = await tuned.catalog.add_book(
        Book(title="Dune", author="Frank Herbert", isbn="978-0-441-01359-3",
             total_copies=1, available_copies=1)
    )
    member = await tuned.borrowers.add_borrower(
        Borrower(first_name="Ada", last_name="Reed", email="ada@example.com")
    )

    loan = (await tuned.circulation.borrow(added.value.id, member.value.id)).value
    assert loan.due_date == date(2024, 3, 8)

    clock.advance(days=10)
    outcome = await tuned.circulation.return_book(added.value.id, member.value.id)

    assert outcome.value == Decimal("3.00")
