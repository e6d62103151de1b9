"""Circulation engine: borrow, return, renew and the overdue sweep."""

import logging
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Callable, Optional

from circdesk.domain import policy
from circdesk.domain.entities import (
    Transaction,
    TransactionStatus,
    TransactionType,
)
from circdesk.domain.outcome import FailureReason, Outcome
from circdesk.domain.repositories import ILedgerRepository, IUnitOfWork, LedgerFilter
from circdesk.domain.services import ICirculationService

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


async def count_open_loans(ledger: ILedgerRepository, borrower_id: int) -> int:
    """Loans the borrower still holds (Borrow or Renew, Active or Overdue)."""
    return await ledger.count(LedgerFilter.open_loans(borrower_id=borrower_id))


async def has_overdue_loans(ledger: ILedgerRepository, borrower_id: int, today: date) -> bool:
    """True when a loan is past due, whether or not the sweep has flagged it yet."""
    past_due = await ledger.count(
        LedgerFilter.open_loans(borrower_id=borrower_id, due_before=today)
    )
    if past_due:
        return True
    flagged = await ledger.count(
        LedgerFilter(borrower_id=borrower_id, statuses=[TransactionStatus.OVERDUE])
    )
    return flagged > 0


class CirculationService(ICirculationService):
    """Applies the circulation rules against the catalog, borrowers and ledger.

    Each mutating operation runs inside one unit of work: the copy count
    change and the ledger write are committed together or not at all.
    """

    def __init__(
        self,
        uow: IUnitOfWork,
        clock: Clock = datetime.now,
        fine_per_day: Decimal = policy.FINE_PER_DAY,
        default_loan_days: int = policy.DEFAULT_LOAN_DAYS,
    ):
        self.uow = uow
        self.clock = clock
        self.fine_per_day = fine_per_day
        self.default_loan_days = default_loan_days

    async def borrow(
        self, book_id: int, borrower_id: int, loan_days: Optional[int] = None
    ) -> Outcome[Transaction]:
        """Lend one copy of a book.

        Checks run in order and the first failure is returned with nothing
        written: loan period, book exists, borrower exists, copy available,
        borrower active, under the borrowing limit, nothing overdue.
        """
        loan_days = self.default_loan_days if loan_days is None else loan_days
        if not policy.is_valid_loan_period(loan_days):
            return self._reject(
                FailureReason.INVALID_LOAN_PERIOD,
                f"Loan period must be between {policy.MIN_LOAN_DAYS} and "
                f"{policy.MAX_LOAN_DAYS} days.",
            )

        now = self.clock()
        today = now.date()
        async with self.uow:
            book = await self.uow.books.get_by_id(book_id)
            if book is None:
                return self._reject(FailureReason.BOOK_NOT_FOUND, "Book not found.")

            borrower = await self.uow.borrowers.get_by_id(borrower_id)
            if borrower is None:
                return self._reject(FailureReason.BORROWER_NOT_FOUND, "Borrower not found.")

            if not book.is_available():
                return self._reject(
                    FailureReason.BOOK_UNAVAILABLE,
                    f"Book '{book.title}' is not available for borrowing.",
                )

            if not borrower.is_active:
                return self._reject(
                    FailureReason.BORROWER_INACTIVE,
                    f"Borrower {borrower.full_name} has an inactive membership.",
                )

            current = await count_open_loans(self.uow.ledger, borrower_id)
            if not borrower.can_borrow_more(current):
                return self._reject(
                    FailureReason.LIMIT_EXCEEDED,
                    f"Borrower {borrower.full_name} has reached the maximum borrowing "
                    f"limit ({current}/{borrower.max_books_allowed}).",
                )

            if await has_overdue_loans(self.uow.ledger, borrower_id, today):
                return self._reject(
                    FailureReason.HAS_OVERDUE_BOOKS,
                    f"Borrower {borrower.full_name} has overdue books. "
                    "Please return them first.",
                )

            # Re-checked in the UPDATE itself; a copy may have gone since the read above.
            if not await self.uow.books.decrement_available(book_id):
                return self._reject(
                    FailureReason.AVAILABILITY_CONFLICT,
                    f"The last copy of '{book.title}' was just borrowed by someone else.",
                )

            transaction = await self.uow.ledger.create(
                Transaction(
                    book_id=book_id,
                    borrower_id=borrower_id,
                    transaction_type=TransactionType.BORROW,
                    transaction_date=now,
                    due_date=today + timedelta(days=loan_days),
                    status=TransactionStatus.ACTIVE,
                )
            )
            await self.uow.commit()

        logger.info(
            "Book %s borrowed by borrower %s (transaction %s, due %s)",
            book_id, borrower_id, transaction.id, transaction.due_date,
        )
        return Outcome.success(
            transaction,
            f"Book '{book.title}' borrowed successfully by {borrower.full_name}. "
            f"Due date: {transaction.due_date:%Y-%m-%d}",
        )

    async def return_book(
        self,
        book_id: int,
        borrower_id: int,
        returned_at: Optional[datetime] = None,
        fine_per_day: Optional[Decimal] = None,
    ) -> Outcome[Decimal]:
        """Close the borrower's open loan of this book and settle its fine."""
        returned_at = returned_at or self.clock()
        rate = self.fine_per_day if fine_per_day is None else fine_per_day

        async with self.uow:
            loans = await self.uow.ledger.query(
                LedgerFilter.open_loans(
                    book_id=book_id, borrower_id=borrower_id, order_by="due_date"
                )
            )
            if not loans:
                return self._reject(
                    FailureReason.NO_ACTIVE_LOAN,
                    "No active borrowing transaction found for this book and borrower.",
                )
            transaction = loans[0]

            if returned_at.date() < transaction.transaction_date.date():
                return self._reject(
                    FailureReason.INVALID_RETURN_DATE,
                    "Return date cannot be earlier than the borrow date.",
                )

            fine = transaction.mark_returned(returned_at, rate)
            await self.uow.ledger.update(transaction)
            if not await self.uow.books.increment_available(book_id):
                logger.warning(
                    "Book %s already has all copies on the shelf; availability left unchanged",
                    book_id,
                )
            await self.uow.commit()

        logger.info(
            "Book %s returned by borrower %s (transaction %s, fine %s)",
            book_id, borrower_id, transaction.id, fine,
        )
        message = "Book returned successfully."
        if fine > 0:
            message += f" Fine amount: ${fine:.2f}"
        return Outcome.success(fine, message)

    async def renew(
        self, transaction_id: int, extra_days: Optional[int] = None
    ) -> Outcome[date]:
        extra_days = self.default_loan_days if extra_days is None else extra_days
        if not policy.is_valid_loan_period(extra_days):
            return self._reject(
                FailureReason.INVALID_LOAN_PERIOD,
                f"Renewal period must be between {policy.MIN_LOAN_DAYS} and "
                f"{policy.MAX_LOAN_DAYS} days.",
            )

        today = self.clock().date()
        async with self.uow:
            transaction = await self.uow.ledger.get_by_id(transaction_id)
            if transaction is None:
                return self._reject(
                    FailureReason.TRANSACTION_NOT_FOUND, "Transaction not found."
                )
            if transaction.status != TransactionStatus.ACTIVE:
                return self._reject(
                    FailureReason.NOT_RENEWABLE,
                    f"Only active loans can be renewed (status: {transaction.status.value}).",
                )
            new_due = transaction.renew(extra_days, today)
            await self.uow.ledger.update(transaction)
            await self.uow.commit()

        logger.info("Transaction %s renewed until %s", transaction_id, new_due)
        return Outcome.success(new_due, f"Loan renewed. New due date: {new_due:%Y-%m-%d}")

    async def detect_overdue(self, fine_per_day: Optional[Decimal] = None) -> list[Transaction]:
        """Flag past-due open loans as Overdue and bring their fines up to today.

        Returns every past-due open loan, including ones flagged by an
        earlier sweep.  Repeating the sweep on the same day changes nothing.
        """
        rate = self.fine_per_day if fine_per_day is None else fine_per_day
        today = self.clock().date()

        async with self.uow:
            loans = await self.uow.ledger.query(
                LedgerFilter.open_loans(due_before=today, order_by="due_date")
            )
            changed = []
            for transaction in loans:
                before = (transaction.status, transaction.fine_amount)
                transaction.mark_overdue(today, rate)
                if (transaction.status, transaction.fine_amount) != before:
                    changed.append(transaction)
            if changed:
                await self.uow.ledger.update_many(changed)
                await self.uow.commit()

        logger.info("Overdue sweep: %d overdue, %d updated", len(loans), len(changed))
        return loans

    async def get_transaction(self, transaction_id: int) -> Optional[Transaction]:
        async with self.uow:
            return await self.uow.ledger.get_by_id(transaction_id)

    @staticmethod
    def _reject(reason: FailureReason, message: str) -> Outcome:
        logger.info("Circulation request rejected (%s): %s", reason.value, message)
        return Outcome.failure(reason, message)
