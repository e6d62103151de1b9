"""Read-only reports over the catalog and the circulation ledger."""

import logging
from datetime import date, datetime, timedelta
from typing import Callable, Optional

from circdesk.domain.entities import (
    Book,
    BorrowerActivityRow,
    BorrowingStatistics,
    GenrePopularityRow,
    LoanRow,
    PopularBookRow,
    Transaction,
)
from circdesk.domain.repositories import IUnitOfWork, LedgerFilter
from circdesk.domain.services import ICirculationService, IReportService

logger = logging.getLogger(__name__)


class ReportService(IReportService):

    def __init__(
        self,
        uow: IUnitOfWork,
        circulation: ICirculationService,
        clock: Callable[[], datetime] = datetime.now,
        due_soon_days: int = 3,
        top_count: int = 10,
    ):
        self.uow = uow
        self.circulation = circulation
        self.clock = clock
        self.due_soon_days = due_soon_days
        self.top_count = top_count

    async def overdue_report(self) -> list[LoanRow]:
        overdue = await self.circulation.detect_overdue()
        async with self.uow:
            return await self._loan_rows(overdue, self.clock().date())

    async def due_soon(self, days_ahead: Optional[int] = None) -> list[LoanRow]:
        days_ahead = self.due_soon_days if days_ahead is None else days_ahead
        today = self.clock().date()
        async with self.uow:
            loans = await self.uow.ledger.query(
                LedgerFilter.open_loans(
                    due_from=today,
                    due_to=today + timedelta(days=days_ahead),
                    order_by="due_date",
                )
            )
            return await self._loan_rows(loans, today)

    async def availability(self) -> list[Book]:
        async with self.uow:
            return await self.uow.books.search()

    async def popular_books(self, top: Optional[int] = None) -> list[PopularBookRow]:
        top = self.top_count if top is None else top
        async with self.uow:
            return await self.uow.reports.popular_books(top)

    async def borrower_activity(self, top: Optional[int] = None) -> list[BorrowerActivityRow]:
        top = self.top_count if top is None else top
        async with self.uow:
            return await self.uow.reports.borrower_activity(top)

    async def fine_collection(self) -> list[LoanRow]:
        async with self.uow:
            fined = await self.uow.ledger.query(
                LedgerFilter(fined_only=True, order_by="fine_amount", descending=True)
            )
            return await self._loan_rows(fined, self.clock().date())

    async def borrowing_statistics(
        self, year: int, month: Optional[int] = None
    ) -> BorrowingStatistics:
        """Transaction counts per type and fines, for a year or one month of it."""
        if month is None:
            since = datetime(year, 1, 1)
            until = datetime(year + 1, 1, 1)
        else:
            since = datetime(year, month, 1)
            until = datetime(year + 1, 1, 1) if month == 12 else datetime(year, month + 1, 1)

        async with self.uow:
            counts = await self.uow.reports.counts_by_type(since, until)
            total_fines = await self.uow.reports.total_fines(since, until)

        return BorrowingStatistics(
            year=year, month=month, counts_by_type=counts, total_fines=total_fines
        )

    async def genre_popularity(self) -> list[GenrePopularityRow]:
        async with self.uow:
            return await self.uow.reports.genre_popularity()

    async def _loan_rows(self, loans: list[Transaction], today: date) -> list[LoanRow]:
        titles: dict[int, str] = {}
        names: dict[int, str] = {}
        rows = []
        for loan in loans:
            if loan.book_id not in titles:
                book = await self.uow.books.get_by_id(loan.book_id)
                titles[loan.book_id] = book.title if book else "?"
            if loan.borrower_id not in names:
                borrower = await self.uow.borrowers.get_by_id(loan.borrower_id)
                names[loan.borrower_id] = borrower.full_name if borrower else "?"
            rows.append(
                LoanRow(
                    transaction=loan,
                    book_title=titles[loan.book_id],
                    borrower_name=names[loan.borrower_id],
                    days_overdue=loan.days_overdue(today),
                )
            )
        return rows
