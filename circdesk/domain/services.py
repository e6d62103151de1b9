"""Domain-level application service interfaces (ports).

These abstract classes define the contracts that the console shell and the
HTTP API depend on.  Concrete implementations live in ``circdesk/services/``
and are wired together by ``circdesk/core/dependencies.py``.

Every mutating operation returns an :class:`~circdesk.domain.outcome.Outcome`
instead of raising for business-rule failures.
"""

from abc import ABC, abstractmethod
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from circdesk.domain.entities import (
    Book,
    Borrower,
    BorrowerActivityRow,
    BorrowerSummary,
    BorrowingStatistics,
    GenrePopularityRow,
    LoanRow,
    MembershipType,
    PopularBookRow,
    Transaction,
)
from circdesk.domain.outcome import Outcome


class ICatalogService(ABC):

    @abstractmethod
    async def add_book(self, book: Book) -> Outcome[Book]:
        """Add a book; rejected when the ISBN is already catalogued."""
        pass

    @abstractmethod
    async def update_book(
        self,
        book_id: int,
        *,
        title: Optional[str] = None,
        author: Optional[str] = None,
        isbn: Optional[str] = None,
        publisher: Optional[str] = None,
        publication_year: Optional[int] = None,
        genre: Optional[str] = None,
        location: Optional[str] = None,
        total_copies: Optional[int] = None,
    ) -> Outcome[Book]:
        pass

    @abstractmethod
    async def get_book(self, book_id: int) -> Optional[Book]:
        pass

    @abstractmethod
    async def find_by_isbn(self, isbn: str) -> Optional[Book]:
        pass

    @abstractmethod
    async def search_books(
        self,
        title: Optional[str] = None,
        author: Optional[str] = None,
        genre: Optional[str] = None,
        available_only: bool = False,
    ) -> list[Book]:
        pass

    @abstractmethod
    async def list_books(self, skip: int = 0, limit: int = 100) -> list[Book]:
        pass

    @abstractmethod
    async def count_books(self) -> int:
        pass

    @abstractmethod
    async def delete_book(self, book_id: int) -> Outcome[int]:
        pass


class IBorrowerService(ABC):

    @abstractmethod
    async def add_borrower(self, borrower: Borrower) -> Outcome[Borrower]:
        """Register a borrower; rejected when the email is already in use."""
        pass

    @abstractmethod
    async def update_borrower(
        self,
        borrower_id: int,
        *,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
        email: Optional[str] = None,
        phone: Optional[str] = None,
        address: Optional[str] = None,
        membership_type: Optional[MembershipType] = None,
        max_books_allowed: Optional[int] = None,
    ) -> Outcome[Borrower]:
        pass

    @abstractmethod
    async def get_borrower(self, borrower_id: int) -> Optional[Borrower]:
        pass

    @abstractmethod
    async def find_by_email(self, email: str) -> Optional[Borrower]:
        pass

    @abstractmethod
    async def search_by_name(self, name: str) -> list[Borrower]:
        pass

    @abstractmethod
    async def list_borrowers(self, active_only: bool = False) -> list[Borrower]:
        pass

    @abstractmethod
    async def activate(self, borrower_id: int) -> Outcome[Borrower]:
        pass

    @abstractmethod
    async def deactivate(self, borrower_id: int) -> Outcome[Borrower]:
        pass

    @abstractmethod
    async def delete_borrower(self, borrower_id: int) -> Outcome[int]:
        pass

    @abstractmethod
    async def summarize(self, borrower_id: int) -> Outcome[BorrowerSummary]:
        pass

    @abstractmethod
    async def current_borrowings(self, borrower_id: int) -> list[Transaction]:
        pass

    @abstractmethod
    async def borrowing_history(self, borrower_id: int) -> list[Transaction]:
        pass

    @abstractmethod
    async def borrowers_with_overdue(self) -> list[Borrower]:
        pass


class ICirculationService(ABC):

    @abstractmethod
    async def borrow(
        self, book_id: int, borrower_id: int, loan_days: Optional[int] = None
    ) -> Outcome[Transaction]:
        pass

    @abstractmethod
    async def return_book(
        self,
        book_id: int,
        borrower_id: int,
        returned_at: Optional[datetime] = None,
        fine_per_day: Optional[Decimal] = None,
    ) -> Outcome[Decimal]:
        pass

    @abstractmethod
    async def renew(
        self, transaction_id: int, extra_days: Optional[int] = None
    ) -> Outcome[date]:
        pass

    @abstractmethod
    async def detect_overdue(self, fine_per_day: Optional[Decimal] = None) -> list[Transaction]:
        pass

    @abstractmethod
    async def get_transaction(self, transaction_id: int) -> Optional[Transaction]:
        pass


class IReportService(ABC):

    @abstractmethod
    async def overdue_report(self) -> list[LoanRow]:
        """Run the overdue sweep and return the overdue loans with names."""
        pass

    @abstractmethod
    async def due_soon(self, days_ahead: Optional[int] = None) -> list[LoanRow]:
        pass

    @abstractmethod
    async def availability(self) -> list[Book]:
        pass

    @abstractmethod
    async def popular_books(self, top: Optional[int] = None) -> list[PopularBookRow]:
        pass

    @abstractmethod
    async def borrower_activity(self, top: Optional[int] = None) -> list[BorrowerActivityRow]:
        pass

    @abstractmethod
    async def fine_collection(self) -> list[LoanRow]:
        pass

    @abstractmethod
    async def borrowing_statistics(
        self, year: int, month: Optional[int] = None
    ) -> BorrowingStatistics:
        pass

    @abstractmethod
    async def genre_popularity(self) -> list[GenrePopularityRow]:
        pass
