"""Repository interfaces (ports) for dependency inversion."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Optional, Sequence

from circdesk.domain.entities import (
    Book,
    Borrower,
    BorrowerActivityRow,
    GenrePopularityRow,
    LOAN_TYPES,
    OPEN_STATUSES,
    PopularBookRow,
    Transaction,
    TransactionStatus,
    TransactionType,
)


@dataclass
class LedgerFilter:
    """Criteria for :meth:`ILedgerRepository.query`; unset fields do not filter."""

    borrower_id: Optional[int] = None
    book_id: Optional[int] = None
    statuses: Optional[Sequence[TransactionStatus]] = None
    types: Optional[Sequence[TransactionType]] = None
    due_before: Optional[date] = None  # exclusive
    due_from: Optional[date] = None  # inclusive
    due_to: Optional[date] = None  # inclusive
    since: Optional[datetime] = None  # transaction_date, inclusive
    until: Optional[datetime] = None  # transaction_date, exclusive
    fined_only: bool = False
    order_by: str = "transaction_date"  # transaction_date | due_date | fine_amount
    descending: bool = False

    @classmethod
    def open_loans(cls, **kwargs) -> "LedgerFilter":
        return cls(statuses=OPEN_STATUSES, types=LOAN_TYPES, **kwargs)


class ICatalogRepository(ABC):

    @abstractmethod
    async def create(self, book: Book) -> Book:
        pass

    @abstractmethod
    async def get_by_id(self, book_id: int) -> Optional[Book]:
        pass

    @abstractmethod
    async def get_by_isbn(self, isbn: str) -> Optional[Book]:
        pass

    @abstractmethod
    async def list_all(self, skip: int = 0, limit: int = 100) -> list[Book]:
        pass

    @abstractmethod
    async def count(self) -> int:
        pass

    @abstractmethod
    async def search(
        self,
        title: Optional[str] = None,
        author: Optional[str] = None,
        genre: Optional[str] = None,
        available_only: bool = False,
    ) -> list[Book]:
        """Case-insensitive substring search; every given criterion must match."""
        pass

    @abstractmethod
    async def update(self, book: Book) -> Book:
        pass

    @abstractmethod
    async def delete(self, book_id: int) -> bool:
        pass

    @abstractmethod
    async def decrement_available(self, book_id: int) -> bool:
        """Take one copy only if one is still available.

        The check and the write are a single statement, so a copy taken by
        someone else since the caller last looked makes this return False.
        """
        pass

    @abstractmethod
    async def increment_available(self, book_id: int) -> bool:
        """Return one copy; False (no change) when already at total copies."""
        pass


class IBorrowerRepository(ABC):

    @abstractmethod
    async def create(self, borrower: Borrower) -> Borrower:
        pass

    @abstractmethod
    async def get_by_id(self, borrower_id: int) -> Optional[Borrower]:
        pass

    @abstractmethod
    async def get_by_email(self, email: str) -> Optional[Borrower]:
        pass

    @abstractmethod
    async def list_all(self, active_only: bool = False) -> list[Borrower]:
        pass

    @abstractmethod
    async def search_by_name(self, name: str) -> list[Borrower]:
        pass

    @abstractmethod
    async def update(self, borrower: Borrower) -> Borrower:
        pass

    @abstractmethod
    async def delete(self, borrower_id: int) -> bool:
        pass


class ILedgerRepository(ABC):

    @abstractmethod
    async def create(self, transaction: Transaction) -> Transaction:
        pass

    @abstractmethod
    async def get_by_id(self, transaction_id: int) -> Optional[Transaction]:
        pass

    @abstractmethod
    async def update(self, transaction: Transaction) -> Transaction:
        pass

    @abstractmethod
    async def update_many(self, transactions: Sequence[Transaction]) -> None:
        pass

    @abstractmethod
    async def query(self, criteria: LedgerFilter) -> list[Transaction]:
        pass

    @abstractmethod
    async def count(self, criteria: LedgerFilter) -> int:
        pass


class IReportRepository(ABC):
    """Grouped read-only aggregates behind the reports."""

    @abstractmethod
    async def popular_books(self, limit: int = 10) -> list[PopularBookRow]:
        pass

    @abstractmethod
    async def borrower_activity(self, limit: int = 10) -> list[BorrowerActivityRow]:
        pass

    @abstractmethod
    async def genre_popularity(self) -> list[GenrePopularityRow]:
        pass

    @abstractmethod
    async def counts_by_type(self, since: datetime, until: datetime) -> dict[str, int]:
        pass

    @abstractmethod
    async def total_fines(self, since: datetime, until: datetime) -> Decimal:
        pass


class IUnitOfWork(ABC):
    """One store transaction shared by the catalog, borrower, ledger and report repositories.

    ``async with uow:`` rolls back on exit unless :meth:`commit` was called.
    """

    books: ICatalogRepository
    borrowers: IBorrowerRepository
    ledger: ILedgerRepository
    reports: IReportRepository

    async def __aenter__(self) -> "IUnitOfWork":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.rollback()

    @abstractmethod
    async def commit(self) -> None:
        pass

    @abstractmethod
    async def rollback(self) -> None:
        pass
