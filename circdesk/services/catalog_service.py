"""Catalog service with business logic."""

import logging
from datetime import datetime
from typing import Callable, Optional

from circdesk.domain.entities import Book
from circdesk.domain.outcome import FailureReason, Outcome
from circdesk.domain.repositories import IUnitOfWork, LedgerFilter
from circdesk.domain.services import ICatalogService

logger = logging.getLogger(__name__)


class CatalogService(ICatalogService):
    """Book inventory: adding, editing, searching and retiring titles."""

    def __init__(self, uow: IUnitOfWork, clock: Callable[[], datetime] = datetime.now):
        self.uow = uow
        self.clock = clock

    async def add_book(self, book: Book) -> Outcome[Book]:
        book.isbn = book.isbn.strip()
        errors = book.validation_errors(self.clock().date())
        if errors:
            return self._reject(FailureReason.INVALID_BOOK, "; ".join(errors))

        async with self.uow:
            existing = await self.uow.books.get_by_isbn(book.isbn)
            if existing:
                return self._reject(
                    FailureReason.DUPLICATE_ISBN,
                    f"Book with ISBN {book.isbn} already exists. "
                    "Consider updating the copy count instead.",
                )
            created = await self.uow.books.create(book)
            await self.uow.commit()

        logger.info("Book added: %s '%s'", created.id, created.title)
        return Outcome.success(
            created, f"Book '{created.title}' added successfully with ID: {created.id}"
        )

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
        """Edit catalog fields.

        Changing ``total_copies`` moves ``available_copies`` by the same
        amount so copies currently on loan stay accounted for.
        """
        async with self.uow:
            book = await self.uow.books.get_by_id(book_id)
            if book is None:
                return self._reject(FailureReason.BOOK_NOT_FOUND, "Book not found.")

            if isbn is not None and isbn.strip() != book.isbn:
                isbn = isbn.strip()
                if await self.uow.books.get_by_isbn(isbn):
                    return self._reject(
                        FailureReason.DUPLICATE_ISBN, f"Book with ISBN {isbn} already exists."
                    )
                book.isbn = isbn
            if title is not None:
                book.title = title
            if author is not None:
                book.author = author
            if publisher is not None:
                book.publisher = publisher or None
            if publication_year is not None:
                book.publication_year = publication_year
            if genre is not None:
                book.genre = genre or None
            if location is not None:
                book.location = location or None
            if total_copies is not None and total_copies != book.total_copies:
                on_loan = book.borrowed_copies
                if total_copies < on_loan:
                    return self._reject(
                        FailureReason.INVALID_COPY_COUNT,
                        f"{on_loan} copies are on loan; total copies cannot be "
                        f"set to {total_copies}.",
                    )
                book.total_copies = total_copies
                book.available_copies = total_copies - on_loan

            errors = book.validation_errors(self.clock().date())
            if errors:
                return self._reject(FailureReason.INVALID_BOOK, "; ".join(errors))

            updated = await self.uow.books.update(book)
            await self.uow.commit()

        logger.info("Book updated: %s", book_id)
        return Outcome.success(updated, f"Book '{updated.title}' updated successfully.")

    async def get_book(self, book_id: int) -> Optional[Book]:
        async with self.uow:
            return await self.uow.books.get_by_id(book_id)

    async def find_by_isbn(self, isbn: str) -> Optional[Book]:
        async with self.uow:
            return await self.uow.books.get_by_isbn(isbn.strip())

    async def search_books(
        self,
        title: Optional[str] = None,
        author: Optional[str] = None,
        genre: Optional[str] = None,
        available_only: bool = False,
    ) -> list[Book]:
        async with self.uow:
            return await self.uow.books.search(
                title=title, author=author, genre=genre, available_only=available_only
            )

    async def list_books(self, skip: int = 0, limit: int = 100) -> list[Book]:
        async with self.uow:
            return await self.uow.books.list_all(skip, limit)

    async def count_books(self) -> int:
        async with self.uow:
            return await self.uow.books.count()

    async def delete_book(self, book_id: int) -> Outcome[int]:
        """Remove a book that has never been part of the ledger.

        Open loans block deletion outright; closed loans block it too, since
        ledger rows are permanent and keep referencing the book.
        """
        async with self.uow:
            book = await self.uow.books.get_by_id(book_id)
            if book is None:
                return self._reject(FailureReason.BOOK_NOT_FOUND, "Book not found.")

            open_loans = await self.uow.ledger.count(LedgerFilter.open_loans(book_id=book_id))
            if open_loans:
                return self._reject(
                    FailureReason.HAS_ACTIVE_LOANS,
                    "Cannot delete book with active transactions.",
                )
            history = await self.uow.ledger.count(LedgerFilter(book_id=book_id))
            if history:
                return self._reject(
                    FailureReason.HAS_TRANSACTION_HISTORY,
                    "Cannot delete book with transaction history. "
                    "Set its total copies to 0 to withdraw it instead.",
                )
            await self.uow.books.delete(book_id)
            await self.uow.commit()

        logger.info("Book deleted: %s", book_id)
        return Outcome.success(book_id, f"Book '{book.title}' deleted successfully.")

    @staticmethod
    def _reject(reason: FailureReason, message: str) -> Outcome:
        logger.info("Catalog request rejected (%s): %s", reason.value, message)
        return Outcome.failure(reason, message)
