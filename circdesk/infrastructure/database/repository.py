"""Repository implementations.

Repositories only ``flush()``; committing is the unit of work's job so that
paired writes (copy count + ledger row) land in one transaction.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional, Sequence

from sqlalchemy import case, distinct, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from circdesk.domain.entities import (
    Book,
    Borrower,
    BorrowerActivityRow,
    GenrePopularityRow,
    LOAN_TYPES,
    MembershipType,
    OPEN_STATUSES,
    PopularBookRow,
    Transaction,
    TransactionStatus,
    TransactionType,
)
from circdesk.domain.repositories import (
    IBorrowerRepository,
    ICatalogRepository,
    ILedgerRepository,
    IReportRepository,
    LedgerFilter,
)
from circdesk.infrastructure.database.models import BookModel, BorrowerModel, TransactionModel


def _codes(values) -> list[str]:
    return [v.value for v in values]


# ---------------------------------------------------------------------------
# Catalog Repository
# ---------------------------------------------------------------------------
class CatalogRepository(ICatalogRepository):

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, book: Book) -> Book:
        db_book = BookModel(
            title=book.title,
            author=book.author,
            isbn=book.isbn,
            publisher=book.publisher,
            publication_year=book.publication_year,
            genre=book.genre,
            total_copies=book.total_copies,
            available_copies=book.available_copies,
            location=book.location,
            created_at=book.created_at,
            updated_at=book.updated_at,
        )
        self.session.add(db_book)
        await self.session.flush()
        await self.session.refresh(db_book)
        return self._to_entity(db_book)

    async def get_by_id(self, book_id: int) -> Optional[Book]:
        result = await self.session.execute(select(BookModel).where(BookModel.id == book_id))
        db_book = result.scalar_one_or_none()
        return self._to_entity(db_book) if db_book else None

    async def get_by_isbn(self, isbn: str) -> Optional[Book]:
        result = await self.session.execute(select(BookModel).where(BookModel.isbn == isbn))
        db_book = result.scalar_one_or_none()
        return self._to_entity(db_book) if db_book else None

    async def list_all(self, skip: int = 0, limit: int = 100) -> list[Book]:
        result = await self.session.execute(
            select(BookModel).order_by(BookModel.title).offset(skip).limit(limit)
        )
        return [self._to_entity(book) for book in result.scalars().all()]

    async def count(self) -> int:
        result = await self.session.execute(select(func.count()).select_from(BookModel))
        return result.scalar_one()

    async def search(
        self,
        title: Optional[str] = None,
        author: Optional[str] = None,
        genre: Optional[str] = None,
        available_only: bool = False,
    ) -> list[Book]:
        stmt = select(BookModel)
        if title:
            stmt = stmt.where(BookModel.title.ilike(f"%{title}%"))
        if author:
            stmt = stmt.where(BookModel.author.ilike(f"%{author}%"))
        if genre:
            stmt = stmt.where(BookModel.genre.ilike(f"%{genre}%"))
        if available_only:
            stmt = stmt.where(BookModel.available_copies > 0)
        if author and not title:
            stmt = stmt.order_by(BookModel.author, BookModel.title)
        else:
            stmt = stmt.order_by(BookModel.title)
        result = await self.session.execute(stmt)
        return [self._to_entity(book) for book in result.scalars().all()]

    async def update(self, book: Book) -> Book:
        result = await self.session.execute(select(BookModel).where(BookModel.id == book.id))
        db_book = result.scalar_one()
        db_book.title = book.title
        db_book.author = book.author
        db_book.isbn = book.isbn
        db_book.publisher = book.publisher
        db_book.publication_year = book.publication_year
        db_book.genre = book.genre
        db_book.total_copies = book.total_copies
        db_book.available_copies = book.available_copies
        db_book.location = book.location
        db_book.updated_at = datetime.now()
        await self.session.flush()
        await self.session.refresh(db_book)
        return self._to_entity(db_book)

    async def delete(self, book_id: int) -> bool:
        result = await self.session.execute(select(BookModel).where(BookModel.id == book_id))
        db_book = result.scalar_one_or_none()
        if db_book:
            await self.session.delete(db_book)
            await self.session.flush()
            return True
        return False

    async def decrement_available(self, book_id: int) -> bool:
        result = await self.session.execute(
            update(BookModel)
            .where(BookModel.id == book_id, BookModel.available_copies > 0)
            .values(available_copies=BookModel.available_copies - 1, updated_at=datetime.now())
            .execution_options(synchronize_session="fetch")
        )
        return result.rowcount == 1

    async def increment_available(self, book_id: int) -> bool:
        result = await self.session.execute(
            update(BookModel)
            .where(
                BookModel.id == book_id,
                BookModel.available_copies < BookModel.total_copies,
            )
            .values(available_copies=BookModel.available_copies + 1, updated_at=datetime.now())
            .execution_options(synchronize_session="fetch")
        )
        return result.rowcount == 1

    @staticmethod
    def _to_entity(model: BookModel) -> Book:
        return Book(
            id=model.id,
            title=model.title,
            author=model.author,
            isbn=model.isbn,
            publisher=model.publisher,
            publication_year=model.publication_year,
            genre=model.genre,
            total_copies=model.total_copies,
            available_copies=model.available_copies,
            location=model.location,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )


# ---------------------------------------------------------------------------
# Borrower Repository
# ---------------------------------------------------------------------------
class BorrowerRepository(IBorrowerRepository):

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, borrower: Borrower) -> Borrower:
        db_borrower = BorrowerModel(
            first_name=borrower.first_name,
            last_name=borrower.last_name,
            email=borrower.email,
            phone=borrower.phone,
            address=borrower.address,
            membership_date=borrower.membership_date,
            membership_type=borrower.membership_type.value,
            is_active=borrower.is_active,
            max_books_allowed=borrower.max_books_allowed,
            created_at=borrower.created_at,
            updated_at=borrower.updated_at,
        )
        self.session.add(db_borrower)
        await self.session.flush()
        await self.session.refresh(db_borrower)
        return self._to_entity(db_borrower)

    async def get_by_id(self, borrower_id: int) -> Optional[Borrower]:
        result = await self.session.execute(
            select(BorrowerModel).where(BorrowerModel.id == borrower_id)
        )
        db_borrower = result.scalar_one_or_none()
        return self._to_entity(db_borrower) if db_borrower else None

    async def get_by_email(self, email: str) -> Optional[Borrower]:
        result = await self.session.execute(
            select(BorrowerModel).where(BorrowerModel.email == email)
        )
        db_borrower = result.scalar_one_or_none()
        return self._to_entity(db_borrower) if db_borrower else None

    async def list_all(self, active_only: bool = False) -> list[Borrower]:
        stmt = select(BorrowerModel)
        if active_only:
            stmt = stmt.where(BorrowerModel.is_active.is_(True))
        stmt = stmt.order_by(BorrowerModel.last_name, BorrowerModel.first_name)
        result = await self.session.execute(stmt)
        return [self._to_entity(b) for b in result.scalars().all()]

    async def search_by_name(self, name: str) -> list[Borrower]:
        pattern = f"%{name}%"
        result = await self.session.execute(
            select(BorrowerModel)
            .where(
                or_(
                    BorrowerModel.first_name.ilike(pattern),
                    BorrowerModel.last_name.ilike(pattern),
                )
            )
            .order_by(BorrowerModel.last_name, BorrowerModel.first_name)
        )
        return [self._to_entity(b) for b in result.scalars().all()]

    async def update(self, borrower: Borrower) -> Borrower:
        result = await self.session.execute(
            select(BorrowerModel).where(BorrowerModel.id == borrower.id)
        )
        db_borrower = result.scalar_one()
        db_borrower.first_name = borrower.first_name
        db_borrower.last_name = borrower.last_name
        db_borrower.email = borrower.email
        db_borrower.phone = borrower.phone
        db_borrower.address = borrower.address
        db_borrower.membership_type = borrower.membership_type.value
        db_borrower.is_active = borrower.is_active
        db_borrower.max_books_allowed = borrower.max_books_allowed
        db_borrower.updated_at = datetime.now()
        await self.session.flush()
        await self.session.refresh(db_borrower)
        return self._to_entity(db_borrower)

    async def delete(self, borrower_id: int) -> bool:
        result = await self.session.execute(
            select(BorrowerModel).where(BorrowerModel.id == borrower_id)
        )
        db_borrower = result.scalar_one_or_none()
        if db_borrower:
            await self.session.delete(db_borrower)
            await self.session.flush()
            return True
        return False

    @staticmethod
    def _to_entity(model: BorrowerModel) -> Borrower:
        return Borrower(
            id=model.id,
            first_name=model.first_name,
            last_name=model.last_name,
            email=model.email,
            phone=model.phone,
            address=model.address,
            membership_date=model.membership_date,
            membership_type=MembershipType(model.membership_type),
            is_active=model.is_active,
            max_books_allowed=model.max_books_allowed,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )


# ---------------------------------------------------------------------------
# Ledger Repository
# ---------------------------------------------------------------------------
class LedgerRepository(ILedgerRepository):

    _ORDER_COLUMNS = {
        "transaction_date": TransactionModel.transaction_date,
        "due_date": TransactionModel.due_date,
        "fine_amount": TransactionModel.fine_amount,
    }

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, transaction: Transaction) -> Transaction:
        db_record = TransactionModel(
            book_id=transaction.book_id,
            borrower_id=transaction.borrower_id,
            transaction_type=transaction.transaction_type.value,
            transaction_date=transaction.transaction_date,
            due_date=transaction.due_date,
            return_date=transaction.return_date,
            fine_amount=transaction.fine_amount,
            status=transaction.status.value,
            notes=transaction.notes,
            created_at=transaction.created_at,
            updated_at=transaction.updated_at,
        )
        self.session.add(db_record)
        await self.session.flush()
        await self.session.refresh(db_record)
        return self._to_entity(db_record)

    async def get_by_id(self, transaction_id: int) -> Optional[Transaction]:
        result = await self.session.execute(
            select(TransactionModel).where(TransactionModel.id == transaction_id)
        )
        db_record = result.scalar_one_or_none()
        return self._to_entity(db_record) if db_record else None

    async def update(self, transaction: Transaction) -> Transaction:
        result = await self.session.execute(
            select(TransactionModel).where(TransactionModel.id == transaction.id)
        )
        db_record = result.scalar_one()
        self._apply(db_record, transaction)
        await self.session.flush()
        await self.session.refresh(db_record)
        return self._to_entity(db_record)

    async def update_many(self, transactions: Sequence[Transaction]) -> None:
        if not transactions:
            return
        by_id = {t.id: t for t in transactions}
        result = await self.session.execute(
            select(TransactionModel).where(TransactionModel.id.in_(by_id))
        )
        for db_record in result.scalars().all():
            self._apply(db_record, by_id[db_record.id])
        await self.session.flush()

    async def query(self, criteria: LedgerFilter) -> list[Transaction]:
        order_column = self._ORDER_COLUMNS.get(
            criteria.order_by, TransactionModel.transaction_date
        )
        ordering = order_column.desc() if criteria.descending else order_column.asc()
        stmt = self._filtered(select(TransactionModel), criteria).order_by(
            ordering, TransactionModel.id
        )
        result = await self.session.execute(stmt)
        return [self._to_entity(r) for r in result.scalars().all()]

    async def count(self, criteria: LedgerFilter) -> int:
        stmt = self._filtered(select(func.count()).select_from(TransactionModel), criteria)
        result = await self.session.execute(stmt)
        return result.scalar_one()

    @staticmethod
    def _filtered(stmt, criteria: LedgerFilter):
        if criteria.borrower_id is not None:
            stmt = stmt.where(TransactionModel.borrower_id == criteria.borrower_id)
        if criteria.book_id is not None:
            stmt = stmt.where(TransactionModel.book_id == criteria.book_id)
        if criteria.statuses:
            stmt = stmt.where(TransactionModel.status.in_(_codes(criteria.statuses)))
        if criteria.types:
            stmt = stmt.where(TransactionModel.transaction_type.in_(_codes(criteria.types)))
        if criteria.due_before is not None:
            stmt = stmt.where(TransactionModel.due_date < criteria.due_before)
        if criteria.due_from is not None:
            stmt = stmt.where(TransactionModel.due_date >= criteria.due_from)
        if criteria.due_to is not None:
            stmt = stmt.where(TransactionModel.due_date <= criteria.due_to)
        if criteria.since is not None:
            stmt = stmt.where(TransactionModel.transaction_date >= criteria.since)
        if criteria.until is not None:
            stmt = stmt.where(TransactionModel.transaction_date < criteria.until)
        if criteria.fined_only:
            stmt = stmt.where(TransactionModel.fine_amount > 0)
        return stmt

    @staticmethod
    def _apply(db_record: TransactionModel, transaction: Transaction) -> None:
        db_record.transaction_type = transaction.transaction_type.value
        db_record.due_date = transaction.due_date
        db_record.return_date = transaction.return_date
        db_record.fine_amount = transaction.fine_amount
        db_record.status = transaction.status.value
        db_record.notes = transaction.notes
        db_record.updated_at = datetime.now()

    @staticmethod
    def _to_entity(model: TransactionModel) -> Transaction:
        return Transaction(
            id=model.id,
            book_id=model.book_id,
            borrower_id=model.borrower_id,
            transaction_type=TransactionType(model.transaction_type),
            transaction_date=model.transaction_date,
            due_date=model.due_date,
            return_date=model.return_date,
            fine_amount=Decimal(str(model.fine_amount or 0)).quantize(Decimal("0.01")),
            status=TransactionStatus(model.status),
            notes=model.notes,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )


# ---------------------------------------------------------------------------
# Report Repository
# ---------------------------------------------------------------------------
class ReportRepository(IReportRepository):
    """Grouped read-only aggregates over the ledger."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def popular_books(self, limit: int = 10) -> list[PopularBookRow]:
        borrow_count = func.count(TransactionModel.id).label("borrow_count")
        result = await self.session.execute(
            select(BookModel.id, BookModel.title, BookModel.author, borrow_count)
            .join(TransactionModel, TransactionModel.book_id == BookModel.id)
            .where(TransactionModel.transaction_type.in_(_codes(LOAN_TYPES)))
            .group_by(BookModel.id, BookModel.title, BookModel.author)
            .order_by(borrow_count.desc(), BookModel.title)
            .limit(limit)
        )
        return [
            PopularBookRow(book_id=row.id, title=row.title, author=row.author,
                           borrow_count=row.borrow_count)
            for row in result.all()
        ]

    async def borrower_activity(self, limit: int = 10) -> list[BorrowerActivityRow]:
        total = func.count(TransactionModel.id).label("total_borrows")
        open_codes = _codes(OPEN_STATUSES)
        current = func.sum(
            case((TransactionModel.status.in_(open_codes), 1), else_=0)
        ).label("current_borrows")
        result = await self.session.execute(
            select(
                BorrowerModel.id,
                BorrowerModel.first_name,
                BorrowerModel.last_name,
                BorrowerModel.email,
                total,
                current,
            )
            .join(TransactionModel, TransactionModel.borrower_id == BorrowerModel.id)
            .where(TransactionModel.transaction_type.in_(_codes(LOAN_TYPES)))
            .group_by(
                BorrowerModel.id,
                BorrowerModel.first_name,
                BorrowerModel.last_name,
                BorrowerModel.email,
            )
            .order_by(total.desc(), BorrowerModel.last_name)
            .limit(limit)
        )
        return [
            BorrowerActivityRow(
                borrower_id=row.id,
                full_name=f"{row.first_name} {row.last_name}",
                email=row.email,
                total_borrows=row.total_borrows,
                current_borrows=int(row.current_borrows or 0),
            )
            for row in result.all()
        ]

    async def genre_popularity(self) -> list[GenrePopularityRow]:
        borrow_count = func.count(TransactionModel.id).label("borrow_count")
        unique_books = func.count(distinct(TransactionModel.book_id)).label("unique_books")
        result = await self.session.execute(
            select(BookModel.genre, borrow_count, unique_books)
            .join(TransactionModel, TransactionModel.book_id == BookModel.id)
            .where(
                TransactionModel.transaction_type.in_(_codes(LOAN_TYPES)),
                BookModel.genre.is_not(None),
                BookModel.genre != "",
            )
            .group_by(BookModel.genre)
            .order_by(borrow_count.desc(), BookModel.genre)
        )
        return [
            GenrePopularityRow(genre=row.genre, borrow_count=row.borrow_count,
                               unique_books=row.unique_books)
            for row in result.all()
        ]

    async def counts_by_type(self, since: datetime, until: datetime) -> dict[str, int]:
        result = await self.session.execute(
            select(TransactionModel.transaction_type, func.count(TransactionModel.id))
            .where(
                TransactionModel.transaction_date >= since,
                TransactionModel.transaction_date < until,
            )
            .group_by(TransactionModel.transaction_type)
        )
        return {type_code: count for type_code, count in result.all()}

    async def total_fines(self, since: datetime, until: datetime) -> Decimal:
        result = await self.session.execute(
            select(func.coalesce(func.sum(TransactionModel.fine_amount), 0)).where(
                TransactionModel.transaction_date >= since,
                TransactionModel.transaction_date < until,
                TransactionModel.fine_amount > 0,
            )
        )
        return Decimal(str(result.scalar_one() or 0)).quantize(Decimal("0.01"))
