"""SQLAlchemy database models."""

from datetime import date, datetime

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    pass


class BookModel(Base):
    __tablename__ = "books"
    __table_args__ = (
        CheckConstraint("total_copies >= 0", name="chk_total_copies"),
        CheckConstraint(
            "available_copies >= 0 AND available_copies <= total_copies",
            name="chk_available_copies",
        ),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(255), nullable=False, index=True)
    author = Column(String(255), nullable=False, index=True)
    isbn = Column(String(20), nullable=False, unique=True, index=True)
    publisher = Column(String(255), nullable=True)
    publication_year = Column(Integer, nullable=True)
    genre = Column(String(100), nullable=True, index=True)
    total_copies = Column(Integer, nullable=False, default=1)
    available_copies = Column(Integer, nullable=False, default=1)
    location = Column(String(100), nullable=True)  # shelf
    created_at = Column(DateTime, default=datetime.now, nullable=False)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now, nullable=False)


class BorrowerModel(Base):
    __tablename__ = "borrowers"
    __table_args__ = (
        CheckConstraint(
            "max_books_allowed > 0 AND max_books_allowed <= 20", name="chk_max_books"
        ),
        Index("ix_borrowers_name", "last_name", "first_name"),
        Index("ix_borrowers_membership", "membership_type", "is_active"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=False, unique=True, index=True)
    phone = Column(String(20), nullable=True)
    address = Column(Text, nullable=True)
    membership_date = Column(Date, default=date.today, nullable=False)
    membership_type = Column(String(20), default="Public", nullable=False)  # Student|Faculty|Public|Staff
    is_active = Column(Boolean, default=True, nullable=False)
    max_books_allowed = Column(Integer, default=5, nullable=False)
    created_at = Column(DateTime, default=datetime.now, nullable=False)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now, nullable=False)


class TransactionModel(Base):
    """Circulation ledger row.

    Foreign keys RESTRICT deletes: a book or borrower referenced by the
    ledger cannot be removed, and no ORM cascade is declared.
    """

    __tablename__ = "transactions"
    __table_args__ = (
        CheckConstraint("fine_amount >= 0", name="chk_fine_amount"),
        Index("ix_transactions_type_date", "transaction_type", "transaction_date"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    book_id = Column(
        Integer, ForeignKey("books.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    borrower_id = Column(
        Integer, ForeignKey("borrowers.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    transaction_type = Column(String(10), nullable=False)  # Borrow|Return|Renew
    transaction_date = Column(DateTime, default=datetime.now, nullable=False)
    due_date = Column(Date, nullable=True, index=True)
    return_date = Column(Date, nullable=True)
    fine_amount = Column(Numeric(10, 2), default=0, nullable=False)
    status = Column(String(10), default="Active", nullable=False, index=True)  # Active|Completed|Overdue|Lost
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.now, nullable=False)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now, nullable=False)
