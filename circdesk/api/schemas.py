"""Pydantic schemas for API requests and responses."""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from circdesk.domain import policy
from circdesk.domain.entities import MembershipType, TransactionStatus, TransactionType


# ---------------------------------------------------------------------------
# Books
# ---------------------------------------------------------------------------
class BookCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    author: str = Field(..., min_length=1, max_length=255)
    isbn: str = Field(..., min_length=1, max_length=20)
    publisher: Optional[str] = Field(None, max_length=255)
    publication_year: Optional[int] = None
    genre: Optional[str] = Field(None, max_length=100)
    total_copies: int = Field(1, ge=0)
    location: Optional[str] = Field(None, max_length=50)


class BookUpdate(BaseModel):
    """Partial book update; omitted fields keep their value."""

    title: Optional[str] = Field(None, min_length=1, max_length=255)
    author: Optional[str] = Field(None, min_length=1, max_length=255)
    isbn: Optional[str] = Field(None, min_length=1, max_length=20)
    publisher: Optional[str] = Field(None, max_length=255)
    publication_year: Optional[int] = None
    genre: Optional[str] = Field(None, max_length=100)
    total_copies: Optional[int] = Field(None, ge=0)
    location: Optional[str] = Field(None, max_length=50)


class BookResponse(BaseModel):
    id: int
    title: str
    author: str
    isbn: str
    publisher: Optional[str] = None
    publication_year: Optional[int] = None
    genre: Optional[str] = None
    total_copies: int
    available_copies: int
    location: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class BookListResponse(BaseModel):
    books: list[BookResponse]
    total: int
    page: int
    limit: int


# ---------------------------------------------------------------------------
# Borrowers
# ---------------------------------------------------------------------------
class BorrowerCreate(BaseModel):
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    phone: Optional[str] = Field(None, max_length=20)
    address: Optional[str] = Field(None, max_length=500)
    membership_type: MembershipType = MembershipType.PUBLIC
    max_books_allowed: Optional[int] = Field(
        None, ge=policy.MIN_BOOKS_ALLOWED, le=policy.MAX_BOOKS_ALLOWED
    )


class BorrowerUpdate(BaseModel):
    first_name: Optional[str] = Field(None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(None, min_length=1, max_length=100)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=20)
    address: Optional[str] = Field(None, max_length=500)
    membership_type: Optional[MembershipType] = None
    max_books_allowed: Optional[int] = Field(
        None, ge=policy.MIN_BOOKS_ALLOWED, le=policy.MAX_BOOKS_ALLOWED
    )


class BorrowerResponse(BaseModel):
    id: int
    first_name: str
    last_name: str
    full_name: str
    email: str
    phone: Optional[str] = None
    address: Optional[str] = None
    membership_type: MembershipType
    membership_date: date
    is_active: bool
    max_books_allowed: int

    model_config = ConfigDict(from_attributes=True)


class BorrowerSummaryResponse(BaseModel):
    borrower: BorrowerResponse
    current_borrowed_count: int
    total_fine_amount: Decimal
    has_overdue: bool
    remaining_limit: int

    model_config = ConfigDict(from_attributes=True)


# ---------------------------------------------------------------------------
# Circulation
# ---------------------------------------------------------------------------
class BorrowRequest(BaseModel):
    book_id: int
    borrower_id: int
    loan_days: Optional[int] = None


class ReturnRequest(BaseModel):
    book_id: int
    borrower_id: int
    returned_at: Optional[datetime] = None


class RenewRequest(BaseModel):
    extra_days: Optional[int] = None


class TransactionResponse(BaseModel):
    id: int
    book_id: int
    borrower_id: int
    transaction_type: TransactionType
    transaction_date: datetime
    due_date: Optional[date] = None
    return_date: Optional[date] = None
    fine_amount: Decimal
    status: TransactionStatus
    notes: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class BorrowResponse(BaseModel):
    transaction: TransactionResponse
    message: str


class ReturnResponse(BaseModel):
    fine_amount: Decimal
    message: str


class RenewResponse(BaseModel):
    transaction_id: int
    due_date: date
    message: str


class SweepResponse(BaseModel):
    overdue_count: int
    transactions: list[TransactionResponse]


# ---------------------------------------------------------------------------
# Reports
# ---------------------------------------------------------------------------
class LoanRowResponse(BaseModel):
    transaction: TransactionResponse
    book_title: str
    borrower_name: str
    days_overdue: int

    model_config = ConfigDict(from_attributes=True)


class PopularBookResponse(BaseModel):
    book_id: int
    title: str
    author: str
    borrow_count: int

    model_config = ConfigDict(from_attributes=True)


class BorrowerActivityResponse(BaseModel):
    borrower_id: int
    full_name: str
    email: str
    total_borrows: int
    current_borrows: int

    model_config = ConfigDict(from_attributes=True)


class GenrePopularityResponse(BaseModel):
    genre: str
    borrow_count: int
    unique_books: int

    model_config = ConfigDict(from_attributes=True)


class BorrowingStatisticsResponse(BaseModel):
    year: int
    month: Optional[int] = None
    counts_by_type: dict[str, int]
    total_fines: Decimal

    model_config = ConfigDict(from_attributes=True)
