"""Domain entities for circdesk."""

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from decimal import Decimal
from enum import Enum
from typing import Optional

from circdesk.domain import policy


class MembershipType(str, Enum):
    """Membership category; the value is the code stored in the database."""

    STUDENT = "Student"
    FACULTY = "Faculty"
    PUBLIC = "Public"
    STAFF = "Staff"

    @property
    def default_max_books(self) -> int:
        return policy.DEFAULT_MAX_BOOKS[self.value]


class TransactionType(str, Enum):
    BORROW = "Borrow"
    RETURN = "Return"
    RENEW = "Renew"


class TransactionStatus(str, Enum):
    ACTIVE = "Active"
    COMPLETED = "Completed"
    OVERDUE = "Overdue"
    LOST = "Lost"


# A loan stays open until it is returned (Completed) or written off (Lost).
OPEN_STATUSES = (TransactionStatus.ACTIVE, TransactionStatus.OVERDUE)
LOAN_TYPES = (TransactionType.BORROW, TransactionType.RENEW)


@dataclass
class Book:
    title: str
    author: str
    isbn: str
    publisher: Optional[str] = None
    publication_year: Optional[int] = None
    genre: Optional[str] = None
    total_copies: int = 1
    available_copies: int = 1
    location: Optional[str] = None
    id: Optional[int] = None
    created_at: datetime = field(default_factory=datetime.now)
    updated_at: datetime = field(default_factory=datetime.now)

    @property
    def borrowed_copies(self) -> int:
        return self.total_copies - self.available_copies

    def is_available(self) -> bool:
        return self.available_copies > 0

    def borrow_copy(self) -> bool:
        """Take one copy off the shelf; False when none is left."""
        if self.available_copies <= 0:
            return False
        self.available_copies -= 1
        self.updated_at = datetime.now()
        return True

    def return_copy(self) -> bool:
        """Put one copy back; False (and no change) when already at total."""
        if self.available_copies >= self.total_copies:
            return False
        self.available_copies += 1
        self.updated_at = datetime.now()
        return True

    def validation_errors(self, today: Optional[date] = None) -> list[str]:
        today = today or date.today()
        errors = []
        if not self.title or not self.title.strip():
            errors.append("Title is required")
        if not self.author or not self.author.strip():
            errors.append("Author is required")
        if not self.isbn or not self.isbn.strip():
            errors.append("ISBN is required")
        if self.publication_year is not None and not (
            1000 < self.publication_year <= today.year
        ):
            errors.append(f"Publication year must be between 1001 and {today.year}")
        if self.total_copies < 0:
            errors.append("Total copies cannot be negative")
        if not 0 <= self.available_copies <= self.total_copies:
            errors.append("Available copies must be between 0 and total copies")
        return errors

    def __str__(self) -> str:
        return (
            f"{self.title} by {self.author} (ISBN: {self.isbn}) - "
            f"Available: {self.available_copies}/{self.total_copies}"
        )


@dataclass
class Borrower:
    first_name: str
    last_name: str
    email: str
    phone: Optional[str] = None
    address: Optional[str] = None
    membership_type: MembershipType = MembershipType.PUBLIC
    membership_date: date = field(default_factory=date.today)
    is_active: bool = True
    max_books_allowed: Optional[int] = None  # None -> membership default
    id: Optional[int] = None
    created_at: datetime = field(default_factory=datetime.now)
    updated_at: datetime = field(default_factory=datetime.now)

    def __post_init__(self) -> None:
        if self.max_books_allowed is None:
            self.max_books_allowed = self.membership_type.default_max_books

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    def can_borrow_more(self, current_borrowed: int) -> bool:
        return self.is_active and current_borrowed < self.max_books_allowed

    def validation_errors(self) -> list[str]:
        errors = []
        if not self.first_name or not self.first_name.strip():
            errors.append("First name is required")
        if not self.last_name or not self.last_name.strip():
            errors.append("Last name is required")
        if not self.email or "@" not in self.email:
            errors.append("A valid email address is required")
        if not policy.MIN_BOOKS_ALLOWED <= self.max_books_allowed <= policy.MAX_BOOKS_ALLOWED:
            errors.append(
                f"Max books allowed must be between {policy.MIN_BOOKS_ALLOWED} "
                f"and {policy.MAX_BOOKS_ALLOWED}"
            )
        return errors

    def __str__(self) -> str:
        return f"{self.full_name} ({self.email}) - {self.membership_type.value}"


@dataclass
class Transaction:
    """One row of the circulation ledger.

    A Borrow creates the row in status Active.  Renew extends the same row
    and flips its type to Renew.  Return closes it (Completed) with the
    final fine.  The overdue sweep moves past-due open loans to Overdue.

    Overdue state and fines are always derived from ``due_date`` and the
    reference date for open loans, whether or not the sweep already flipped
    the status, so a swept loan keeps accruing until it is returned.
    """

    book_id: int
    borrower_id: int
    transaction_type: TransactionType = TransactionType.BORROW
    transaction_date: datetime = field(default_factory=datetime.now)
    due_date: Optional[date] = None
    return_date: Optional[date] = None
    fine_amount: Decimal = Decimal("0.00")
    status: TransactionStatus = TransactionStatus.ACTIVE
    notes: Optional[str] = None
    id: Optional[int] = None
    created_at: datetime = field(default_factory=datetime.now)
    updated_at: datetime = field(default_factory=datetime.now)

    @property
    def is_open(self) -> bool:
        return self.status in OPEN_STATUSES and self.transaction_type in LOAN_TYPES

    def is_overdue(self, on: date) -> bool:
        return self.is_open and self.due_date is not None and on > self.due_date

    def days_overdue(self, on: date) -> int:
        if not self.is_open:
            return 0
        return policy.days_overdue(self.due_date, on)

    def calculate_fine(self, on: date, fine_per_day: Decimal = policy.FINE_PER_DAY) -> Decimal:
        return policy.fine_for(self.days_overdue(on), fine_per_day)

    def mark_overdue(self, on: date, fine_per_day: Decimal = policy.FINE_PER_DAY) -> None:
        self.fine_amount = self.calculate_fine(on, fine_per_day)
        self.status = TransactionStatus.OVERDUE
        self.updated_at = datetime.now()

    def mark_returned(
        self, returned_at: datetime, fine_per_day: Decimal = policy.FINE_PER_DAY
    ) -> Decimal:
        """Close the loan and settle its fine as of ``returned_at``."""
        returned_on = returned_at.date()
        self.fine_amount = self.calculate_fine(returned_on, fine_per_day)
        self.return_date = returned_on
        self.status = TransactionStatus.COMPLETED
        self.updated_at = datetime.now()
        return self.fine_amount

    def renew(self, extra_days: int, today: date) -> date:
        base = self.due_date if self.due_date is not None else today
        self.due_date = base + timedelta(days=extra_days)
        self.transaction_type = TransactionType.RENEW
        self.updated_at = datetime.now()
        return self.due_date

    def __str__(self) -> str:
        return (
            f"{self.transaction_type.value} - Book ID: {self.book_id}, "
            f"Borrower ID: {self.borrower_id}, "
            f"Date: {self.transaction_date:%Y-%m-%d}, Status: {self.status.value}"
        )


@dataclass
class BorrowerSummary:
    """A borrower together with the figures derived from their ledger rows."""

    borrower: Borrower
    current_borrowed_count: int = 0
    total_fine_amount: Decimal = Decimal("0.00")
    has_overdue: bool = False

    @property
    def full_name(self) -> str:
        return self.borrower.full_name

    @property
    def remaining_limit(self) -> int:
        return max(0, self.borrower.max_books_allowed - self.current_borrowed_count)


# ---------------------------------------------------------------------------
# Report rows
# ---------------------------------------------------------------------------
@dataclass
class LoanRow:
    transaction: Transaction
    book_title: str
    borrower_name: str
    days_overdue: int = 0


@dataclass
class PopularBookRow:
    book_id: int
    title: str
    author: str
    borrow_count: int


@dataclass
class BorrowerActivityRow:
    borrower_id: int
    full_name: str
    email: str
    total_borrows: int
    current_borrows: int


@dataclass
class GenrePopularityRow:
    genre: str
    borrow_count: int
    unique_books: int


@dataclass
class BorrowingStatistics:
    year: int
    month: Optional[int]
    counts_by_type: dict[str, int] = field(default_factory=dict)
    total_fines: Decimal = Decimal("0.00")
