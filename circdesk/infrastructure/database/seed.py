"""Sample catalog and borrowers for a fresh database."""

import logging

from circdesk.domain.entities import Book, Borrower, MembershipType
from circdesk.domain.services import IBorrowerService, ICatalogService

logger = logging.getLogger(__name__)

SAMPLE_BOOKS = [
    Book(title="The Great Gatsby", author="F. Scott Fitzgerald", isbn="978-0-7432-7356-5",
         publisher="Scribner", publication_year=1925, genre="Fiction",
         total_copies=3, available_copies=3, location="A-001"),
    Book(title="To Kill a Mockingbird", author="Harper Lee", isbn="978-0-06-112008-4",
         publisher="J.B. Lippincott & Co.", publication_year=1960, genre="Fiction",
         total_copies=2, available_copies=2, location="A-002"),
    Book(title="1984", author="George Orwell", isbn="978-0-452-28423-4",
         publisher="Secker & Warburg", publication_year=1949, genre="Dystopian Fiction",
         total_copies=4, available_copies=4, location="A-003"),
    Book(title="Pride and Prejudice", author="Jane Austen", isbn="978-0-14-143951-8",
         publisher="T. Egerton", publication_year=1813, genre="Romance",
         total_copies=2, available_copies=2, location="A-004"),
    Book(title="The Catcher in the Rye", author="J.D. Salinger", isbn="978-0-316-76948-0",
         publisher="Little, Brown and Company", publication_year=1951, genre="Fiction",
         total_copies=3, available_copies=3, location="A-005"),
]

SAMPLE_BORROWERS = [
    Borrower(first_name="John", last_name="Doe", email="john.doe@email.com",
             phone="555-0101", address="123 Main St, City, State",
             membership_type=MembershipType.PUBLIC),
    Borrower(first_name="Jane", last_name="Smith", email="jane.smith@email.com",
             phone="555-0102", address="456 Oak Ave, City, State",
             membership_type=MembershipType.STUDENT),
    Borrower(first_name="Robert", last_name="Johnson", email="robert.johnson@email.com",
             phone="555-0103", address="789 Pine Rd, City, State",
             membership_type=MembershipType.FACULTY),
    Borrower(first_name="Emily", last_name="Davis", email="emily.davis@email.com",
             phone="555-0104", address="321 Elm St, City, State",
             membership_type=MembershipType.STAFF),
    Borrower(first_name="Michael", last_name="Wilson", email="michael.wilson@email.com",
             phone="555-0105", address="654 Maple Dr, City, State",
             membership_type=MembershipType.PUBLIC),
]


_STAMPED_FIELDS = ("created_at", "updated_at", "membership_date")


def _fresh(sample):
    """Copy a sample row, leaving its timestamps to be set now."""
    fields = {k: v for k, v in vars(sample).items() if k not in _STAMPED_FIELDS}
    return type(sample)(**fields)


async def seed_demo_data(catalog: ICatalogService, borrowers: IBorrowerService) -> tuple[int, int]:
    """Insert the sample rows that are not there yet; returns (books, borrowers) added."""
    books_added = 0
    for sample in SAMPLE_BOOKS:
        if await catalog.find_by_isbn(sample.isbn) is None:
            outcome = await catalog.add_book(_fresh(sample))
            books_added += outcome.ok

    borrowers_added = 0
    for sample in SAMPLE_BORROWERS:
        if await borrowers.find_by_email(sample.email) is None:
            outcome = await borrowers.add_borrower(_fresh(sample))
            borrowers_added += outcome.ok

    logger.info("Seeded %d books and %d borrowers", books_added, borrowers_added)
    return books_added, borrowers_added
