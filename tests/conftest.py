from datetime import datetime, timedelta

import pytest

from circdesk.core.config import Settings
from circdesk.core.dependencies import build_services
from circdesk.domain.entities import Book, Borrower, MembershipType
from circdesk.infrastructure.database.connection import (
    create_engine,
    create_session_maker,
    init_db,
)


class FrozenClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, days: int = 0) -> None:
        self.now += timedelta(days=days)


@pytest.fixture
def database_url(tmp_path):
    return f"sqlite+aiosqlite:///{tmp_path / 'circdesk.db'}"


@pytest.fixture
async def engine(database_url):
    engine = create_engine(database_url, echo=False)
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
async def session(engine):
    async with create_session_maker(engine)() as session:
        yield session


@pytest.fixture
def clock():
    return FrozenClock(datetime(2024, 3, 1, 10, 0))


@pytest.fixture
def config():
    return Settings(_env_file=None)


@pytest.fixture
def services(session, clock, config):
    return build_services(session, config, clock=clock)


@pytest.fixture
async def book(services):
    outcome = await services.catalog.add_book(
        Book(
            title="The Great Gatsby",
            author="F. Scott Fitzgerald",
            isbn="978-0-7432-7356-5",
            genre="Fiction",
            publication_year=1925,
            total_copies=3,
            available_copies=3,
        )
    )
    assert outcome.ok, outcome.message
    return outcome.value


@pytest.fixture
async def borrower(services):
    outcome = await services.borrowers.add_borrower(
        Borrower(
            first_name="John",
            last_name="Doe",
            email="john.doe@email.com",
            membership_type=MembershipType.PUBLIC,
        )
    )
    assert outcome.ok, outcome.message
    return outcome.value


@pytest.fixture
def make_book(services):
    async def _make(isbn: str, copies: int = 1, **fields) -> Book:
        fields.setdefault("title", f"Book {isbn}")
        fields.setdefault("author", "Author")
        outcome = await services.catalog.add_book(
            Book(isbn=isbn, total_copies=copies, available_copies=copies, **fields)
        )
        assert outcome.ok, outcome.message
        return outcome.value

    return _make


@pytest.fixture
def make_borrower(services):
    async def _make(email: str, **fields) -> Borrower:
        fields.setdefault("first_name", "Test")
        fields.setdefault("last_name", email.split("@")[0].title())
        outcome = await services.borrowers.add_borrower(Borrower(email=email, **fields))
        assert outcome.ok, outcome.message
        return outcome.value

    return _make
