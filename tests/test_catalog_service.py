from circdesk.domain.entities import Book
from circdesk.domain.outcome import ErrorKind, FailureReason


async def test_add_and_find_book(services, book):
    assert book.id is not None
    assert (await services.catalog.find_by_isbn(book.isbn)).title == "The Great Gatsby"
    assert await services.catalog.count_books() == 1


async def test_duplicate_isbn_is_rejected(services, book):
    outcome = await services.catalog.add_book(
        Book(title="Another", author="Someone", isbn=f" {book.isbn} ")
    )
    assert outcome.reason == FailureReason.DUPLICATE_ISBN
    assert outcome.kind == ErrorKind.CONFLICT
    assert await services.catalog.count_books() == 1


async def test_invalid_book_is_rejected(services):
    outcome = await services.catalog.add_book(
        Book(title="", author="A", isbn="1", publication_year=2099)
    )
    assert outcome.reason == FailureReason.INVALID_BOOK
    assert "Title is required" in outcome.message


async def test_search_books(services, make_book):
    await make_book("s1", title="Dune", author="Frank Herbert", genre="Science Fiction")
    await make_book("s2", title="Emma", author="Jane Austen", genre="Romance")
    await make_book("s3", title="Persuasion", author="Jane Austen", genre="Romance", copies=0)

    assert [b.title for b in await services.catalog.search_books(author="austen")] == [
        "Emma",
        "Persuasion",
    ]
    assert [b.title for b in await services.catalog.search_books(title="dun")] == ["Dune"]
    available = await services.catalog.search_books(genre="romance", available_only=True)
    assert [b.title for b in available] == ["Emma"]


async def test_update_total_copies_keeps_loans_accounted(services, book, borrower):
    assert (await services.circulation.borrow(book.id, borrower.id)).ok

    grown = await services.catalog.update_book(book.id, total_copies=5)
    assert grown.value.total_copies == 5
    assert grown.value.available_copies == 4

    too_few = await services.catalog.update_book(book.id, total_copies=0)
    assert too_few.reason == FailureReason.INVALID_COPY_COUNT
    assert (await services.catalog.get_book(book.id)).total_copies == 5


async def test_update_book_fields(services, book, make_book):
    other = await make_book("other-isbn")

    clash = await services.catalog.update_book(book.id, isbn=other.isbn)
    assert clash.reason == FailureReason.DUPLICATE_ISBN

    outcome = await services.catalog.update_book(book.id, location="B-010", genre="Classic")
    assert outcome.ok
    assert outcome.value.location == "B-010"
    assert outcome.value.genre == "Classic"

    missing = await services.catalog.update_book(999, title="Nope")
    assert missing.reason == FailureReason.BOOK_NOT_FOUND


async def test_delete_book_rules(services, book, borrower, make_book):
    unused = await make_book("unused")
    assert (await services.catalog.delete_book(unused.id)).ok
    assert await services.catalog.get_book(unused.id) is None

    assert (await services.circulation.borrow(book.id, borrower.id)).ok
    on_loan = await services.catalog.delete_book(book.id)
    assert on_loan.reason == FailureReason.HAS_ACTIVE_LOANS

    assert (await services.circulation.return_book(book.id, borrower.id)).ok
    returned = await services.catalog.delete_book(book.id)
    assert returned.reason == FailureReason.HAS_TRANSACTION_HISTORY
    assert await services.catalog.get_book(book.id) is not None


async def test_list_books_paginates_by_title(services, make_book):
    for isbn, title in [("p1", "Charlie"), ("p2", "Alpha"), ("p3", "Bravo")]:
        await make_book(isbn, title=title)

    first_page = await services.catalog.list_books(skip=0, limit=2)
    second_page = await services.catalog.list_books(skip=2, limit=2)

    assert [b.title for b in first_page] == ["Alpha", "Bravo"]
    assert [b.title for b in second_page] == ["Charlie"]
