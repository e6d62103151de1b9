from decimal import Decimal

from circdesk.domain.entities import TransactionStatus


async def test_overdue_report_sweeps_first(services, clock, make_book, make_borrower):
    late = await make_book("late", title="Late Book")
    reader = await make_borrower("reader@example.com", first_name="Rita", last_name="Reader")
    assert (await services.circulation.borrow(late.id, reader.id, 3)).ok
    clock.advance(days=5)

    rows = await services.reports.overdue_report()

    assert len(rows) == 1
    row = rows[0]
    assert row.book_title == "Late Book"
    assert row.borrower_name == "Rita Reader"
    assert row.days_overdue == 2
    assert row.transaction.status == TransactionStatus.OVERDUE
    assert row.transaction.fine_amount == Decimal("1.00")


async def test_due_soon_window(services, clock, make_book, borrower):
    soon = await make_book("soon", title="Soon")
    later = await make_book("later", title="Later")
    assert (await services.circulation.borrow(soon.id, borrower.id, 2)).ok
    assert (await services.circulation.borrow(later.id, borrower.id, 10)).ok

    rows = await services.reports.due_soon()

    assert [r.book_title for r in rows] == ["Soon"]
    assert [r.book_title for r in await services.reports.due_soon(10)] == ["Soon", "Later"]


async def test_availability_lists_whole_catalog(services, make_book):
    await make_book("b", title="Beta", copies=0)
    await make_book("a", title="Alpha", copies=2)

    books = await services.reports.availability()

    assert [(b.title, b.available_copies) for b in books] == [("Alpha", 2), ("Beta", 0)]


async def test_popular_books_and_activity(services, clock, make_book, make_borrower):
    hit = await make_book("hit", title="Hit", copies=3, genre="Fiction")
    niche = await make_book("niche", title="Niche", copies=1, genre="Poetry")
    first = await make_borrower("first@example.com", first_name="Fay", last_name="First")
    second = await make_borrower("second@example.com", first_name="Sam", last_name="Second")

    assert (await services.circulation.borrow(hit.id, first.id)).ok
    assert (await services.circulation.borrow(hit.id, second.id)).ok
    assert (await services.circulation.borrow(niche.id, first.id)).ok
    assert (await services.circulation.return_book(niche.id, first.id)).ok

    popular = await services.reports.popular_books()
    assert [(r.title, r.borrow_count) for r in popular] == [("Hit", 2), ("Niche", 1)]
    assert [r.title for r in await services.reports.popular_books(top=1)] == ["Hit"]

    activity = await services.reports.borrower_activity()
    assert [(r.full_name, r.total_borrows, r.current_borrows) for r in activity] == [
        ("Fay First", 2, 1),
        ("Sam Second", 1, 1),
    ]

    genres = await services.reports.genre_popularity()
    assert [(g.genre, g.borrow_count, g.unique_books) for g in genres] == [
        ("Fiction", 2, 1),
        ("Poetry", 1, 1),
    ]


async def test_fine_collection_and_statistics(services, clock, make_book, make_borrower):
    cheap = await make_book("cheap")
    costly = await make_book("costly")
    reader = await make_borrower("fined@example.com")
    other = await make_borrower("other@example.com")
    assert (await services.circulation.borrow(cheap.id, reader.id, 4)).ok
    assert (await services.circulation.borrow(costly.id, other.id, 1)).ok
    clock.advance(days=6)
    assert (await services.circulation.return_book(cheap.id, reader.id)).ok
    assert (await services.circulation.return_book(costly.id, other.id)).ok

    fines = await services.reports.fine_collection()
    assert [r.transaction.fine_amount for r in fines] == [Decimal("2.50"), Decimal("1.00")]

    march = await services.reports.borrowing_statistics(2024, 3)
    assert march.counts_by_type == {"Borrow": 2}
    assert march.total_fines == Decimal("3.50")

    april = await services.reports.borrowing_statistics(2024, 4)
    assert april.counts_by_type == {}
    assert april.total_fines == Decimal("0.00")

    year = await services.reports.borrowing_statistics(2024)
    assert year.month is None
    assert year.counts_by_type == {"Borrow": 2}


async def test_explicit_zero_top_returns_no_rows(services, book, borrower):
    assert (await services.circulation.borrow(book.id, borrower.id)).ok

    assert await services.reports.popular_books(top=0) == []
    assert await services.reports.borrower_activity(top=0) == []
    assert len(await services.reports.popular_books()) == 1
