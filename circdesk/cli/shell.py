"""Interactive circulation desk menu built on rich prompts and tables."""

import logging
from datetime import datetime
from typing import Optional

from rich.console import Console
from rich.prompt import Confirm, IntPrompt, Prompt
from rich.table import Table

from circdesk.core.dependencies import Services
from circdesk.domain.entities import Book, Borrower, LoanRow, MembershipType, Transaction
from circdesk.domain.errors import StoreFailure
from circdesk.domain.outcome import Outcome

logger = logging.getLogger(__name__)

MEMBERSHIP_CHOICES = {
    "1": MembershipType.PUBLIC,
    "2": MembershipType.STUDENT,
    "3": MembershipType.FACULTY,
    "4": MembershipType.STAFF,
}


def _optional(prompt: str, default: Optional[str] = None) -> Optional[str]:
    """Ask for a value; an empty answer means 'keep' (or no value)."""
    answer = Prompt.ask(prompt, default=default or "", show_default=bool(default))
    return answer.strip() or None


def _optional_int(prompt: str, console: Console) -> Optional[int]:
    """Ask for a whole number; blank means no value, anything else is asked again."""
    while True:
        answer = Prompt.ask(prompt, default="", show_default=False).strip()
        if not answer:
            return None
        try:
            return int(answer)
        except ValueError:
            console.print(f"[red]'{answer}' is not a whole number.[/]")


class DeskShell:
    """Menu loop for librarians; every action goes through the services."""

    def __init__(self, services: Services, console: Optional[Console] = None):
        self.services = services
        self.console = console or Console()

    async def run(self) -> None:
        self.console.print("[bold cyan]Library Management System[/]")
        menus = {
            "1": self.book_menu,
            "2": self.borrower_menu,
            "3": self.circulation_menu,
            "4": self.report_menu,
        }
        while True:
            self.console.print(
                "\n[bold]Main Menu[/]\n"
                "1. Book Management\n"
                "2. Borrower Management\n"
                "3. Borrowing/Returning\n"
                "4. Reports\n"
                "5. Exit"
            )
            choice = Prompt.ask("Select an option", choices=["1", "2", "3", "4", "5"])
            if choice == "5":
                self.console.print("Goodbye!")
                return
            try:
                await menus[choice]()
            except StoreFailure as exc:
                logger.error("Menu action failed: %s", exc)
                self.console.print(f"[red]The database rejected the operation: {exc.cause}[/]")

    def _report(self, outcome: Outcome) -> None:
        if outcome.ok:
            self.console.print(f"[green]{outcome.message}[/]")
        else:
            self.console.print(f"[red]{outcome.message}[/]")

    # ------------------------------------------------------------------
    # Books
    # ------------------------------------------------------------------
    async def book_menu(self) -> None:
        self.console.print(
            "\n[bold]Book Management[/]\n"
            "1. Add New Book\n"
            "2. Search Books\n"
            "3. View All Books\n"
            "4. Update Book\n"
            "5. Delete Book\n"
            "6. Back to Main Menu"
        )
        choice = Prompt.ask("Select an option", choices=["1", "2", "3", "4", "5", "6"])
        if choice == "1":
            await self.add_book()
        elif choice == "2":
            await self.search_books()
        elif choice == "3":
            self.show_books(await self.services.catalog.list_books(limit=1000))
        elif choice == "4":
            await self.update_book()
        elif choice == "5":
            await self.delete_book()

    async def add_book(self) -> None:
        book = Book(
            title=Prompt.ask("Title"),
            author=Prompt.ask("Author"),
            isbn=Prompt.ask("ISBN"),
            publisher=_optional("Publisher"),
            publication_year=_optional_int("Publication year", self.console),
            genre=_optional("Genre"),
            location=_optional("Shelf location"),
        )
        book.total_copies = book.available_copies = IntPrompt.ask("Total copies", default=1)
        self._report(await self.services.catalog.add_book(book))

    async def search_books(self) -> None:
        self.console.print("1. Search by Title\n2. Search by Author\n3. Search by ISBN")
        choice = Prompt.ask("Search type", choices=["1", "2", "3"])
        term = Prompt.ask("Search term")
        if choice == "3":
            book = await self.services.catalog.find_by_isbn(term)
            self.show_books([book] if book else [])
        elif choice == "2":
            self.show_books(await self.services.catalog.search_books(author=term))
        else:
            self.show_books(await self.services.catalog.search_books(title=term))

    async def update_book(self) -> None:
        book_id = IntPrompt.ask("Book ID")
        book = await self.services.catalog.get_book(book_id)
        if book is None:
            self.console.print("[red]Book not found.[/]")
            return
        self.console.print(f"Current: {book}")
        self._report(
            await self.services.catalog.update_book(
                book_id,
                title=_optional("Title", book.title),
                author=_optional("Author", book.author),
                isbn=_optional("ISBN", book.isbn),
                genre=_optional("Genre", book.genre),
                location=_optional("Shelf location", book.location),
                total_copies=_optional_int(f"Total copies [{book.total_copies}]", self.console),
            )
        )

    async def delete_book(self) -> None:
        book_id = IntPrompt.ask("Book ID")
        if Confirm.ask(f"Delete book {book_id}?", default=False):
            self._report(await self.services.catalog.delete_book(book_id))

    def show_books(self, books: list[Book]) -> None:
        if not books:
            self.console.print("No books found.")
            return
        table = Table(title="Books")
        for column in ("ID", "Title", "Author", "ISBN", "Genre", "Available", "Location"):
            table.add_column(column)
        for book in books:
            table.add_row(
                str(book.id),
                book.title,
                book.author,
                book.isbn,
                book.genre or "",
                f"{book.available_copies}/{book.total_copies}",
                book.location or "",
            )
        self.console.print(table)

    # ------------------------------------------------------------------
    # Borrowers
    # ------------------------------------------------------------------
    async def borrower_menu(self) -> None:
        self.console.print(
            "\n[bold]Borrower Management[/]\n"
            "1. Add New Borrower\n"
            "2. Search Borrowers\n"
            "3. View All Borrowers\n"
            "4. Update Borrower\n"
            "5. Activate/Deactivate Borrower\n"
            "6. View Borrower Details\n"
            "7. Back to Main Menu"
        )
        choice = Prompt.ask("Select an option", choices=[str(i) for i in range(1, 8)])
        if choice == "1":
            await self.add_borrower()
        elif choice == "2":
            await self.search_borrowers()
        elif choice == "3":
            self.show_borrowers(await self.services.borrowers.list_borrowers())
        elif choice == "4":
            await self.update_borrower()
        elif choice == "5":
            await self.toggle_borrower()
        elif choice == "6":
            await self.borrower_details()

    def _ask_membership(self) -> MembershipType:
        self.console.print(
            "1. Public (5 books max)\n"
            "2. Student (8 books max)\n"
            "3. Faculty (15 books max)\n"
            "4. Staff (10 books max)"
        )
        return MEMBERSHIP_CHOICES[Prompt.ask("Membership type", choices=list(MEMBERSHIP_CHOICES))]

    async def add_borrower(self) -> None:
        borrower = Borrower(
            first_name=Prompt.ask("First name"),
            last_name=Prompt.ask("Last name"),
            email=Prompt.ask("Email"),
            phone=_optional("Phone"),
            address=_optional("Address"),
            membership_type=self._ask_membership(),
        )
        self._report(await self.services.borrowers.add_borrower(borrower))

    async def search_borrowers(self) -> None:
        self.console.print("1. Search by Name\n2. Search by Email")
        choice = Prompt.ask("Search type", choices=["1", "2"])
        term = Prompt.ask("Search term")
        if choice == "2":
            borrower = await self.services.borrowers.find_by_email(term)
            self.show_borrowers([borrower] if borrower else [])
        else:
            self.show_borrowers(await self.services.borrowers.search_by_name(term))

    async def update_borrower(self) -> None:
        borrower_id = IntPrompt.ask("Borrower ID")
        borrower = await self.services.borrowers.get_borrower(borrower_id)
        if borrower is None:
            self.console.print("[red]Borrower not found.[/]")
            return
        self.console.print(f"Current: {borrower}")
        membership = None
        if Confirm.ask("Change membership type?", default=False):
            membership = self._ask_membership()
        self._report(
            await self.services.borrowers.update_borrower(
                borrower_id,
                first_name=_optional("First name", borrower.first_name),
                last_name=_optional("Last name", borrower.last_name),
                email=_optional("Email", borrower.email),
                phone=_optional("Phone", borrower.phone),
                address=_optional("Address", borrower.address),
                membership_type=membership,
                max_books_allowed=_optional_int(
                    f"Max books allowed [{borrower.max_books_allowed}]", self.console
                ),
            )
        )

    async def toggle_borrower(self) -> None:
        borrower_id = IntPrompt.ask("Borrower ID")
        borrower = await self.services.borrowers.get_borrower(borrower_id)
        if borrower is None:
            self.console.print("[red]Borrower not found.[/]")
            return
        if borrower.is_active:
            self._report(await self.services.borrowers.deactivate(borrower_id))
        else:
            self._report(await self.services.borrowers.activate(borrower_id))

    async def borrower_details(self) -> None:
        borrower_id = IntPrompt.ask("Borrower ID")
        outcome = await self.services.borrowers.summarize(borrower_id)
        if not outcome.ok:
            self._report(outcome)
            return
        summary = outcome.value
        borrower = summary.borrower
        self.console.print(
            f"[bold]{borrower.full_name}[/] ({borrower.email})\n"
            f"Membership: {borrower.membership_type.value} since {borrower.membership_date}\n"
            f"Status: {'Active' if borrower.is_active else 'Inactive'}\n"
            f"Books borrowed: {summary.current_borrowed_count}/{borrower.max_books_allowed}\n"
            f"Total fines: ${summary.total_fine_amount:.2f}\n"
            f"Has overdue books: {'Yes' if summary.has_overdue else 'No'}"
        )
        self.show_transactions(await self.services.borrowers.current_borrowings(borrower_id))

    def show_borrowers(self, borrowers: list[Borrower]) -> None:
        if not borrowers:
            self.console.print("No borrowers found.")
            return
        table = Table(title="Borrowers")
        for column in ("ID", "Name", "Email", "Membership", "Max Books", "Active"):
            table.add_column(column)
        for borrower in borrowers:
            table.add_row(
                str(borrower.id),
                borrower.full_name,
                borrower.email,
                borrower.membership_type.value,
                str(borrower.max_books_allowed),
                "Yes" if borrower.is_active else "No",
            )
        self.console.print(table)

    # ------------------------------------------------------------------
    # Circulation
    # ------------------------------------------------------------------
    async def circulation_menu(self) -> None:
        self.console.print(
            "\n[bold]Borrowing/Returning[/]\n"
            "1. Borrow Book\n"
            "2. Return Book\n"
            "3. View Current Borrowings\n"
            "4. Renew Loan\n"
            "5. Run Overdue Sweep\n"
            "6. Back to Main Menu"
        )
        choice = Prompt.ask("Select an option", choices=["1", "2", "3", "4", "5", "6"])
        circulation = self.services.circulation
        if choice == "1":
            book_id = IntPrompt.ask("Book ID")
            borrower_id = IntPrompt.ask("Borrower ID")
            loan_days = _optional_int("Loan period in days (blank for the default)", self.console)
            self._report(await circulation.borrow(book_id, borrower_id, loan_days))
        elif choice == "2":
            book_id = IntPrompt.ask("Book ID")
            borrower_id = IntPrompt.ask("Borrower ID")
            self._report(await circulation.return_book(book_id, borrower_id))
        elif choice == "3":
            borrower_id = IntPrompt.ask("Borrower ID")
            self.show_transactions(
                await self.services.borrowers.current_borrowings(borrower_id)
            )
        elif choice == "4":
            transaction_id = IntPrompt.ask("Transaction ID")
            extra_days = _optional_int("Extra days (blank for the default)", self.console)
            self._report(await circulation.renew(transaction_id, extra_days))
        elif choice == "5":
            overdue = await circulation.detect_overdue()
            self.console.print(f"{len(overdue)} loans are overdue.")

    def show_transactions(self, transactions: list[Transaction]) -> None:
        if not transactions:
            self.console.print("No current borrowings.")
            return
        table = Table(title="Loans")
        for column in ("ID", "Book ID", "Type", "Borrowed", "Due", "Status", "Fine"):
            table.add_column(column)
        for t in transactions:
            table.add_row(
                str(t.id),
                str(t.book_id),
                t.transaction_type.value,
                f"{t.transaction_date:%Y-%m-%d}",
                f"{t.due_date:%Y-%m-%d}" if t.due_date else "",
                t.status.value,
                f"${t.fine_amount:.2f}",
            )
        self.console.print(table)

    # ------------------------------------------------------------------
    # Reports
    # ------------------------------------------------------------------
    async def report_menu(self) -> None:
        self.console.print(
            "\n[bold]Reports[/]\n"
            "1. Overdue Books Report\n"
            "2. Book Availability Report\n"
            "3. Popular Books Report\n"
            "4. Borrower Activity Report\n"
            "5. Fine Collection Report\n"
            "6. Books Due Soon\n"
            "7. Borrowing Statistics\n"
            "8. Genre Popularity\n"
            "9. Back to Main Menu"
        )
        choice = Prompt.ask("Select an option", choices=[str(i) for i in range(1, 10)])
        reports = self.services.reports
        if choice == "1":
            self.show_loan_rows("Overdue Books", await reports.overdue_report())
        elif choice == "2":
            self.show_books(await reports.availability())
        elif choice == "3":
            table = Table(title="Popular Books")
            for column in ("Title", "Author", "Times Borrowed"):
                table.add_column(column)
            for row in await reports.popular_books():
                table.add_row(row.title, row.author, str(row.borrow_count))
            self.console.print(table)
        elif choice == "4":
            table = Table(title="Borrower Activity")
            for column in ("Name", "Email", "Total Borrows", "Current"):
                table.add_column(column)
            for row in await reports.borrower_activity():
                table.add_row(
                    row.full_name, row.email, str(row.total_borrows), str(row.current_borrows)
                )
            self.console.print(table)
        elif choice == "5":
            rows = await reports.fine_collection()
            self.show_loan_rows("Fine Collection", rows)
            total = sum(row.transaction.fine_amount for row in rows)
            self.console.print(f"Total fines: ${total:.2f}")
        elif choice == "6":
            self.show_loan_rows("Books Due Soon", await reports.due_soon())
        elif choice == "7":
            year = IntPrompt.ask("Year", default=datetime.now().year)
            month = _optional_int("Month (blank for the whole year)", self.console)
            stats = await reports.borrowing_statistics(year, month)
            for kind, count in sorted(stats.counts_by_type.items()):
                self.console.print(f"{kind}: {count}")
            self.console.print(f"Total fines: ${stats.total_fines:.2f}")
        elif choice == "8":
            table = Table(title="Genre Popularity")
            for column in ("Genre", "Borrows", "Unique Books"):
                table.add_column(column)
            for row in await reports.genre_popularity():
                table.add_row(row.genre, str(row.borrow_count), str(row.unique_books))
            self.console.print(table)

    def show_loan_rows(self, title: str, rows: list[LoanRow]) -> None:
        if not rows:
            self.console.print(f"{title}: nothing to report.")
            return
        table = Table(title=title)
        for column in ("Book", "Borrower", "Due", "Days Overdue", "Fine"):
            table.add_column(column)
        for row in rows:
            due = row.transaction.due_date
            table.add_row(
                row.book_title,
                row.borrower_name,
                f"{due:%Y-%m-%d}" if due else "",
                str(row.days_overdue),
                f"${row.transaction.fine_amount:.2f}",
            )
        self.console.print(table)
