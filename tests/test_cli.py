from datetime import date, timedelta

from typer.testing import CliRunner

from circdesk.cli.app import app
from circdesk.core.config import get_settings

runner = CliRunner()


def test_init_db_creates_schema(tmp_path):
    db_file = tmp_path / "desk.db"
    result = runner.invoke(app, ["init-db", "--database-url", f"sqlite+aiosqlite:///{db_file}"])

    assert result.exit_code == 0, result.output
    assert "Database initialized." in result.stdout
    assert db_file.exists()


def test_seed_is_repeatable(tmp_path):
    url = f"sqlite+aiosqlite:///{tmp_path / 'desk.db'}"

    first = runner.invoke(app, ["seed", "--database-url", url])
    second = runner.invoke(app, ["seed", "--database-url", url])

    assert first.exit_code == 0, first.output
    assert "Added 5 books and 5 borrowers." in first.stdout
    assert "Added 0 books and 0 borrowers." in second.stdout


def test_sweep_overdue_on_fresh_database(tmp_path):
    url = f"sqlite+aiosqlite:///{tmp_path / 'desk.db'}"
    result = runner.invoke(app, ["sweep-overdue", "--database-url", url])

    assert result.exit_code == 0, result.output
    assert "0 loans are overdue." in result.stdout


def test_shell_shows_borrower_details_and_exits(tmp_path):
    url = f"sqlite+aiosqlite:///{tmp_path / 'desk.db'}"
    runner.invoke(app, ["seed", "--database-url", url])

    result = runner.invoke(app, ["shell", "--database-url", url], input="2\n6\n1\n5\n")

    assert result.exit_code == 0, result.output
    assert "Library Management System" in result.stdout
    assert "John Doe (john.doe@email.com)" in result.stdout
    assert "No current borrowings." in result.stdout
    assert "Goodbye!" in result.stdout


def test_shell_reports_rejected_borrow(tmp_path):
    url = f"sqlite+aiosqlite:///{tmp_path / 'desk.db'}"
    runner.invoke(app, ["seed", "--database-url", url])

    result = runner.invoke(
        app, ["shell", "--database-url", url], input="3\n1\n999\n1\n14\n5\n"
    )

    assert result.exit_code == 0, result.output
    assert "Book not found." in result.stdout


def test_shell_asks_again_for_a_malformed_number(tmp_path):
    url = f"sqlite+aiosqlite:///{tmp_path / 'desk.db'}"
    answers = [
        "1", "1",                     # Book Management, Add New Book
        "Dune", "Frank Herbert", "978-0-441-01359-3",
        "",                           # publisher
        "19x5", "1965",               # publication year, retried
        "Science Fiction", "B-001",
        "2",                          # total copies
        "5",
    ]

    result = runner.invoke(
        app, ["shell", "--database-url", url], input="\n".join(answers) + "\n"
    )

    assert result.exit_code == 0, result.output
    assert "'19x5' is not a whole number." in result.stdout
    assert "Book 'Dune' added successfully" in result.stdout


def test_shell_borrow_uses_configured_loan_period(tmp_path, monkeypatch):
    url = f"sqlite+aiosqlite:///{tmp_path / 'desk.db'}"
    monkeypatch.setattr(get_settings(), "default_loan_days", 21)
    runner.invoke(app, ["seed", "--database-url", url])

    result = runner.invoke(
        app,
        ["shell", "--database-url", url],
        input="3\n1\n1\n1\n\n5\n",
    )

    assert result.exit_code == 0, result.output
    assert "borrowed successfully" in result.stdout
    assert (date.today() + timedelta(days=21)).isoformat() in result.stdout
