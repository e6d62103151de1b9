"""Command line entry points: schema setup, sample data, overdue sweep and the desk shell."""

import asyncio
import logging
from typing import Optional

import typer
from rich.console import Console

from circdesk.cli.shell import DeskShell
from circdesk.core.config import get_settings
from circdesk.core.dependencies import build_services
from circdesk.domain.errors import StoreFailure
from circdesk.infrastructure.database.connection import (
    create_engine,
    create_session_maker,
    init_db,
)
from circdesk.infrastructure.database.seed import seed_demo_data

app = typer.Typer(help="Library catalog and circulation desk")
console = Console()
logger = logging.getLogger(__name__)

DatabaseOption = typer.Option(
    None, "--database-url", help="SQLAlchemy async URL; defaults to CIRCDESK_DATABASE_URL"
)


@app.callback()
def _global_options(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log at DEBUG level"),
):
    logging.basicConfig(
        level=logging.DEBUG if verbose else get_settings().log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


async def _with_services(database_url: Optional[str], action, create_schema: bool = True):
    """Open an engine and session, build the services and run ``action`` on them."""
    config = get_settings()
    engine = create_engine(database_url or config.database_url)
    try:
        if create_schema:
            await init_db(engine)
        async with create_session_maker(engine)() as session:
            return await action(build_services(session, config))
    finally:
        await engine.dispose()


def _run(coro) -> object:
    try:
        return asyncio.run(coro)
    except StoreFailure as exc:
        console.print(f"[red]Database error: {exc.cause}[/]")
        raise typer.Exit(code=1)


@app.command("init-db")
def cli_init_db(database_url: Optional[str] = DatabaseOption):
    """Create the tables if they do not exist."""

    async def _init() -> None:
        engine = create_engine(database_url or get_settings().database_url)
        try:
            await init_db(engine)
        finally:
            await engine.dispose()

    _run(_init())
    console.print("Database initialized.")


@app.command("seed")
def cli_seed(database_url: Optional[str] = DatabaseOption):
    """Load the sample books and borrowers (rows that already exist are skipped)."""

    async def _seed(services):
        return await seed_demo_data(services.catalog, services.borrowers)

    books, borrowers = _run(_with_services(database_url, _seed))
    console.print(f"Added {books} books and {borrowers} borrowers.")


@app.command("sweep-overdue")
def cli_sweep_overdue(database_url: Optional[str] = DatabaseOption):
    """Flag past-due loans as overdue and bring their fines up to today."""

    async def _sweep(services):
        return await services.circulation.detect_overdue()

    overdue = _run(_with_services(database_url, _sweep))
    console.print(f"{len(overdue)} loans are overdue.")


@app.command("shell")
def cli_shell(database_url: Optional[str] = DatabaseOption):
    """Start the interactive circulation desk."""

    async def _shell(services):
        await DeskShell(services, console).run()

    _run(_with_services(database_url, _shell))


def main() -> None:
    app()


if __name__ == "__main__":
    main()
