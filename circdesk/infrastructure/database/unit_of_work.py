"""SQLAlchemy unit of work: one session, one commit-or-rollback boundary."""

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from circdesk.domain.errors import StoreFailure
from circdesk.domain.repositories import IUnitOfWork
from circdesk.infrastructure.database.repository import (
    BorrowerRepository,
    CatalogRepository,
    LedgerRepository,
    ReportRepository,
)

logger = logging.getLogger(__name__)


class SqlAlchemyUnitOfWork(IUnitOfWork):

    def __init__(self, session: AsyncSession):
        self.session = session
        self.books = CatalogRepository(session)
        self.borrowers = BorrowerRepository(session)
        self.ledger = LedgerRepository(session)
        self.reports = ReportRepository(session)

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.rollback()
        if isinstance(exc, SQLAlchemyError):
            logger.error("Store operation failed, rolled back: %s", exc, exc_info=exc)
            raise StoreFailure("unit of work", exc) from exc

    async def commit(self) -> None:
        try:
            await self.session.commit()
        except SQLAlchemyError as exc:
            await self.session.rollback()
            logger.error("Commit failed, rolled back: %s", exc, exc_info=True)
            raise StoreFailure("commit", exc) from exc

    async def rollback(self) -> None:
        await self.session.rollback()
