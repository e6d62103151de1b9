"""Dependency injection container.

Services are built explicitly from a session: FastAPI resolves them through
``Depends`` providers per request, and the console builds one
:class:`Services` bundle for its whole session with :func:`build_services`.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Callable

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from circdesk.core.config import Settings, get_settings
from circdesk.domain.repositories import IUnitOfWork
from circdesk.domain.services import (
    IBorrowerService,
    ICatalogService,
    ICirculationService,
    IReportService,
)
from circdesk.infrastructure.database.connection import get_db
from circdesk.infrastructure.database.unit_of_work import SqlAlchemyUnitOfWork
from circdesk.services.borrower_service import BorrowerService
from circdesk.services.catalog_service import CatalogService
from circdesk.services.circulation_service import CirculationService
from circdesk.services.report_service import ReportService


@dataclass
class Services:
    catalog: ICatalogService
    borrowers: IBorrowerService
    circulation: ICirculationService
    reports: IReportService


def build_services(
    session: AsyncSession,
    config: Settings,
    clock: Callable[[], datetime] = datetime.now,
) -> Services:
    """Wire every service around one unit of work on ``session``."""
    uow = SqlAlchemyUnitOfWork(session)
    circulation = CirculationService(
        uow,
        clock=clock,
        fine_per_day=config.fine_per_day,
        default_loan_days=config.default_loan_days,
    )
    return Services(
        catalog=CatalogService(uow, clock=clock),
        borrowers=BorrowerService(uow, clock=clock),
        circulation=circulation,
        reports=ReportService(
            uow,
            circulation,
            clock=clock,
            due_soon_days=config.due_soon_days,
            top_count=config.report_top_count,
        ),
    )


# ---------------------------------------------------------------------------
# Unit of work provider
# ---------------------------------------------------------------------------
async def get_unit_of_work(session: AsyncSession = Depends(get_db)) -> IUnitOfWork:
    return SqlAlchemyUnitOfWork(session)


# ---------------------------------------------------------------------------
# Service providers
# ---------------------------------------------------------------------------
async def get_catalog_service(uow: IUnitOfWork = Depends(get_unit_of_work)) -> ICatalogService:
    return CatalogService(uow)


async def get_borrower_service(uow: IUnitOfWork = Depends(get_unit_of_work)) -> IBorrowerService:
    return BorrowerService(uow)


async def get_circulation_service(
    uow: IUnitOfWork = Depends(get_unit_of_work),
    config: Settings = Depends(get_settings),
) -> ICirculationService:
    return CirculationService(
        uow,
        fine_per_day=config.fine_per_day,
        default_loan_days=config.default_loan_days,
    )


async def get_report_service(
    uow: IUnitOfWork = Depends(get_unit_of_work),
    circulation: ICirculationService = Depends(get_circulation_service),
    config: Settings = Depends(get_settings),
) -> IReportService:
    return ReportService(
        uow,
        circulation,
        due_soon_days=config.due_soon_days,
        top_count=config.report_top_count,
    )
