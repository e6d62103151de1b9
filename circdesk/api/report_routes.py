"""Reporting API routes."""

from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Query

from circdesk.api.schemas import (
    BookResponse,
    BorrowerActivityResponse,
    BorrowingStatisticsResponse,
    GenrePopularityResponse,
    LoanRowResponse,
    PopularBookResponse,
)
from circdesk.core.dependencies import get_report_service
from circdesk.domain.services import IReportService

router = APIRouter(prefix="/reports", tags=["reports"])


@router.get("/overdue", response_model=list[LoanRowResponse])
async def overdue_books(
    reports: Annotated[IReportService, Depends(get_report_service)],
) -> list[LoanRowResponse]:
    """Overdue loans; runs the overdue sweep first so statuses and fines are current."""
    return [LoanRowResponse.model_validate(r) for r in await reports.overdue_report()]


@router.get("/due-soon", response_model=list[LoanRowResponse])
async def due_soon(
    reports: Annotated[IReportService, Depends(get_report_service)],
    days: Optional[int] = Query(None, ge=0),
) -> list[LoanRowResponse]:
    return [LoanRowResponse.model_validate(r) for r in await reports.due_soon(days)]


@router.get("/availability", response_model=list[BookResponse])
async def availability(
    reports: Annotated[IReportService, Depends(get_report_service)],
) -> list[BookResponse]:
    return [BookResponse.model_validate(b) for b in await reports.availability()]


@router.get("/popular-books", response_model=list[PopularBookResponse])
async def popular_books(
    reports: Annotated[IReportService, Depends(get_report_service)],
    top: Optional[int] = Query(None, ge=1),
) -> list[PopularBookResponse]:
    return [PopularBookResponse.model_validate(r) for r in await reports.popular_books(top)]


@router.get("/borrower-activity", response_model=list[BorrowerActivityResponse])
async def borrower_activity(
    reports: Annotated[IReportService, Depends(get_report_service)],
    top: Optional[int] = Query(None, ge=1),
) -> list[BorrowerActivityResponse]:
    rows = await reports.borrower_activity(top)
    return [BorrowerActivityResponse.model_validate(r) for r in rows]


@router.get("/fines", response_model=list[LoanRowResponse])
async def fine_collection(
    reports: Annotated[IReportService, Depends(get_report_service)],
) -> list[LoanRowResponse]:
    return [LoanRowResponse.model_validate(r) for r in await reports.fine_collection()]


@router.get("/statistics", response_model=BorrowingStatisticsResponse)
async def borrowing_statistics(
    reports: Annotated[IReportService, Depends(get_report_service)],
    year: int = Query(..., ge=1000),
    month: Optional[int] = Query(None, ge=1, le=12),
) -> BorrowingStatisticsResponse:
    stats = await reports.borrowing_statistics(year, month)
    return BorrowingStatisticsResponse.model_validate(stats)


@router.get("/genres", response_model=list[GenrePopularityResponse])
async def genre_popularity(
    reports: Annotated[IReportService, Depends(get_report_service)],
) -> list[GenrePopularityResponse]:
    return [GenrePopularityResponse.model_validate(r) for r in await reports.genre_popularity()]
