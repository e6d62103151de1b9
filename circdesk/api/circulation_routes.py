"""Circulation API routes: borrow, return, renew and the overdue sweep."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status

from circdesk.api.outcomes import raise_for_outcome
from circdesk.api.schemas import (
    BorrowRequest,
    BorrowResponse,
    RenewRequest,
    RenewResponse,
    ReturnRequest,
    ReturnResponse,
    SweepResponse,
    TransactionResponse,
)
from circdesk.core.dependencies import get_circulation_service
from circdesk.domain.services import ICirculationService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/circulation", tags=["circulation"])


@router.post("/borrow", response_model=BorrowResponse, status_code=status.HTTP_201_CREATED)
async def borrow_book(
    request: BorrowRequest,
    circulation: Annotated[ICirculationService, Depends(get_circulation_service)],
) -> BorrowResponse:
    outcome = await circulation.borrow(request.book_id, request.borrower_id, request.loan_days)
    raise_for_outcome(outcome)
    return BorrowResponse(
        transaction=TransactionResponse.model_validate(outcome.value),
        message=outcome.message,
    )


@router.post("/return", response_model=ReturnResponse)
async def return_book(
    request: ReturnRequest,
    circulation: Annotated[ICirculationService, Depends(get_circulation_service)],
) -> ReturnResponse:
    outcome = await circulation.return_book(
        request.book_id, request.borrower_id, returned_at=request.returned_at
    )
    raise_for_outcome(outcome)
    return ReturnResponse(fine_amount=outcome.value, message=outcome.message)


@router.post("/{transaction_id}/renew", response_model=RenewResponse)
async def renew_loan(
    transaction_id: int,
    request: RenewRequest,
    circulation: Annotated[ICirculationService, Depends(get_circulation_service)],
) -> RenewResponse:
    outcome = await circulation.renew(transaction_id, request.extra_days)
    raise_for_outcome(outcome)
    return RenewResponse(
        transaction_id=transaction_id, due_date=outcome.value, message=outcome.message
    )


@router.post("/sweep", response_model=SweepResponse)
async def sweep_overdue(
    circulation: Annotated[ICirculationService, Depends(get_circulation_service)],
) -> SweepResponse:
    """Flag past-due loans as overdue and bring their fines up to date."""
    overdue = await circulation.detect_overdue()
    logger.info("Overdue sweep requested via API: %d loans overdue", len(overdue))
    return SweepResponse(
        overdue_count=len(overdue),
        transactions=[TransactionResponse.model_validate(t) for t in overdue],
    )


@router.get("/transactions/{transaction_id}", response_model=TransactionResponse)
async def get_transaction(
    transaction_id: int,
    circulation: Annotated[ICirculationService, Depends(get_circulation_service)],
) -> TransactionResponse:
    transaction = await circulation.get_transaction(transaction_id)
    if transaction is None:
        raise HTTPException(status_code=404, detail="Transaction not found")
    return TransactionResponse.model_validate(transaction)
