"""Borrower registry API routes."""

from typing import Annotated, Optional

from fastapi import APIRouter, Depends, HTTPException, status

from circdesk.api.outcomes import raise_for_outcome
from circdesk.api.schemas import (
    BorrowerCreate,
    BorrowerResponse,
    BorrowerSummaryResponse,
    BorrowerUpdate,
    TransactionResponse,
)
from circdesk.core.dependencies import get_borrower_service
from circdesk.domain.entities import Borrower
from circdesk.domain.services import IBorrowerService

router = APIRouter(prefix="/borrowers", tags=["borrowers"])


@router.post("/", response_model=BorrowerResponse, status_code=status.HTTP_201_CREATED)
async def create_borrower(
    request: BorrowerCreate,
    borrowers: Annotated[IBorrowerService, Depends(get_borrower_service)],
) -> BorrowerResponse:
    outcome = await borrowers.add_borrower(Borrower(**request.model_dump()))
    raise_for_outcome(outcome)
    return BorrowerResponse.model_validate(outcome.value)


@router.get("/", response_model=list[BorrowerResponse])
async def list_borrowers(
    borrowers: Annotated[IBorrowerService, Depends(get_borrower_service)],
    active_only: bool = False,
    name: Optional[str] = None,
) -> list[BorrowerResponse]:
    """List borrowers, optionally only active ones or those matching ``name``."""
    if name:
        found = await borrowers.search_by_name(name)
        if active_only:
            found = [b for b in found if b.is_active]
    else:
        found = await borrowers.list_borrowers(active_only=active_only)
    return [BorrowerResponse.model_validate(b) for b in found]


@router.get("/overdue", response_model=list[BorrowerResponse])
async def list_borrowers_with_overdue(
    borrowers: Annotated[IBorrowerService, Depends(get_borrower_service)],
) -> list[BorrowerResponse]:
    return [BorrowerResponse.model_validate(b) for b in await borrowers.borrowers_with_overdue()]


@router.get("/{borrower_id}", response_model=BorrowerSummaryResponse)
async def get_borrower(
    borrower_id: int,
    borrowers: Annotated[IBorrowerService, Depends(get_borrower_service)],
) -> BorrowerSummaryResponse:
    """Borrower details with current loan count, fines and overdue flag."""
    outcome = await borrowers.summarize(borrower_id)
    raise_for_outcome(outcome)
    return BorrowerSummaryResponse.model_validate(outcome.value)


@router.patch("/{borrower_id}", response_model=BorrowerResponse)
async def update_borrower(
    borrower_id: int,
    request: BorrowerUpdate,
    borrowers: Annotated[IBorrowerService, Depends(get_borrower_service)],
) -> BorrowerResponse:
    outcome = await borrowers.update_borrower(
        borrower_id, **request.model_dump(exclude_unset=True)
    )
    raise_for_outcome(outcome)
    return BorrowerResponse.model_validate(outcome.value)


@router.post("/{borrower_id}/activate", response_model=BorrowerResponse)
async def activate_borrower(
    borrower_id: int,
    borrowers: Annotated[IBorrowerService, Depends(get_borrower_service)],
) -> BorrowerResponse:
    outcome = await borrowers.activate(borrower_id)
    raise_for_outcome(outcome)
    return BorrowerResponse.model_validate(outcome.value)


@router.post("/{borrower_id}/deactivate", response_model=BorrowerResponse)
async def deactivate_borrower(
    borrower_id: int,
    borrowers: Annotated[IBorrowerService, Depends(get_borrower_service)],
) -> BorrowerResponse:
    outcome = await borrowers.deactivate(borrower_id)
    raise_for_outcome(outcome)
    return BorrowerResponse.model_validate(outcome.value)


@router.delete("/{borrower_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_borrower(
    borrower_id: int,
    borrowers: Annotated[IBorrowerService, Depends(get_borrower_service)],
) -> None:
    raise_for_outcome(await borrowers.delete_borrower(borrower_id))


@router.get("/{borrower_id}/loans", response_model=list[TransactionResponse])
async def current_loans(
    borrower_id: int,
    borrowers: Annotated[IBorrowerService, Depends(get_borrower_service)],
) -> list[TransactionResponse]:
    if await borrowers.get_borrower(borrower_id) is None:
        raise HTTPException(status_code=404, detail="Borrower not found")
    loans = await borrowers.current_borrowings(borrower_id)
    return [TransactionResponse.model_validate(t) for t in loans]


@router.get("/{borrower_id}/history", response_model=list[TransactionResponse])
async def borrowing_history(
    borrower_id: int,
    borrowers: Annotated[IBorrowerService, Depends(get_borrower_service)],
) -> list[TransactionResponse]:
    if await borrowers.get_borrower(borrower_id) is None:
        raise HTTPException(status_code=404, detail="Borrower not found")
    history = await borrowers.borrowing_history(borrower_id)
    return [TransactionResponse.model_validate(t) for t in history]
