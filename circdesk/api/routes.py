"""Book catalog API routes."""

import logging
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, HTTPException, status

from circdesk.api.outcomes import raise_for_outcome
from circdesk.api.schemas import BookCreate, BookListResponse, BookResponse, BookUpdate
from circdesk.core.dependencies import get_catalog_service
from circdesk.domain.entities import Book
from circdesk.domain.services import ICatalogService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/books", tags=["books"])


# ---------------------------------------------------------------------------
# CRUD
# ---------------------------------------------------------------------------
@router.post("/", response_model=BookResponse, status_code=status.HTTP_201_CREATED)
async def create_book(
    request: BookCreate,
    catalog: Annotated[ICatalogService, Depends(get_catalog_service)],
) -> BookResponse:
    """Add a title to the catalog with every copy on the shelf."""
    outcome = await catalog.add_book(
        Book(**request.model_dump(), available_copies=request.total_copies)
    )
    raise_for_outcome(outcome)
    return BookResponse.model_validate(outcome.value)


@router.get("/", response_model=BookListResponse)
async def list_books(
    catalog: Annotated[ICatalogService, Depends(get_catalog_service)],
    page: int = 1,
    limit: int = 20,
) -> BookListResponse:
    """List books with pagination."""
    skip = (page - 1) * limit
    books = await catalog.list_books(skip=skip, limit=limit)
    total = await catalog.count_books()
    return BookListResponse(
        books=[BookResponse.model_validate(b) for b in books],
        total=total,
        page=page,
        limit=limit,
    )


@router.get("/search", response_model=list[BookResponse])
async def search_books(
    catalog: Annotated[ICatalogService, Depends(get_catalog_service)],
    title: Optional[str] = None,
    author: Optional[str] = None,
    genre: Optional[str] = None,
    available_only: bool = False,
) -> list[BookResponse]:
    books = await catalog.search_books(
        title=title, author=author, genre=genre, available_only=available_only
    )
    return [BookResponse.model_validate(b) for b in books]


@router.get("/isbn/{isbn}", response_model=BookResponse)
async def get_book_by_isbn(
    isbn: str,
    catalog: Annotated[ICatalogService, Depends(get_catalog_service)],
) -> BookResponse:
    book = await catalog.find_by_isbn(isbn)
    if book is None:
        raise HTTPException(status_code=404, detail="Book not found")
    return BookResponse.model_validate(book)


@router.get("/{book_id}", response_model=BookResponse)
async def get_book(
    book_id: int,
    catalog: Annotated[ICatalogService, Depends(get_catalog_service)],
) -> BookResponse:
    book = await catalog.get_book(book_id)
    if book is None:
        raise HTTPException(status_code=404, detail="Book not found")
    return BookResponse.model_validate(book)


@router.patch("/{book_id}", response_model=BookResponse)
async def update_book(
    book_id: int,
    request: BookUpdate,
    catalog: Annotated[ICatalogService, Depends(get_catalog_service)],
) -> BookResponse:
    outcome = await catalog.update_book(book_id, **request.model_dump(exclude_unset=True))
    raise_for_outcome(outcome)
    return BookResponse.model_validate(outcome.value)


@router.delete("/{book_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_book(
    book_id: int,
    catalog: Annotated[ICatalogService, Depends(get_catalog_service)],
) -> None:
    outcome = await catalog.delete_book(book_id)
    raise_for_outcome(outcome)
    logger.info("Book %s removed via API", book_id)
