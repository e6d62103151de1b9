"""Main FastAPI application."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from circdesk.api.borrower_routes import router as borrower_router
from circdesk.api.circulation_routes import router as circulation_router
from circdesk.api.report_routes import router as report_router
from circdesk.api.routes import router as books_router
from circdesk.core.config import settings
from circdesk.domain.errors import StoreFailure
from circdesk.infrastructure.database.connection import init_db

# Configure logging
logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    logger.info("Starting circdesk application")
    await init_db()
    logger.info("Database initialized")
    yield
    logger.info("Shutting down circdesk application")


app = FastAPI(
    title="circdesk",
    description="Library catalog and circulation desk",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(books_router)
app.include_router(borrower_router)
app.include_router(circulation_router)
app.include_router(report_router)


@app.exception_handler(StoreFailure)
async def store_failure_handler(request: Request, exc: StoreFailure) -> JSONResponse:
    logger.error("Request %s %s failed in the store: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"detail": {"reason": "store_failure", "message": str(exc)}},
    )


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}
