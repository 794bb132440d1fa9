"""
Loan Decision Engine - Main Application Entry Point

Credit decisioning service for microfinance loan applications: automated
assessment, multi-level manual approvals, overrides and decision history.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import RedirectResponse

from loan_decision_engine import __version__
from loan_decision_engine.core.config import settings
from loan_decision_engine.core.logging import setup_logging
from loan_decision_engine.core.metrics import get_metrics, get_metrics_content_type
from loan_decision_engine.infrastructure.database import db_manager
from loan_decision_engine.presentation.api import api_router
from loan_decision_engine.presentation.middleware import (
    LoggingMiddleware,
    RequestContextMiddleware,
    error_handler_middleware,
)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Bring the decision engine's store up before serving and down after.

    The loan, decision, ruleset and workflow tables are only created when
    DB_CREATE_TABLES is set; otherwise the schema is expected to exist.
    """
    setup_logging()
    db_manager.init()
    if settings.db_create_tables:
        await db_manager.create_all()

    logger = structlog.get_logger(__name__)
    logger.info(
        "application_started",
        version=__version__,
        credit_bureau=settings.default_credit_bureau,
        metrics_enabled=settings.metrics_enabled,
    )

    yield

    await db_manager.close()
    logger.info("application_stopped")


app = FastAPI(
    title="Loan Decision Engine",
    description="Credit decisioning for microfinance loan applications",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(LoggingMiddleware)
app.add_middleware(RequestContextMiddleware)

error_handler_middleware(app)

app.include_router(api_router)


@app.get("/metrics", include_in_schema=False)
async def metrics() -> Response:
    """Prometheus metrics endpoint."""
    if not settings.metrics_enabled:
        return Response(status_code=404)
    return Response(
        content=get_metrics(),
        media_type=get_metrics_content_type(),
    )


@app.get("/", include_in_schema=False)
async def root():
    """Redirect to API documentation."""
    return RedirectResponse(url="/docs")
