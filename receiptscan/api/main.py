"""Entry point for the FastAPI application.

This module constructs the FastAPI app, includes the routers and sets
up logging and Sentry on startup. Run with::

    uvicorn receiptscan.api.main:app
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError

from receiptscan.api.endpoints.health import router as health_router
from receiptscan.api.error_handlers import generic_exception_handler, validation_exception_handler
from receiptscan.api.routes.receipts import router as receipts_router
from receiptscan.core.config import settings
from receiptscan.core.observability import configure_logging, init_sentry

try:  # optional import for scope tagging
    import sentry_sdk  # type: ignore
except Exception:  # pragma: no cover
    sentry_sdk = None  # type: ignore

configure_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifecycle."""
    logger.info("Starting up...")
    # Centralised Sentry init (idempotent)
    if init_sentry("api"):
        logger.info("Sentry SDK initialized (api)")
    yield
    logger.info("Shutting down...")


app = FastAPI(
    title=f"{settings.PROJECT_NAME} API",
    version="1.0.0",
    lifespan=lifespan,
)


# Tag Sentry events with the route; never attach request bodies
@app.middleware("http")
async def sentry_context_middleware(request: Request, call_next):  # type: ignore
    if sentry_sdk and settings.SENTRY_DSN:
        scope = sentry_sdk.get_current_scope()
        scope.set_tag("path", request.url.path)
        scope.set_tag("method", request.method)
    return await call_next(request)


app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, generic_exception_handler)

app.include_router(health_router)
app.include_router(receipts_router)


@app.get("/")
async def root():
    """Root endpoint."""
    return {"message": f"Welcome to the {settings.PROJECT_NAME} API"}
