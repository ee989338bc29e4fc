"""
FastAPI Application Entry Point.

This is the main application file for the BizLedger Backend.
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from bizledger.app.core.config import settings
from bizledger.app.core.observability import ObservabilityMiddleware, configure_logging
from bizledger.app.core.redis_client import ping_redis
from bizledger.app.api.v1.router import router as api_v1_router
from bizledger.app.db.session import engine, Base
from bizledger.app.core.exceptions import (
    AppException,
    app_exception_handler,
    http_exception_handler,
    validation_exception_handler,
    generic_exception_handler
)

# Import models to ensure they are registered with Base
from bizledger.app.models.customer import Customer
from bizledger.app.models.ledger import Ledger
from bizledger.app.models.ledger_transaction import LedgerTransaction
from bizledger.app.models.order import Order
from bizledger.app.models.invoice import Invoice
from bizledger.app.models.payment import Payment
from bizledger.app.models.payment_allocation import PaymentAllocation
from bizledger.app.models.payment_refund import PaymentRefund
from bizledger.app.models.audit_log import AuditLog

configure_logging(settings.log_level)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for application startup/shutdown.

    1. Creates database tables on startup.
    2. Disposes the engine on shutdown.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    await engine.dispose()

# Initialize FastAPI application
app = FastAPI(
    title=settings.app_name,
    version=settings.api_version,
    debug=settings.debug,
    description="Customer ledger, payment allocation and refund service",
    lifespan=lifespan,
)

app.add_middleware(ObservabilityMiddleware)

# Register global exception handlers
app.add_exception_handler(AppException, app_exception_handler)
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, generic_exception_handler)


@app.get("/health", tags=["Health"])
async def health_check():
    """
    Health check endpoint.

    Returns:
        dict: Status, application information and cache reachability
    """
    return {
        "status": "healthy",
        "app_name": settings.app_name,
        "version": settings.api_version,
        "cache": "up" if await ping_redis() else "down",
    }


# Include API v1 router
app.include_router(api_v1_router, prefix=f"/{settings.api_version}")


@app.get("/", tags=["Root"])
async def root():
    """
    Root endpoint.

    Returns:
        dict: Welcome message and API documentation links
    """
    return {
        "message": "Welcome to BizLedger Backend API",
        "docs": "/docs",
        "health": "/health",
    }
