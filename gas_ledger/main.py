"""FastAPI application entry point."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from gas_ledger.api.routes import health, readings
from gas_ledger.core.config import settings
from gas_ledger.core.database import Base, engine
from gas_ledger.core.exceptions import LedgerError
from gas_ledger.core.logging_config import configure_logging

# Import models for Base.metadata.create_all
from gas_ledger.models import reading  # noqa: F401

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan manager."""
    # Startup: Create database tables
    configure_logging()
    Base.metadata.create_all(bind=engine)
    logger.info("Database ready at %s", engine.url.render_as_string(hide_password=True))
    yield
    # Shutdown: release pooled connections
    engine.dispose()
    logger.info("Database connections closed")


app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.VERSION,
    description="Gas tank reading ledger",
    lifespan=lifespan,
)


@app.exception_handler(LedgerError)
async def ledger_error_handler(request: Request, exc: LedgerError) -> JSONResponse:
    """Render ledger errors with their field and context."""
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.detail)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


# Include API routers
app.include_router(health.router, prefix="/api", tags=["health"])
app.include_router(readings.router, prefix="/api")


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "gas_ledger.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
    )
