"""
FastAPI Application

Main entry point for the E-Commerce Reports API.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
import structlog

from src.analytics.errors import InvalidConfiguration, UnknownReport
from src.config import get_settings
from src.config.logging import configure_logging
from src.database.connection import close_database, init_database
from src.serving.api.middleware import RequestLoggingMiddleware
from src.serving.api.routes import health_router, reports_router, snapshot_router

settings = get_settings()
logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    configure_logging()
    logger.info("Starting E-Commerce Reports API", snapshot_source=settings.reports.snapshot_source)

    uses_database = settings.reports.snapshot_source == "database"
    if uses_database:
        await init_database()

    yield

    logger.info("Shutting down...")
    if uses_database:
        await close_database()


app = FastAPI(
    title="E-Commerce Reports API",
    description="Business reports over a consistent snapshot of marketplace data",
    version=settings.version,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
)

app.add_middleware(GZipMiddleware, minimum_size=1000)
app.add_middleware(RequestLoggingMiddleware)


@app.exception_handler(UnknownReport)
async def unknown_report_handler(request: Request, exc: UnknownReport) -> JSONResponse:
    return JSONResponse(status_code=404, content=exc.to_dict())


@app.exception_handler(InvalidConfiguration)
async def invalid_configuration_handler(request: Request, exc: InvalidConfiguration) -> JSONResponse:
    return JSONResponse(status_code=422, content=exc.to_dict())


app.include_router(health_router, prefix="/api/v1", tags=["Health"])
app.include_router(reports_router, prefix="/api/v1/reports", tags=["Reports"])
app.include_router(snapshot_router, prefix="/api/v1/snapshot", tags=["Snapshot"])


@app.get("/api/v1/info")
async def api_info():
    """API information endpoint."""
    return {
        "name": settings.app_name,
        "version": settings.version,
        "environment": settings.app_env,
        "documentation": "/docs",
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
