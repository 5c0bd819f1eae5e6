"""
Anisync Ingestion Service

FastAPI application entry point.
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI, status
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware

from .config import get_settings
from .core.logging import setup_logging, get_logger
from .core.exceptions import register_exception_handlers
from .db.session import get_database, init_database
from .routers import feeds_router, scheduler_router
from .services.scheduler import get_scheduler_service

# Initialize
settings = get_settings()
setup_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    logger.info(
        "app_startup",
        environment=settings.environment,
        debug=settings.debug
    )

    await init_database()

    if settings.scheduler_enabled:
        scheduler_service = get_scheduler_service()
        scheduler_service.start()
        logger.info("scheduler_auto_started")
    else:
        logger.info("scheduler_disabled")

    yield

    # Cleanup on shutdown
    if settings.scheduler_enabled:
        get_scheduler_service().stop()
    await get_database().dispose()

    logger.info("app_shutdown")


# Create FastAPI app
app = FastAPI(
    title="Anisync",
    description="Anime release feed ingestion service",
    version="0.1.0",
    lifespan=lifespan,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register exception handlers
register_exception_handlers(app)

# Include routers
app.include_router(scheduler_router)
app.include_router(feeds_router)


@app.get("/")
async def root():
    """Root endpoint with API info."""
    return {
        "service": "Anisync",
        "version": "0.1.0",
        "status": "running",
        "docs": "/docs" if settings.debug else "disabled",
        "scheduler": "enabled" if settings.scheduler_enabled else "manual",
    }


@app.get("/health")
async def health():
    """Health check for load balancers; 503 while the database is unreachable."""
    if not await get_database().check_connection():
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "degraded", "database": "unreachable"},
        )
    return {"status": "healthy", "database": "ok"}
