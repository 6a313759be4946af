"""
FastAPI application entry point.

This module initializes the FastAPI application, configures middleware,
and registers all API routers.
"""
import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .core.config import settings
from .core.logging_config import configure_logging
from .api.routers import columns, uploads
from .utils.date import utcnow

# Ensure logging is configured before the application starts serving requests.
configure_logging(settings.log_level)
logger = logging.getLogger(__name__)


def initialize_database() -> None:
    """Create every table the ingestion pipeline needs; safe to call repeatedly."""
    from .db.projects import create_projects_table
    from .db.segments import create_segments_table
    from .domain.ingestion.configurations import create_column_configuration_tables
    from .domain.uploads.uploaded_files import create_uploaded_files_table

    create_projects_table()
    create_uploaded_files_table()
    create_column_configuration_tables()
    create_segments_table()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifecycle - startup and shutdown events."""
    if os.getenv("SKIP_DB_INIT") == "1":
        logger.info("SKIP_DB_INIT=1 detected; skipping database bootstrap during startup")
        yield
        return

    try:
        logger.info("Initializing database tables...")
        initialize_database()
        logger.info("All database tables initialized successfully")
    except Exception:
        logger.exception("Failed to initialize database tables; the application cannot start")
        raise

    yield


app = FastAPI(
    title="Transgrid API",
    version="1.0.0",
    description="Column detection, mapping and segment ingestion for translation projects",
    lifespan=lifespan,
)

allowed_origins = [origin.strip() for origin in settings.allowed_origins.split(",") if origin.strip()]

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(columns.router)
app.include_router(uploads.router)


@app.get("/health")
async def health_check():
    return {
        "status": "healthy",
        "timestamp": utcnow().isoformat(),
        "service": "transgrid-api",
    }
