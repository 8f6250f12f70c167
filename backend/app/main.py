"""
Aftermath Archive - Incident Tracking API

FastAPI application entry point.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from backend.app.core.config import get_settings
from backend.app.core.exceptions import register_exception_handlers
from backend.app.core.logging import setup_logging, get_logger
from backend.app.api import auth, health, incidents, users
from backend.app.middleware.trace import TracingMiddleware

settings = get_settings()

# Initialize logging
setup_logging(level=settings.log_level)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    logger.info(f"Starting {settings.app_name} v{settings.app_version}")

    if settings.create_tables_on_startup:
        from backend.app.core.init_db import init_database
        await init_database()

    yield

    logger.info(f"Shutting down {settings.app_name}")
    from backend.app.core.database import engine
    await engine.dispose()


app = FastAPI(
    title=settings.app_name,
    description="Incident tracking: record, search, update and discuss operational incidents",
    version=settings.app_version,
    lifespan=lifespan,
)

register_exception_handlers(app)

app.add_middleware(TracingMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "X-Correlation-ID"],
)

app.include_router(health.router, tags=["Health"])
app.include_router(
    auth.router,
    prefix=f"{settings.api_prefix}/auth",
    tags=["Authentication"],
)
app.include_router(
    incidents.router,
    prefix=f"{settings.api_prefix}/incidents",
    tags=["Incidents"],
)
app.include_router(
    users.router,
    prefix=f"{settings.api_prefix}/users",
    tags=["Users"],
)


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "message": "Hello, world!",
        "docs": "/docs",
    }
