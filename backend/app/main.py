# backend/app/main.py
from __future__ import annotations

from contextlib import asynccontextmanager
import logging
from typing import AsyncGenerator

from fastapi import APIRouter, FastAPI
from sqlalchemy.exc import SQLAlchemyError

from .core.capabilities import SchemaCapabilities
from .core.config import is_running_tests, settings
from .core.constants import API_DESCRIPTION, API_TITLE, API_VERSION
from .database import SessionLocal
from .errors import register_error_handlers
from .routes.v1 import (
    calendar as calendar_v1,
    deals as deals_v1,
    health as health_v1,
    prometheus as prometheus_v1,
    sessions as sessions_v1,
    variants as variants_v1,
)

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level, logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

logger = logging.getLogger(__name__)


def _probe_capabilities(capabilities: SchemaCapabilities) -> None:
    """Seed capability flags from the live schema; unknown flags stay optimistic."""
    db = SessionLocal()
    try:
        flags = capabilities.probe(db)
        logger.info(f"Schema capabilities: {flags}")
    except SQLAlchemyError as e:
        logger.warning(f"Schema capability probe failed, falling back to lazy detection: {e}")
    finally:
        db.close()


@asynccontextmanager
async def app_lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Handle application startup/shutdown without deprecated events."""
    logger.info(f"{API_TITLE} starting up...")
    logger.info(f"Environment: {settings.environment}")

    capabilities = getattr(app.state, "capabilities", None)
    if capabilities is None:
        capabilities = SchemaCapabilities()
        app.state.capabilities = capabilities
    if is_running_tests():
        logger.info("Running under pytest (test mode active)")
    else:
        _probe_capabilities(capabilities)

    yield

    logger.info(f"{API_TITLE} shutting down...")


app = FastAPI(
    title=API_TITLE,
    description=API_DESCRIPTION,
    version=API_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=app_lifespan,
)
# Register unified error envelope handlers
register_error_handlers(app)

api_v1 = APIRouter(prefix="/api/v1")
api_v1.include_router(deals_v1.router, prefix="/deals")
api_v1.include_router(sessions_v1.router, prefix="/sessions")
api_v1.include_router(variants_v1.router, prefix="/variants")
api_v1.include_router(calendar_v1.router, prefix="/calendar")
api_v1.include_router(health_v1.router, prefix="/health")
api_v1.include_router(prometheus_v1.router)

app.include_router(api_v1)


@app.get("/")
def root() -> dict[str, str]:
    """Root endpoint - API information"""
    return {
        "message": f"Welcome to the {API_TITLE}",
        "version": API_VERSION,
        "docs": "/docs",
    }
