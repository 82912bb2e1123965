# backend/app/api/dependencies/database.py
"""
Database-related dependencies.
"""

from typing import Generator

from fastapi import Request
from sqlalchemy.orm import Session

from ...core.capabilities import SchemaCapabilities
from ...database import get_db as original_get_db


def get_db() -> Generator[Session, None, None]:
    """
    Get database session dependency.

    Yields:
        Database session that will be closed after use
    """
    yield from original_get_db()


def get_capabilities(request: Request) -> SchemaCapabilities:
    """
    Process-wide schema capability flags.

    Created by the application lifespan; seeded lazily when the app runs
    without it (e.g. a bare TestClient without a lifespan context).
    """
    capabilities = getattr(request.app.state, "capabilities", None)
    if capabilities is None:
        capabilities = SchemaCapabilities()
        request.app.state.capabilities = capabilities
    return capabilities
