# backend/app/routes/v1/health.py
"""
Health check endpoints for monitoring and load balancer probes.
"""

from __future__ import annotations

from datetime import datetime, timezone
import logging
from typing import Dict, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.api.dependencies import get_capabilities, get_db
from app.core.capabilities import SchemaCapabilities
from app.core.config import settings
from app.core.constants import API_VERSION

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    status: str
    version: str
    environment: str
    database: bool
    capabilities: Dict[str, Optional[bool]]
    timestamp: str


@router.get("", response_model=HealthResponse)
def health_check(
    db: Session = Depends(get_db),
    capabilities: SchemaCapabilities = Depends(get_capabilities),
) -> HealthResponse:
    """
    Health check endpoint.

    Reports database connectivity and the schema capabilities seen so far.
    A database failure degrades the status instead of failing the probe.
    """
    try:
        db.execute(text("SELECT 1"))
        db_ok = True
    except SQLAlchemyError as e:
        logger.error(f"Database health check failed: {e}")
        db_ok = False

    return HealthResponse(
        status="healthy" if db_ok else "degraded",
        version=API_VERSION,
        environment=settings.environment,
        database=db_ok,
        capabilities=capabilities.snapshot(),
        timestamp=datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
    )
