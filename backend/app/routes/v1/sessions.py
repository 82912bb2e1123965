# backend/app/routes/v1/sessions.py
"""
Session routes - API v1

Versioned session endpoints under /api/v1/sessions.
All business logic delegated to SessionService and AvailabilityService.

Endpoints:
    GET /availability - Resources already booked during a window (advisory)
    GET /{session_id} - Session details
    PATCH /{session_id} - Partial update, including manual status changes
    DELETE /{session_id} - Delete a session
"""

import asyncio
from datetime import datetime
import logging
from typing import NoReturn, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from ...api.dependencies import get_availability_service, get_session_service
from ...core.exceptions import DomainException
from ...schemas.availability import ResourceLocksResponse
from ...schemas.session import SessionResponse, SessionUpdate
from ...services.availability_service import AvailabilityService
from ...services.session_service import SessionService

logger = logging.getLogger(__name__)

# V1 router - no prefix here, will be added when mounting in main.py
router = APIRouter(tags=["sessions-v1"])


def handle_domain_exception(exc: DomainException) -> NoReturn:
    """Convert domain exceptions to HTTP exceptions."""
    if hasattr(exc, "to_http_exception"):
        raise exc.to_http_exception()
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))


# ============================================================================
# SECTION 1: Static routes (no path parameters)
# ============================================================================


@router.get("/availability", response_model=ResourceLocksResponse)
async def get_booking_locks(
    start: Optional[datetime] = Query(None, description="Window start (ISO-8601)"),
    end: Optional[datetime] = Query(None, description="Window end; defaults to start"),
    exclude_session_id: Optional[str] = Query(None),
    exclude_variant_id: Optional[str] = Query(None),
    availability_service: AvailabilityService = Depends(get_availability_service),
) -> ResourceLocksResponse:
    """
    Trainers, rooms and units already held during the window.

    Used to grey out choices before submission; the write path re-checks.
    """
    try:
        locks = await asyncio.to_thread(
            availability_service.get_booking_locks,
            start,
            end,
            exclude_session_id=exclude_session_id,
            exclude_variant_id=exclude_variant_id,
        )
        return ResourceLocksResponse(
            trainers=sorted(locks.trainer_ids),
            rooms=sorted(locks.room_ids),
            units=sorted(locks.unit_ids),
            available_trainers=sorted(locks.available_trainer_ids),
        )
    except DomainException as e:
        handle_domain_exception(e)


# ============================================================================
# SECTION 2: Session routes
# ============================================================================


@router.get("/{session_id}", response_model=SessionResponse)
async def get_session(
    session_id: str,
    session_service: SessionService = Depends(get_session_service),
) -> SessionResponse:
    try:
        session = await asyncio.to_thread(session_service.get_session, session_id)
        return SessionResponse.model_validate(session)
    except DomainException as e:
        handle_domain_exception(e)


@router.patch("/{session_id}", response_model=SessionResponse)
async def update_session(
    session_id: str,
    payload: SessionUpdate,
    session_service: SessionService = Depends(get_session_service),
) -> SessionResponse:
    """Apply the fields present in the body; absent fields keep their value."""
    try:
        session = await asyncio.to_thread(session_service.update_session, session_id, payload)
        return SessionResponse.model_validate(session)
    except DomainException as e:
        handle_domain_exception(e)


@router.delete("/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_session(
    session_id: str,
    session_service: SessionService = Depends(get_session_service),
) -> Response:
    try:
        await asyncio.to_thread(session_service.delete_session, session_id)
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    except DomainException as e:
        handle_domain_exception(e)
