# backend/app/routes/v1/deals.py
"""
Deal session routes - API v1

Sessions are always created and listed through the deal they belong to.

Endpoints:
    POST /{deal_id}/sessions - Create a session for a deal line item
    GET /{deal_id}/sessions - List the deal's sessions with their current status
"""

import asyncio
import logging
from typing import NoReturn, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from ...api.dependencies import get_session_service
from ...core.enums import SessionStatus
from ...core.exceptions import DomainException
from ...schemas.session import SessionCreate, SessionListResponse, SessionResponse
from ...services.session_service import SessionService

logger = logging.getLogger(__name__)

# V1 router - no prefix here, will be added when mounting in main.py
router = APIRouter(tags=["deals-v1"])


def handle_domain_exception(exc: DomainException) -> NoReturn:
    """Convert domain exceptions to HTTP exceptions."""
    if hasattr(exc, "to_http_exception"):
        raise exc.to_http_exception()
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))


@router.post(
    "/{deal_id}/sessions",
    response_model=SessionResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_session(
    deal_id: str,
    payload: SessionCreate,
    session_service: SessionService = Depends(get_session_service),
) -> SessionResponse:
    """Create a session; responds 409 when a resource is already booked."""
    try:
        session = await asyncio.to_thread(session_service.create_session, deal_id, payload)
        return SessionResponse.model_validate(session)
    except DomainException as e:
        handle_domain_exception(e)


@router.get("/{deal_id}/sessions", response_model=SessionListResponse)
async def list_deal_sessions(
    deal_id: str,
    status_filter: Optional[SessionStatus] = Query(None, alias="status"),
    session_service: SessionService = Depends(get_session_service),
) -> SessionListResponse:
    try:
        sessions = await asyncio.to_thread(
            session_service.list_sessions_for_deal, deal_id, status_filter
        )
        return SessionListResponse(
            deal_id=deal_id,
            sessions=[SessionResponse.model_validate(s) for s in sessions],
            total=len(sessions),
        )
    except DomainException as e:
        handle_domain_exception(e)
