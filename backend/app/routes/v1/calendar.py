# backend/app/routes/v1/calendar.py
"""
Calendar routes - API v1

Endpoints:
    GET /availability - Per-day, per-site resource counts for a day range
"""

import asyncio
from datetime import date
import logging
from typing import NoReturn, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from ...api.dependencies import get_availability_service
from ...core.exceptions import DomainException
from ...core.timezone_utils import format_display_iso
from ...schemas.availability import (
    CalendarAvailabilityResponse,
    RangeResponse,
    ResourceCountResponse,
)
from ...services.availability_service import AvailabilityService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["calendar-v1"])


def handle_domain_exception(exc: DomainException) -> NoReturn:
    """Convert domain exceptions to HTTP exceptions."""
    if hasattr(exc, "to_http_exception"):
        raise exc.to_http_exception()
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))


@router.get("/availability", response_model=CalendarAvailabilityResponse)
async def get_calendar_availability(
    start: Optional[date] = Query(None, description="First day (YYYY-MM-DD)"),
    end: Optional[date] = Query(None, description="Last day, inclusive"),
    availability_service: AvailabilityService = Depends(get_availability_service),
) -> CalendarAvailabilityResponse:
    """
    Count rooms, units and trainers per site for every day of the range.

    A single bound requests one day. Ranges longer than the configured
    maximum are rejected with 400.
    """
    try:
        report = await asyncio.to_thread(availability_service.compute_availability, start, end)
        return CalendarAvailabilityResponse(
            range=RangeResponse(
                start=format_display_iso(report.window.start),
                end=format_display_iso(report.window.end),
            ),
            days={
                day: {
                    site: {
                        group: ResourceCountResponse(
                            total=count.total, booked=count.booked, available=count.available
                        )
                        for group, count in groups.items()
                    }
                    for site, groups in sites.items()
                }
                for day, sites in report.days.items()
            },
        )
    except DomainException as e:
        handle_domain_exception(e)
