# backend/app/schemas/availability.py
"""
Availability schemas.

``CalendarAvailabilityResponse.days`` is keyed by ISO day, then by site code
(``ARG``/``SAB``), then by resource group (``rooms``/``units``/``trainers``).
"""

from typing import Dict, List

from pydantic import Field

from ._strict_base import StrictModel


class ResourceCountResponse(StrictModel):
    total: int = Field(..., ge=0)
    booked: int = Field(..., ge=0)
    available: int = Field(..., ge=0)


class RangeResponse(StrictModel):
    start: str
    end: str


class CalendarAvailabilityResponse(StrictModel):
    range: RangeResponse
    days: Dict[str, Dict[str, Dict[str, ResourceCountResponse]]]


class ResourceLocksResponse(StrictModel):
    """Resources already committed during a window; advisory only."""

    trainers: List[str] = Field(default_factory=list)
    rooms: List[str] = Field(default_factory=list)
    units: List[str] = Field(default_factory=list)
    available_trainers: List[str] = Field(
        default_factory=list,
        description="Active trainers without a day-off override in the window",
    )
