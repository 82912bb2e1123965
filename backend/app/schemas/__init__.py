# backend/app/schemas/__init__.py
"""
Pydantic schemas for the training scheduler.

Request models forbid unknown fields; response models read ORM attributes.
"""

from .availability import (
    CalendarAvailabilityResponse,
    RangeResponse,
    ResourceCountResponse,
    ResourceLocksResponse,
)
from .session import SessionCreate, SessionListResponse, SessionResponse, SessionUpdate
from .variant import VariantCreate, VariantResponse, VariantUpdate

__all__ = [
    "CalendarAvailabilityResponse",
    "RangeResponse",
    "ResourceCountResponse",
    "ResourceLocksResponse",
    "SessionCreate",
    "SessionListResponse",
    "SessionResponse",
    "SessionUpdate",
    "VariantCreate",
    "VariantResponse",
    "VariantUpdate",
]
