# backend/app/schemas/session.py
"""
Session schemas for the training scheduler.

A session window can be sent either as two instants (``start_at``/``end_at``)
or as a calendar ``date`` with optional ``HH:MM`` times of day, which are
combined in the display timezone. Times of day are validated by the service
so that malformed values surface as ``INVALID_TIME``.
"""

import datetime as dt
from datetime import datetime
from typing import List, Optional

from pydantic import Field, field_validator

from ..core.enums import SessionStatus
from ..core.timezone_utils import ensure_utc
from ._strict_base import StrictModel, StrictRequestModel


def _clean_ids(value: object) -> object:
    if value is None:
        return []
    if isinstance(value, list):
        cleaned = []
        for item in value:
            text = str(item).strip() if item is not None else ""
            if text and text not in cleaned:
                cleaned.append(text)
        return cleaned
    return value


def _blank_to_none(value: object) -> object:
    if isinstance(value, str) and not value.strip():
        return None
    return value


class SessionWindowFields(StrictRequestModel):
    start_at: Optional[datetime] = Field(None, description="Start instant (ISO-8601)")
    end_at: Optional[datetime] = Field(None, description="End instant (ISO-8601)")
    date: Optional[dt.date] = Field(None, description="Calendar day, alternative to start_at/end_at")
    start_time: Optional[str] = Field(None, description="Start time of day (HH:MM)")
    end_time: Optional[str] = Field(None, description="End time of day (HH:MM)")


class SessionCreate(SessionWindowFields):
    """Create a session for one line item of a deal."""

    deal_product_id: str = Field(..., min_length=1, description="Deal line item being planned")
    name: Optional[str] = Field(None, max_length=255)
    room_id: Optional[str] = None
    trainer_ids: List[str] = Field(default_factory=list)
    unit_ids: List[str] = Field(default_factory=list)
    address: Optional[str] = Field(None, description="Defaults to the deal's training address")
    force_draft: bool = Field(False, description="Store DRAFT whatever the assignment")

    @field_validator("trainer_ids", "unit_ids", mode="before")
    @classmethod
    def normalize_ids(cls, value: object) -> object:
        return _clean_ids(value)

    @field_validator("room_id", mode="before")
    @classmethod
    def normalize_room(cls, value: object) -> object:
        return _blank_to_none(value)


class SessionUpdate(SessionWindowFields):
    """
    Partial update; only the fields present in the body are applied.

    ``room_id: null`` removes the room and ``status: null`` hands a manual
    status back to the automatic one.
    """

    name: Optional[str] = Field(None, max_length=255)
    room_id: Optional[str] = None
    trainer_ids: Optional[List[str]] = None
    unit_ids: Optional[List[str]] = None
    address: Optional[str] = None
    status: Optional[SessionStatus] = None

    @field_validator("trainer_ids", "unit_ids", mode="before")
    @classmethod
    def normalize_ids(cls, value: object) -> object:
        if value is None:
            return None
        return _clean_ids(value)

    @field_validator("room_id", mode="before")
    @classmethod
    def normalize_room(cls, value: object) -> object:
        return _blank_to_none(value)


class SessionResponse(StrictModel):
    id: str
    deal_id: str
    deal_product_id: str
    name: Optional[str] = None
    start_at: Optional[datetime] = None
    end_at: Optional[datetime] = None
    room_id: Optional[str] = None
    trainer_ids: List[str] = Field(default_factory=list)
    unit_ids: List[str] = Field(default_factory=list)
    address: Optional[str] = None
    status: SessionStatus

    @field_validator("start_at", "end_at")
    @classmethod
    def as_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(value) if value is not None else None


class SessionListResponse(StrictModel):
    deal_id: str
    sessions: List[SessionResponse]
    total: int
