# backend/app/schemas/variant.py
"""Variant schemas for the training scheduler."""

import datetime as dt
from datetime import datetime
from typing import List, Optional

from pydantic import Field, field_validator

from ._strict_base import StrictModel, StrictRequestModel
from .session import _blank_to_none, _clean_ids


class VariantCreate(StrictRequestModel):
    """Create a dated edition of a catalog product."""

    product_id: str = Field(..., min_length=1)
    name: Optional[str] = Field(None, max_length=255)
    date: Optional[dt.date] = Field(None, description="Calendar day of the edition")
    site_label: Optional[str] = Field(None, max_length=255)
    room_id: Optional[str] = None
    trainer_ids: List[str] = Field(default_factory=list)
    unit_ids: List[str] = Field(default_factory=list)

    @field_validator("trainer_ids", "unit_ids", mode="before")
    @classmethod
    def normalize_ids(cls, value: object) -> object:
        return _clean_ids(value)

    @field_validator("room_id", mode="before")
    @classmethod
    def normalize_room(cls, value: object) -> object:
        return _blank_to_none(value)


class VariantUpdate(StrictRequestModel):
    """Partial update; only the fields present in the body are applied."""

    name: Optional[str] = Field(None, max_length=255)
    date: Optional[dt.date] = None
    site_label: Optional[str] = Field(None, max_length=255)
    room_id: Optional[str] = None
    trainer_ids: Optional[List[str]] = None
    unit_ids: Optional[List[str]] = None

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


class VariantResponse(StrictModel):
    id: str
    product_id: str
    name: Optional[str] = None
    date: Optional[dt.date] = None
    site_label: Optional[str] = None
    room_id: Optional[str] = None
    trainer_ids: List[str] = Field(default_factory=list)
    unit_ids: List[str] = Field(default_factory=list)
    start_at: Optional[datetime] = Field(None, description="Derived from date and product times")
    end_at: Optional[datetime] = Field(None, description="Derived from date and product times")
