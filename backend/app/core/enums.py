# backend/app/core/enums.py
"""
Core enums for the training scheduler.

This module contains enumeration types used throughout the application
for type safety and consistency. Values are persisted as plain strings.
"""

from enum import Enum


class SessionStatus(str, Enum):
    """
    Lifecycle status of a session.

    DRAFT and SCHEDULED are computed from the session's assignment.
    SUSPENDED, CANCELLED and FINISHED are set manually and are sticky.
    """

    DRAFT = "DRAFT"
    SCHEDULED = "SCHEDULED"
    SUSPENDED = "SUSPENDED"
    CANCELLED = "CANCELLED"
    FINISHED = "FINISHED"


class ResourceKind(str, Enum):
    """Kinds of finite resources that can be booked."""

    ROOM = "room"
    TRAINER = "trainer"
    UNIT = "unit"


class BookingKind(str, Enum):
    """Shapes of bookable events."""

    SESSION = "session"
    VARIANT = "variant"


class Site(str, Enum):
    """Canonical physical campuses."""

    ARG = "ARG"
    SAB = "SAB"


class Capability(str, Enum):
    """Staged schema capabilities probed at runtime."""

    VARIANT_RESOURCE_COLUMNS = "variant_resource_columns"
    VARIANT_RESOURCE_LINKS = "variant_resource_links"
