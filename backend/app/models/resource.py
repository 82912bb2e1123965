# backend/app/models/resource.py
"""
Resource catalog models.

Trainers, rooms and mobile units are the finite things that get booked.
Rooms belong to exactly one site; trainers and units may serve several, so
their sites are stored as a JSON list of labels.
"""

import datetime as dt
from typing import List, Optional

from sqlalchemy import JSON, Boolean, Date, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
import ulid

from ..core.constants import EXTERNAL_ID_MAX_LENGTH, ULID_LENGTH
from ..database import Base


class Trainer(Base):
    """
    A person who delivers training.

    Attributes:
        id: Primary key
        name: Display name
        sites: Site labels the trainer works from
        active: Inactive trainers are excluded from availability totals
    """

    __tablename__ = "trainers"

    id: Mapped[str] = mapped_column(
        String(EXTERNAL_ID_MAX_LENGTH), primary_key=True, default=lambda: str(ulid.ULID())
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    sites: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    def __repr__(self) -> str:
        return f"<Trainer {self.id} {self.name!r}>"


class Room(Base):
    """A classroom on a single site."""

    __tablename__ = "rooms"

    id: Mapped[str] = mapped_column(
        String(EXTERNAL_ID_MAX_LENGTH), primary_key=True, default=lambda: str(ulid.ULID())
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    site: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    def __repr__(self) -> str:
        return f"<Room {self.id} {self.name!r} site={self.site!r}>"


class MobileUnit(Base):
    """A vehicle or portable kit that travels to the training location."""

    __tablename__ = "mobile_units"

    id: Mapped[str] = mapped_column(
        String(EXTERNAL_ID_MAX_LENGTH), primary_key=True, default=lambda: str(ulid.ULID())
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    sites: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)

    def __repr__(self) -> str:
        return f"<MobileUnit {self.id} {self.name!r}>"


class TrainerAvailability(Base):
    """
    Per-day override of a trainer's default schedule.

    A row with ``available = False`` marks the trainer as off for that day.
    """

    __tablename__ = "trainer_availability"
    __table_args__ = (UniqueConstraint("trainer_id", "date", name="uq_trainer_availability_day"),)

    id: Mapped[str] = mapped_column(
        String(ULID_LENGTH), primary_key=True, default=lambda: str(ulid.ULID())
    )
    trainer_id: Mapped[str] = mapped_column(
        String(EXTERNAL_ID_MAX_LENGTH),
        ForeignKey("trainers.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    date: Mapped[dt.date] = mapped_column(Date, nullable=False, index=True)
    available: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
