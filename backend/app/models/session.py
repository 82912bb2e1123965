# backend/app/models/session.py
"""
Training session model.

A session is a booking tied to a deal line item. Its window is stored
explicitly as two UTC instants, either of which may be missing while the
session is being planned. Trainers and mobile units are assigned through
link tables.
"""

from datetime import datetime
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import Column, DateTime, ForeignKey, Index, String, Table, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func
import ulid

from ..core.constants import EXTERNAL_ID_MAX_LENGTH, ULID_LENGTH
from ..core.enums import SessionStatus
from ..database import Base
from .resource import MobileUnit, Room, Trainer

if TYPE_CHECKING:
    from .deal import Deal, DealProduct


session_trainers = Table(
    "session_trainers",
    Base.metadata,
    Column(
        "session_id",
        String(ULID_LENGTH),
        ForeignKey("sessions.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column(
        "trainer_id",
        String(EXTERNAL_ID_MAX_LENGTH),
        ForeignKey("trainers.id"),
        primary_key=True,
        index=True,
    ),
)

session_mobile_units = Table(
    "session_mobile_units",
    Base.metadata,
    Column(
        "session_id",
        String(ULID_LENGTH),
        ForeignKey("sessions.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column(
        "unit_id",
        String(EXTERNAL_ID_MAX_LENGTH),
        ForeignKey("mobile_units.id"),
        primary_key=True,
        index=True,
    ),
)


class TrainingSession(Base):
    """
    Fixed booking planned for a deal line item.

    Attributes:
        start_at / end_at: UTC instants, nullable while planning
        room_id: Assigned room, if any
        address: Where the training takes place
        status: Lifecycle status (see app.domain.session_lifecycle)
    """

    __tablename__ = "sessions"

    id: Mapped[str] = mapped_column(
        String(ULID_LENGTH), primary_key=True, default=lambda: str(ulid.ULID())
    )
    deal_id: Mapped[str] = mapped_column(
        String(EXTERNAL_ID_MAX_LENGTH),
        ForeignKey("deals.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    deal_product_id: Mapped[str] = mapped_column(
        String(EXTERNAL_ID_MAX_LENGTH),
        ForeignKey("deal_products.id", ondelete="CASCADE"),
        nullable=False,
    )
    name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    start_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    end_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    room_id: Mapped[Optional[str]] = mapped_column(
        String(EXTERNAL_ID_MAX_LENGTH), ForeignKey("rooms.id"), nullable=True, index=True
    )
    address: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=SessionStatus.DRAFT.value, index=True
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    deal: Mapped["Deal"] = relationship(back_populates="sessions")
    deal_product: Mapped["DealProduct"] = relationship()
    room: Mapped[Optional[Room]] = relationship()
    trainers: Mapped[List[Trainer]] = relationship(secondary=session_trainers, lazy="selectin")
    mobile_units: Mapped[List[MobileUnit]] = relationship(
        secondary=session_mobile_units, lazy="selectin"
    )

    __table_args__ = (Index("idx_sessions_window", "start_at", "end_at"),)

    @property
    def trainer_ids(self) -> List[str]:
        return [trainer.id for trainer in self.trainers]

    @property
    def unit_ids(self) -> List[str]:
        return [unit.id for unit in self.mobile_units]

    def __repr__(self) -> str:
        return f"<TrainingSession {self.id} {self.start_at} - {self.end_at} {self.status}>"
