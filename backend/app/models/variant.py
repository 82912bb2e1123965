# backend/app/models/variant.py
"""
Open-enrollment variant model.

A variant is a dated edition of a catalog product. Its window is derived on
every read from ``date`` and the product's default times of day.

Resource assignment is staged: the inline ``trainer_id``/``room_id``/
``unit_id`` columns and the ``variant_trainers``/``variant_mobile_units``
link tables may be missing from an older schema. They are deferred on the
ORM mapping and only ever touched through Core statements guarded by
``SchemaCapabilities``.
"""

import datetime as dt
from typing import TYPE_CHECKING, Optional

from sqlalchemy import Column, Date, ForeignKey, String, Table
from sqlalchemy.orm import Mapped, deferred, mapped_column, relationship
import ulid

from ..core.constants import EXTERNAL_ID_MAX_LENGTH, ULID_LENGTH
from ..database import Base

if TYPE_CHECKING:
    from .deal import Product


variant_trainers = Table(
    "variant_trainers",
    Base.metadata,
    Column(
        "variant_id",
        String(ULID_LENGTH),
        ForeignKey("variants.id", ondelete="CASCADE"),
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

variant_mobile_units = Table(
    "variant_mobile_units",
    Base.metadata,
    Column(
        "variant_id",
        String(ULID_LENGTH),
        ForeignKey("variants.id", ondelete="CASCADE"),
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


class Variant(Base):
    """Dated edition of a catalog product."""

    __tablename__ = "variants"

    id: Mapped[str] = mapped_column(
        String(ULID_LENGTH), primary_key=True, default=lambda: str(ulid.ULID())
    )
    product_id: Mapped[str] = mapped_column(
        String(EXTERNAL_ID_MAX_LENGTH),
        ForeignKey("products.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    date: Mapped[Optional[dt.date]] = mapped_column(Date, nullable=True, index=True)
    site_label: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    # Legacy single-value assignment (staged)
    trainer_id: Mapped[Optional[str]] = deferred(
        mapped_column(String(EXTERNAL_ID_MAX_LENGTH), ForeignKey("trainers.id"), nullable=True)
    )
    room_id: Mapped[Optional[str]] = deferred(
        mapped_column(String(EXTERNAL_ID_MAX_LENGTH), ForeignKey("rooms.id"), nullable=True)
    )
    unit_id: Mapped[Optional[str]] = deferred(
        mapped_column(String(EXTERNAL_ID_MAX_LENGTH), ForeignKey("mobile_units.id"), nullable=True)
    )

    product: Mapped["Product"] = relationship(lazy="joined")

    def __repr__(self) -> str:
        return f"<Variant {self.id} {self.date}>"
