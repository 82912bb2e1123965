# backend/app/models/deal.py
"""
Commercial records the scheduler reads.

Deals and their line-item products are owned by the CRM sync; catalog
products are owned by the e-commerce sync. The scheduler only reads them.
"""

from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship
import ulid

from ..core.constants import EXTERNAL_ID_MAX_LENGTH
from ..database import Base

if TYPE_CHECKING:
    from .session import TrainingSession


class Deal(Base):
    """
    A sales deal.

    Attributes:
        pipeline: CRM pipeline label, used by scheduling exemptions
        site_label: Declared site, free text
        training_address: Default address for the deal's sessions
    """

    __tablename__ = "deals"

    id: Mapped[str] = mapped_column(
        String(EXTERNAL_ID_MAX_LENGTH), primary_key=True, default=lambda: str(ulid.ULID())
    )
    title: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    pipeline: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    site_label: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    training_address: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    products: Mapped[List["DealProduct"]] = relationship(
        back_populates="deal", cascade="all, delete-orphan"
    )
    sessions: Mapped[List["TrainingSession"]] = relationship(back_populates="deal")


class DealProduct(Base):
    """A line item of a deal; sessions are planned per line item."""

    __tablename__ = "deal_products"

    id: Mapped[str] = mapped_column(
        String(EXTERNAL_ID_MAX_LENGTH), primary_key=True, default=lambda: str(ulid.ULID())
    )
    deal_id: Mapped[str] = mapped_column(
        String(EXTERNAL_ID_MAX_LENGTH),
        ForeignKey("deals.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    code: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    deal: Mapped["Deal"] = relationship(back_populates="products")

    @property
    def display_name(self) -> str:
        return (self.name or self.code or "Session").strip()


class Product(Base):
    """
    Open-enrollment catalog product.

    Default times of day are kept as ``HH:MM`` text and parsed leniently.
    """

    __tablename__ = "products"

    id: Mapped[str] = mapped_column(
        String(EXTERNAL_ID_MAX_LENGTH), primary_key=True, default=lambda: str(ulid.ULID())
    )
    code: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    default_start_time: Mapped[Optional[str]] = mapped_column(String(16), nullable=True)
    default_end_time: Mapped[Optional[str]] = mapped_column(String(16), nullable=True)
