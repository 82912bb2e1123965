# backend/app/repositories/variant_repository.py
"""
Variant Repository for the training scheduler.

Variant resources live in two staged representations: the legacy inline
columns (one trainer, one room, one unit) and the link tables (many
trainers, many units). Both may coexist while a deployment migrates, so
reads union them into a single set per variant. Every statement that
touches a staged column or table goes through ``SchemaCapabilities`` and
degrades to the reduced shape when the schema lacks it.
"""

from dataclasses import dataclass, field
from datetime import date
import logging
from typing import Dict, Iterable, List, Optional, Sequence, Set

from sqlalchemy import delete, insert, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
import ulid

from ..core.capabilities import SchemaCapabilities
from ..core.enums import Capability
from ..core.exceptions import RepositoryException
from ..models.deal import Product
from ..models.resource import Room
from ..models.variant import Variant, variant_mobile_units, variant_trainers
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)

variants_table = Variant.__table__


@dataclass
class VariantResources:
    room_id: Optional[str] = None
    trainer_ids: Set[str] = field(default_factory=set)
    unit_ids: Set[str] = field(default_factory=set)


@dataclass
class VariantBookingRow:
    """Everything needed to resolve a variant into a booking."""

    id: str
    date: Optional[date]
    site_label: Optional[str]
    product_start: Optional[str]
    product_end: Optional[str]
    room_id: Optional[str] = None
    room_site: Optional[str] = None
    trainer_ids: Set[str] = field(default_factory=set)
    unit_ids: Set[str] = field(default_factory=set)


class VariantRepository(BaseRepository[Variant]):
    """Repository for variant bookings and their staged resource assignment."""

    def __init__(self, db: Session, capabilities: SchemaCapabilities):
        super().__init__(db, Variant)
        self.capabilities = capabilities
        self.logger = logging.getLogger(__name__)

    # Reads

    def find_in_days(
        self,
        first_day: date,
        last_day: date,
        exclude_variant_id: Optional[str] = None,
    ) -> List[VariantBookingRow]:
        """
        Dated variants between two calendar days (inclusive) with their resources.
        """
        try:
            stmt = (
                select(
                    Variant.id,
                    Variant.date,
                    Variant.site_label,
                    Product.default_start_time,
                    Product.default_end_time,
                )
                .join(Product, Product.id == Variant.product_id)
                .where(
                    Variant.date.is_not(None),
                    Variant.date >= first_day,
                    Variant.date <= last_day,
                )
            )
            if exclude_variant_id:
                stmt = stmt.where(Variant.id != exclude_variant_id)
            rows = [
                VariantBookingRow(
                    id=row.id,
                    date=row.date,
                    site_label=row.site_label,
                    product_start=row.default_start_time,
                    product_end=row.default_end_time,
                )
                for row in self.db.execute(stmt).all()
            ]
            if not rows:
                return rows

            resources = self.load_resources([row.id for row in rows])
            room_sites = self._room_sites(
                r.room_id for r in resources.values() if r.room_id
            )
            for row in rows:
                assigned = resources.get(row.id)
                if assigned is None:
                    continue
                row.room_id = assigned.room_id
                row.room_site = room_sites.get(assigned.room_id) if assigned.room_id else None
                row.trainer_ids = set(assigned.trainer_ids)
                row.unit_ids = set(assigned.unit_ids)
            return rows
        except SQLAlchemyError as e:
            self.logger.error(f"Error loading variants between {first_day} and {last_day}: {str(e)}")
            raise RepositoryException(f"Failed to load variants: {str(e)}")

    def load_resources(self, variant_ids: Sequence[str]) -> Dict[str, VariantResources]:
        """
        Union of inline columns and link rows per variant id.

        Representations the schema lacks contribute nothing.
        """
        ids = list(dict.fromkeys(variant_ids))
        resources: Dict[str, VariantResources] = {vid: VariantResources() for vid in ids}
        if not ids:
            return resources

        def _inline() -> List:
            stmt = select(
                variants_table.c.id,
                variants_table.c.room_id,
                variants_table.c.trainer_id,
                variants_table.c.unit_id,
            ).where(variants_table.c.id.in_(ids))
            return list(self.db.execute(stmt).all())

        for row in self.capabilities.run(
            Capability.VARIANT_RESOURCE_COLUMNS, self.db, _inline, list
        ):
            entry = resources[row.id]
            entry.room_id = row.room_id or None
            if row.trainer_id:
                entry.trainer_ids.add(row.trainer_id)
            if row.unit_id:
                entry.unit_ids.add(row.unit_id)

        def _links() -> tuple:
            trainers = self.db.execute(
                select(variant_trainers.c.variant_id, variant_trainers.c.trainer_id).where(
                    variant_trainers.c.variant_id.in_(ids)
                )
            ).all()
            units = self.db.execute(
                select(variant_mobile_units.c.variant_id, variant_mobile_units.c.unit_id).where(
                    variant_mobile_units.c.variant_id.in_(ids)
                )
            ).all()
            return list(trainers), list(units)

        trainer_rows, unit_rows = self.capabilities.run(
            Capability.VARIANT_RESOURCE_LINKS, self.db, _links, lambda: ([], [])
        )
        for variant_id, trainer_id in trainer_rows:
            if trainer_id:
                resources[variant_id].trainer_ids.add(trainer_id)
        for variant_id, unit_id in unit_rows:
            if unit_id:
                resources[variant_id].unit_ids.add(unit_id)
        return resources

    def get_resources(self, variant_id: str) -> VariantResources:
        try:
            return self.load_resources([variant_id])[variant_id]
        except SQLAlchemyError as e:
            self.logger.error(f"Error loading resources of variant {variant_id}: {str(e)}")
            raise RepositoryException(f"Failed to load variant resources: {str(e)}")

    def _room_sites(self, room_ids: Iterable[str]) -> Dict[str, str]:
        ids = list(dict.fromkeys(room_ids))
        if not ids:
            return {}
        stmt = select(Room.id, Room.site).where(Room.id.in_(ids))
        return {row.id: row.site for row in self.db.execute(stmt).all() if row.site}

    # Writes

    def create_variant(
        self,
        *,
        product_id: str,
        name: Optional[str],
        day: Optional[date],
        site_label: Optional[str],
    ) -> Variant:
        """
        Insert a variant using only the columns every schema has.

        An ORM insert would also send NULL for the staged columns.
        """
        variant_id = str(ulid.ULID())
        try:
            self.db.execute(
                insert(variants_table).values(
                    id=variant_id,
                    product_id=product_id,
                    name=name,
                    date=day,
                    site_label=site_label,
                )
            )
            return self.db.get(Variant, variant_id)
        except SQLAlchemyError as e:
            self.logger.error(f"Error creating variant: {str(e)}")
            raise RepositoryException(f"Failed to create Variant: {str(e)}")

    def replace_resources(
        self,
        variant_id: str,
        *,
        room_id: Optional[str],
        trainer_ids: Sequence[str],
        unit_ids: Sequence[str],
    ) -> None:
        """
        Store a variant's full assignment.

        Link tables receive the full sets; the inline columns mirror the room
        and the first trainer and unit.
        """
        trainer_list = list(dict.fromkeys(trainer_ids))
        unit_list = list(dict.fromkeys(unit_ids))

        def _write_columns() -> None:
            self.db.execute(
                update(variants_table)
                .where(variants_table.c.id == variant_id)
                .values(
                    room_id=room_id,
                    trainer_id=trainer_list[0] if trainer_list else None,
                    unit_id=unit_list[0] if unit_list else None,
                )
            )

        def _write_links() -> None:
            self._delete_links(variant_id)
            if trainer_list:
                self.db.execute(
                    insert(variant_trainers),
                    [{"variant_id": variant_id, "trainer_id": t} for t in trainer_list],
                )
            if unit_list:
                self.db.execute(
                    insert(variant_mobile_units),
                    [{"variant_id": variant_id, "unit_id": u} for u in unit_list],
                )

        try:
            self.capabilities.run(
                Capability.VARIANT_RESOURCE_COLUMNS, self.db, _write_columns, lambda: None
            )
            self.capabilities.run(
                Capability.VARIANT_RESOURCE_LINKS, self.db, _write_links, lambda: None
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error writing resources of variant {variant_id}: {str(e)}")
            raise RepositoryException(f"Failed to write variant resources: {str(e)}")

    def _delete_links(self, variant_id: str) -> None:
        self.db.execute(delete(variant_trainers).where(variant_trainers.c.variant_id == variant_id))
        self.db.execute(
            delete(variant_mobile_units).where(variant_mobile_units.c.variant_id == variant_id)
        )

    def delete_variant(self, variant: Variant) -> None:
        """Remove the variant and its link rows in the caller's transaction."""
        try:
            self.capabilities.run(
                Capability.VARIANT_RESOURCE_LINKS,
                self.db,
                lambda: self._delete_links(variant.id),
                lambda: None,
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error deleting links of variant {variant.id}: {str(e)}")
            raise RepositoryException(f"Failed to delete variant links: {str(e)}")
        self.delete(variant)
