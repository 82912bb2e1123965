# backend/app/services/variant_service.py
"""
Variant Service for the training scheduler.

Variants take their window from the edition day and the catalog product's
default times of day. Resource assignment is written to whichever staged
representations the schema supports.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
import logging
from typing import List, Optional, Sequence

from sqlalchemy.orm import Session

from ..core.capabilities import SchemaCapabilities
from ..core.exceptions import NotFoundException
from ..domain.bookings import BookingCandidate
from ..domain.time_window import TimeWindow
from ..models.deal import Product
from ..models.variant import Variant
from ..repositories import RepositoryFactory
from ..repositories.deal_repository import DealRepository
from ..repositories.variant_repository import VariantRepository, VariantResources
from ..schemas.variant import VariantCreate, VariantUpdate
from .base import BaseService
from .conflict_checker import ConflictChecker
from .resource_catalog import ResourceCatalogService

logger = logging.getLogger(__name__)


@dataclass
class VariantView:
    """A variant with its unioned resources and derived window."""

    id: str
    product_id: str
    name: Optional[str]
    date: Optional[date]
    site_label: Optional[str]
    room_id: Optional[str] = None
    trainer_ids: List[str] = field(default_factory=list)
    unit_ids: List[str] = field(default_factory=list)
    start_at: Optional[datetime] = None
    end_at: Optional[datetime] = None


class VariantService(BaseService):
    """Service layer for open-enrollment variants."""

    def __init__(
        self,
        db: Session,
        capabilities: SchemaCapabilities,
        conflict_checker: Optional[ConflictChecker] = None,
        variant_repository: Optional[VariantRepository] = None,
        deal_repository: Optional[DealRepository] = None,
        catalog: Optional[ResourceCatalogService] = None,
    ):
        super().__init__(db)
        self.capabilities = capabilities
        self.catalog = catalog or ResourceCatalogService(db)
        self.variant_repository = variant_repository or RepositoryFactory.create_variant_repository(
            db, capabilities
        )
        self.deal_repository = deal_repository or RepositoryFactory.create_deal_repository(db)
        self.conflict_checker = conflict_checker or ConflictChecker(
            db,
            capabilities,
            variant_repository=self.variant_repository,
            catalog=self.catalog,
        )
        self.resolver = self.conflict_checker.resolver

    def _window(self, day: Optional[date], product: Optional[Product]) -> Optional[TimeWindow]:
        return self.resolver.resolve(
            day,
            default_start=product.default_start_time if product else None,
            default_end=product.default_end_time if product else None,
        )

    def _view(self, variant: Variant, resources: VariantResources) -> VariantView:
        window = self._window(variant.date, variant.product)
        return VariantView(
            id=variant.id,
            product_id=variant.product_id,
            name=variant.name,
            date=variant.date,
            site_label=variant.site_label,
            room_id=resources.room_id,
            trainer_ids=sorted(resources.trainer_ids),
            unit_ids=sorted(resources.unit_ids),
            start_at=window.start if window else None,
            end_at=window.end if window else None,
        )

    def _ensure_available(
        self,
        window: Optional[TimeWindow],
        room_id: Optional[str],
        trainer_ids: Sequence[str],
        unit_ids: Sequence[str],
        exclude_variant_id: Optional[str] = None,
    ) -> None:
        if window is None:
            return
        candidate = BookingCandidate.build(window, room_id, trainer_ids, unit_ids)
        self.conflict_checker.ensure_resources_available(
            candidate, exclude_variant_id=exclude_variant_id
        )

    def _require_variant(self, variant_id: str) -> Variant:
        variant = self.variant_repository.get_by_id(variant_id)
        if not variant:
            raise NotFoundException("Variant not found", details={"variant_id": variant_id})
        return variant

    @BaseService.measure_operation("get_variant")
    def get_variant(self, variant_id: str) -> VariantView:
        variant = self._require_variant(variant_id)
        return self._view(variant, self.variant_repository.get_resources(variant.id))

    @BaseService.measure_operation("create_variant")
    def create_variant(self, data: VariantCreate) -> VariantView:
        """
        Create a variant and store its assignment.

        Raises:
            NotFoundException: If the product or a resource does not exist
            ResourceUnavailableException: If a resource is already booked
        """
        product = self.deal_repository.get_product(data.product_id)
        if not product:
            raise NotFoundException("Product not found", details={"product_id": data.product_id})

        self.catalog.require_resources(data.room_id, data.trainer_ids, data.unit_ids)
        window = self._window(data.date, product)
        self._ensure_available(window, data.room_id, data.trainer_ids, data.unit_ids)

        with self.transaction():
            variant = self.variant_repository.create_variant(
                product_id=product.id,
                name=data.name or product.name,
                day=data.date,
                site_label=data.site_label,
            )
            self.variant_repository.replace_resources(
                variant.id,
                room_id=data.room_id,
                trainer_ids=data.trainer_ids,
                unit_ids=data.unit_ids,
            )

        self.logger.info(f"Created variant {variant.id} for product {product.id}")
        return self.get_variant(variant.id)

    @BaseService.measure_operation("update_variant")
    def update_variant(self, variant_id: str, data: VariantUpdate) -> VariantView:
        """Apply a partial update; the conflict check ignores the variant itself."""
        variant = self._require_variant(variant_id)
        fields = data.model_fields_set
        current = self.variant_repository.get_resources(variant.id)

        room_changed = "room_id" in fields
        trainers_changed = "trainer_ids" in fields and data.trainer_ids is not None
        units_changed = "unit_ids" in fields and data.unit_ids is not None

        room_id = data.room_id if room_changed else current.room_id
        trainer_ids = list(data.trainer_ids) if trainers_changed else sorted(current.trainer_ids)
        unit_ids = list(data.unit_ids) if units_changed else sorted(current.unit_ids)
        day = data.date if "date" in fields else variant.date

        self.catalog.require_resources(
            room_id if room_changed else None,
            trainer_ids if trainers_changed else (),
            unit_ids if units_changed else (),
        )
        window = self._window(day, variant.product)
        self._ensure_available(window, room_id, trainer_ids, unit_ids, exclude_variant_id=variant.id)

        updates = {"date": day}
        if "name" in fields and data.name:
            updates["name"] = data.name
        if "site_label" in fields:
            updates["site_label"] = data.site_label

        with self.transaction():
            self.variant_repository.update(variant, **updates)
            if room_changed or trainers_changed or units_changed:
                self.variant_repository.replace_resources(
                    variant.id, room_id=room_id, trainer_ids=trainer_ids, unit_ids=unit_ids
                )

        return self.get_variant(variant.id)

    @BaseService.measure_operation("delete_variant")
    def delete_variant(self, variant_id: str) -> None:
        """Delete a variant and its link rows together."""
        variant = self._require_variant(variant_id)
        with self.transaction():
            self.variant_repository.delete_variant(variant)
        self.logger.info(f"Deleted variant {variant_id}")
