# backend/app/services/conflict_checker.py
"""
Conflict Checker Service for the training scheduler.

Handles all resource conflict detection including:
- Checking a candidate booking against every overlapping session and variant
- Raising a conflict error before any write is committed
- Listing the resources locked during a window, for advisory UI greying

Sessions and variants are adapted into ``ResolvedBooking`` values first, so
the overlap and resource matching below never depends on the event kind.
Always-available mobile units are removed on both sides.
"""

from datetime import timedelta
import logging
from typing import Iterable, List, Optional

from sqlalchemy.orm import Session

from ..core.capabilities import SchemaCapabilities
from ..core.config import settings
from ..core.exceptions import ResourceUnavailableException
from ..core.timezone_utils import display_date, format_display_iso, iter_display_days
from ..domain.bookings import (
    BookingCandidate,
    ResolvedBooking,
    ResourceConflict,
    ResourceLocks,
    first_conflict,
    resolved_from_session,
    resolved_from_variant,
)
from ..domain.time_window import TimeRangeResolver, TimeWindow
from ..models.session import TrainingSession
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories import RepositoryFactory
from ..repositories.session_repository import SessionRepository
from ..repositories.variant_repository import VariantBookingRow, VariantRepository
from .base import BaseService
from .resource_catalog import ResourceCatalogService

logger = logging.getLogger(__name__)

# Variant windows are derived per day; a window crossing midnight needs the neighbours.
VARIANT_DAY_MARGIN = timedelta(days=1)


class ConflictChecker(BaseService):
    """
    Service for detecting double-booked resources.

    The check is advisory against concurrent writers: two requests may both
    pass before either commits.
    """

    def __init__(
        self,
        db: Session,
        capabilities: SchemaCapabilities,
        session_repository: Optional[SessionRepository] = None,
        variant_repository: Optional[VariantRepository] = None,
        catalog: Optional[ResourceCatalogService] = None,
        resolver: Optional[TimeRangeResolver] = None,
    ):
        """
        Initialize conflict checker service.

        Args:
            db: Database session
            capabilities: Shared schema capability flags
            session_repository: Optional SessionRepository instance
            variant_repository: Optional VariantRepository instance
            catalog: Optional ResourceCatalogService instance
            resolver: Optional TimeRangeResolver for variant windows
        """
        super().__init__(db)
        self.logger = logging.getLogger(__name__)
        self.capabilities = capabilities
        self.session_repository = (
            session_repository or RepositoryFactory.create_session_repository(db)
        )
        self.variant_repository = variant_repository or RepositoryFactory.create_variant_repository(
            db, capabilities
        )
        self.catalog = catalog or ResourceCatalogService(db)
        self.resolver = resolver or TimeRangeResolver.from_settings(settings)
        self.minimum_duration = timedelta(minutes=settings.minimum_booking_minutes)

    # Adapters

    def resolve_sessions(self, sessions: Iterable[TrainingSession]) -> List[ResolvedBooking]:
        bookings = []
        for session in sessions:
            booking = resolved_from_session(
                session_id=session.id,
                start_at=session.start_at,
                end_at=session.end_at,
                room_id=session.room_id,
                trainer_ids=session.trainer_ids,
                unit_ids=session.unit_ids,
                site_label=session.deal.site_label if session.deal else None,
                room_site=session.room.site if session.room else None,
                exempt_unit_ids=self.catalog.exempt_unit_ids,
            )
            if booking is not None:
                bookings.append(booking)
        return bookings

    def resolve_variants(self, rows: Iterable[VariantBookingRow]) -> List[ResolvedBooking]:
        bookings = []
        for row in rows:
            booking = resolved_from_variant(
                variant_id=row.id,
                day=row.date,
                resolver=self.resolver,
                product_start=row.product_start,
                product_end=row.product_end,
                room_id=row.room_id,
                trainer_ids=row.trainer_ids,
                unit_ids=row.unit_ids,
                site_label=row.site_label,
                room_site=row.room_site,
                exempt_unit_ids=self.catalog.exempt_unit_ids,
            )
            if booking is not None:
                bookings.append(booking)
        return bookings

    def load_variant_bookings(
        self, window: TimeWindow, exclude_variant_id: Optional[str] = None
    ) -> List[ResolvedBooking]:
        rows = self.variant_repository.find_in_days(
            display_date(window.start) - VARIANT_DAY_MARGIN,
            display_date(window.end) + VARIANT_DAY_MARGIN,
            exclude_variant_id=exclude_variant_id,
        )
        return self.resolve_variants(rows)

    # Checks

    @BaseService.measure_operation("check_availability")
    def check_availability(
        self,
        candidate: BookingCandidate,
        exclude_session_id: Optional[str] = None,
        exclude_variant_id: Optional[str] = None,
    ) -> Optional[ResourceConflict]:
        """
        Find the first booking that already holds a requested resource.

        Args:
            candidate: Window and requested resources
            exclude_session_id: Session being updated, if any
            exclude_variant_id: Variant being updated, if any

        Returns:
            The first conflict found, or None when every resource is free
        """
        candidate = candidate.without_exempt_units(self.catalog.exempt_unit_ids)
        if not candidate.has_resources:
            return None

        sessions = self.session_repository.find_for_resources(
            candidate.window.start,
            candidate.window.end,
            room_id=candidate.room_id,
            trainer_ids=candidate.trainer_ids,
            unit_ids=candidate.unit_ids,
            exclude_session_id=exclude_session_id,
            margin=self.minimum_duration,
        )
        conflict = first_conflict(candidate, self.resolve_sessions(sessions))
        if conflict is None:
            conflict = first_conflict(
                candidate, self.load_variant_bookings(candidate.window, exclude_variant_id)
            )

        if conflict is not None:
            self.logger.warning(
                f"Resource conflict: {conflict.resource_kind.value} {conflict.resource_id} "
                f"is held by {conflict.booking_kind.value} {conflict.booking_id} "
                f"({conflict.window.start.isoformat()} - {conflict.window.end.isoformat()})"
            )
            prometheus_metrics.inc_resource_conflict(
                conflict.resource_kind.value, conflict.booking_kind.value
            )
        return conflict

    def ensure_resources_available(
        self,
        candidate: BookingCandidate,
        exclude_session_id: Optional[str] = None,
        exclude_variant_id: Optional[str] = None,
    ) -> None:
        """
        Raise when any requested resource is taken.

        Raises:
            ResourceUnavailableException: With the conflicting booking in ``details``
        """
        conflict = self.check_availability(
            candidate,
            exclude_session_id=exclude_session_id,
            exclude_variant_id=exclude_variant_id,
        )
        if conflict is None:
            return
        raise ResourceUnavailableException(
            details={
                "resource_kind": conflict.resource_kind.value,
                "resource_id": conflict.resource_id,
                "booking_kind": conflict.booking_kind.value,
                "booking_id": conflict.booking_id,
                "start": format_display_iso(conflict.window.start),
                "end": format_display_iso(conflict.window.end),
            }
        )

    @BaseService.measure_operation("get_locked_resources")
    def get_locked_resources(
        self,
        window: TimeWindow,
        exclude_session_id: Optional[str] = None,
        exclude_variant_id: Optional[str] = None,
    ) -> ResourceLocks:
        """
        Resources held by any booking overlapping ``window``.

        Also reports the active trainers without a day-off override on any
        display day the window touches.
        """
        locks = ResourceLocks()
        sessions = self.session_repository.find_in_range(
            window.start,
            window.end,
            exclude_session_id=exclude_session_id,
            margin=self.minimum_duration,
        )
        bookings = self.resolve_sessions(sessions) + self.load_variant_bookings(
            window, exclude_variant_id
        )
        for booking in bookings:
            if booking.window.overlaps(window):
                locks.add(booking)

        unavailable = self.catalog.repository.get_unavailable_trainer_ids(
            iter_display_days(window.start, window.end)
        )
        locks.available_trainer_ids = {
            trainer_id
            for trainer_id in self.catalog.active_trainer_ids()
            if trainer_id not in unavailable
        }
        return locks
