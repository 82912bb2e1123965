# backend/app/services/availability_service.py
"""
Availability Service for the training scheduler.

Computes, for every display-timezone day of a range and every site, how many
rooms, trainers and mobile units exist and how many are held by at least one
booking that day.

A resource is counted once per day however many bookings or hours hold it.
Rooms count under their own site. Trainers and units count under the
booking's site when they serve it, else under every site they serve.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
import logging
from typing import Dict, Iterable, List, Optional, Set

from sqlalchemy.orm import Session

from ..core.capabilities import SchemaCapabilities
from ..core.config import settings
from ..core.enums import Site
from ..core.exceptions import ValidationException
from ..core.timezone_utils import (
    end_of_display_day,
    ensure_utc,
    iter_display_days,
    start_of_display_day,
)
from ..domain.bookings import ResolvedBooking, ResourceLocks
from ..domain.time_window import TimeWindow, clamp
from .base import BaseService
from .conflict_checker import ConflictChecker
from .resource_catalog import ResourceCatalogService, SiteIndex

logger = logging.getLogger(__name__)

RESOURCE_GROUPS = ("rooms", "units", "trainers")


@dataclass
class ResourceCount:
    total: int = 0
    booked: int = 0
    available: int = 0


@dataclass
class AvailabilityReport:
    window: TimeWindow
    days: Dict[str, Dict[str, Dict[str, ResourceCount]]] = field(default_factory=dict)


def _applicable_sites(event_site: Optional[Site], resource_sites: List[Site]) -> List[Site]:
    if event_site is not None and event_site in resource_sites:
        return [event_site]
    return resource_sites


class AvailabilityService(BaseService):
    """Per-day, per-site resource availability for calendar views."""

    def __init__(
        self,
        db: Session,
        capabilities: SchemaCapabilities,
        conflict_checker: Optional[ConflictChecker] = None,
        catalog: Optional[ResourceCatalogService] = None,
    ):
        super().__init__(db)
        self.catalog = catalog or ResourceCatalogService(db)
        self.conflict_checker = conflict_checker or ConflictChecker(
            db, capabilities, catalog=self.catalog
        )
        self.max_range_days = settings.availability_max_range_days

    def validate_range(self, start: Optional[date], end: Optional[date]) -> TimeWindow:
        """
        Turn a day range into an instant window in the display timezone.

        A single bound stands for a one-day range.

        Raises:
            ValidationException: If no bound is given, the range is inverted or too long
        """
        effective_start = start or end
        effective_end = end or start
        if effective_start is None or effective_end is None:
            raise ValidationException("start or end is required", details={"field": "start"})
        if effective_end < effective_start:
            raise ValidationException(
                "end must not be before start",
                details={"start": effective_start.isoformat(), "end": effective_end.isoformat()},
            )
        span = (effective_end - effective_start).days
        if span > self.max_range_days:
            raise ValidationException(
                f"Range cannot exceed {self.max_range_days} days",
                details={"max_days": self.max_range_days, "requested_days": span},
            )
        return TimeWindow(start_of_display_day(effective_start), end_of_display_day(effective_end))

    def validate_lock_window(
        self, start: Optional[datetime], end: Optional[datetime]
    ) -> TimeWindow:
        """
        Validate the instant window of a lock listing.

        A missing end stands for the start instant itself.

        Raises:
            ValidationException: If start is missing, the window is inverted or too long
        """
        if start is None:
            raise ValidationException("start is required", details={"field": "start"})
        start = ensure_utc(start)
        end = ensure_utc(end) if end is not None else start
        if end < start:
            raise ValidationException(
                "end must not be before start",
                details={"start": start.isoformat(), "end": end.isoformat()},
            )
        span = (end - start).days
        if span > self.max_range_days:
            raise ValidationException(
                f"Range cannot exceed {self.max_range_days} days",
                details={"max_days": self.max_range_days, "requested_days": span},
            )
        return TimeWindow(start, end)

    def get_booking_locks(
        self,
        start: Optional[datetime],
        end: Optional[datetime],
        exclude_session_id: Optional[str] = None,
        exclude_variant_id: Optional[str] = None,
    ) -> ResourceLocks:
        """Resources already committed during a window; advisory only."""
        window = self.validate_lock_window(start, end)
        return self.conflict_checker.get_locked_resources(
            window,
            exclude_session_id=exclude_session_id,
            exclude_variant_id=exclude_variant_id,
        )

    @BaseService.measure_operation("compute_availability")
    def compute_availability(
        self, start: Optional[date], end: Optional[date]
    ) -> AvailabilityReport:
        window = self.validate_range(start, end)
        index = self.catalog.build_site_index()
        totals = self._site_totals(index)

        booked: Dict[str, Dict[Site, Dict[str, Set[str]]]] = {}
        report = AvailabilityReport(window=window)
        for day in iter_display_days(window.start, window.end):
            key = day.isoformat()
            booked[key] = {site: {group: set() for group in RESOURCE_GROUPS} for site in Site}

        for booking in self._bookings_in(window):
            clipped = clamp(booking.window, window)
            if clipped is None:
                continue
            for day in iter_display_days(clipped.start, clipped.end):
                day_buckets = booked.get(day.isoformat())
                if day_buckets is not None:
                    self._mark_booked(day_buckets, booking, index)

        for key, day_buckets in booked.items():
            report.days[key] = {
                site.value: {
                    group: self._count(totals[site][group], len(day_buckets[site][group]))
                    for group in RESOURCE_GROUPS
                }
                for site in Site
            }
        return report

    def _bookings_in(self, window: TimeWindow) -> Iterable[ResolvedBooking]:
        checker = self.conflict_checker
        sessions = checker.session_repository.find_in_range(
            window.start, window.end, margin=checker.minimum_duration
        )
        yield from checker.resolve_sessions(sessions)
        yield from checker.load_variant_bookings(window)

    @staticmethod
    def _site_totals(index: SiteIndex) -> Dict[Site, Dict[str, int]]:
        totals = {site: {group: 0 for group in RESOURCE_GROUPS} for site in Site}
        for site in index.room_sites.values():
            totals[site]["rooms"] += 1
        for sites in index.unit_sites.values():
            for site in sites:
                totals[site]["units"] += 1
        for sites in index.trainer_sites.values():
            for site in sites:
                totals[site]["trainers"] += 1
        return totals

    @staticmethod
    def _mark_booked(
        day_buckets: Dict[Site, Dict[str, Set[str]]],
        booking: ResolvedBooking,
        index: SiteIndex,
    ) -> None:
        if booking.room_id:
            room_site = index.room_sites.get(booking.room_id)
            if room_site is not None:
                day_buckets[room_site]["rooms"].add(booking.room_id)
        for unit_id in booking.unit_ids:
            for site in _applicable_sites(booking.site, index.unit_sites.get(unit_id, [])):
                day_buckets[site]["units"].add(unit_id)
        for trainer_id in booking.trainer_ids:
            for site in _applicable_sites(booking.site, index.trainer_sites.get(trainer_id, [])):
                day_buckets[site]["trainers"].add(trainer_id)

    @staticmethod
    def _count(total: int, booked: int) -> ResourceCount:
        return ResourceCount(total=total, booked=booked, available=max(total - booked, 0))
