"""
Common shape of bookable events.

Sessions store their window; variants derive it from a day and their
product's times of day. Both are adapted into ``ResolvedBooking`` so conflict
detection and availability never branch on the event kind.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Dict, FrozenSet, Iterable, Optional

from app.core.enums import BookingKind, ResourceKind, Site
from app.domain.sites import normalize_site
from app.domain.time_window import TimeLike, TimeRangeResolver, TimeWindow, normalize_stored_window


def _ids(values: Optional[Iterable[Optional[str]]]) -> FrozenSet[str]:
    if not values:
        return frozenset()
    return frozenset(str(value).strip() for value in values if value and str(value).strip())


def filter_exempt_units(
    unit_ids: Optional[Iterable[Optional[str]]], exempt_ids: Iterable[str]
) -> FrozenSet[str]:
    """Drop always-available units; they never block anything."""
    exempt = _ids(exempt_ids)
    return frozenset(unit_id for unit_id in _ids(unit_ids) if unit_id not in exempt)


@dataclass(frozen=True)
class ResolvedBooking:
    kind: BookingKind
    id: str
    window: TimeWindow
    room_id: Optional[str] = None
    trainer_ids: FrozenSet[str] = field(default_factory=frozenset)
    unit_ids: FrozenSet[str] = field(default_factory=frozenset)
    site: Optional[Site] = None

    def resources(self) -> Dict[ResourceKind, FrozenSet[str]]:
        return {
            ResourceKind.ROOM: frozenset({self.room_id}) if self.room_id else frozenset(),
            ResourceKind.TRAINER: self.trainer_ids,
            ResourceKind.UNIT: self.unit_ids,
        }


@dataclass(frozen=True)
class BookingCandidate:
    """A window and the resources someone wants to commit to it."""

    window: TimeWindow
    room_id: Optional[str] = None
    trainer_ids: FrozenSet[str] = field(default_factory=frozenset)
    unit_ids: FrozenSet[str] = field(default_factory=frozenset)

    @classmethod
    def build(
        cls,
        window: TimeWindow,
        room_id: Optional[str] = None,
        trainer_ids: Optional[Iterable[str]] = None,
        unit_ids: Optional[Iterable[str]] = None,
    ) -> "BookingCandidate":
        room = room_id.strip() if room_id and room_id.strip() else None
        return cls(window=window, room_id=room, trainer_ids=_ids(trainer_ids), unit_ids=_ids(unit_ids))

    def without_exempt_units(self, exempt_ids: Iterable[str]) -> "BookingCandidate":
        return BookingCandidate(
            window=self.window,
            room_id=self.room_id,
            trainer_ids=self.trainer_ids,
            unit_ids=filter_exempt_units(self.unit_ids, exempt_ids),
        )

    @property
    def has_resources(self) -> bool:
        return bool(self.room_id or self.trainer_ids or self.unit_ids)


@dataclass(frozen=True)
class ResourceConflict:
    resource_kind: ResourceKind
    resource_id: str
    booking_kind: BookingKind
    booking_id: str
    window: TimeWindow


@dataclass
class ResourceLocks:
    """Resources committed to bookings that overlap a window."""

    room_ids: set = field(default_factory=set)
    trainer_ids: set = field(default_factory=set)
    unit_ids: set = field(default_factory=set)
    available_trainer_ids: set = field(default_factory=set)

    def add(self, booking: ResolvedBooking) -> None:
        if booking.room_id:
            self.room_ids.add(booking.room_id)
        self.trainer_ids.update(booking.trainer_ids)
        self.unit_ids.update(booking.unit_ids)


def effective_site(room_site: Optional[str], declared_label: Optional[str]) -> Optional[Site]:
    """The room's site wins over the declared label."""
    return normalize_site(room_site) or normalize_site(declared_label)


def resolved_from_session(
    *,
    session_id: str,
    start_at: Optional[datetime],
    end_at: Optional[datetime],
    room_id: Optional[str] = None,
    trainer_ids: Optional[Iterable[str]] = None,
    unit_ids: Optional[Iterable[str]] = None,
    site_label: Optional[str] = None,
    room_site: Optional[str] = None,
    exempt_unit_ids: Iterable[str] = (),
) -> Optional[ResolvedBooking]:
    """Adapt a session; None when it has no usable window."""
    window = normalize_stored_window(start_at, end_at)
    if window is None:
        return None
    return ResolvedBooking(
        kind=BookingKind.SESSION,
        id=session_id,
        window=window,
        room_id=room_id or None,
        trainer_ids=_ids(trainer_ids),
        unit_ids=filter_exempt_units(unit_ids, exempt_unit_ids),
        site=effective_site(room_site, site_label),
    )


def resolved_from_variant(
    *,
    variant_id: str,
    day: Optional[date],
    resolver: TimeRangeResolver,
    product_start: TimeLike = None,
    product_end: TimeLike = None,
    room_id: Optional[str] = None,
    trainer_ids: Optional[Iterable[str]] = None,
    unit_ids: Optional[Iterable[str]] = None,
    site_label: Optional[str] = None,
    room_site: Optional[str] = None,
    exempt_unit_ids: Iterable[str] = (),
) -> Optional[ResolvedBooking]:
    """Adapt a variant, deriving its window from the day and product times."""
    window = resolver.resolve(day, default_start=product_start, default_end=product_end)
    if window is None:
        return None
    return ResolvedBooking(
        kind=BookingKind.VARIANT,
        id=variant_id,
        window=window,
        room_id=room_id or None,
        trainer_ids=_ids(trainer_ids),
        unit_ids=filter_exempt_units(unit_ids, exempt_unit_ids),
        site=effective_site(room_site, site_label),
    )


def first_conflict(
    candidate: BookingCandidate, bookings: Iterable[ResolvedBooking]
) -> Optional[ResourceConflict]:
    """First booking that overlaps the candidate on any requested resource."""
    for booking in bookings:
        if not booking.window.overlaps(candidate.window):
            continue
        if candidate.room_id and booking.room_id == candidate.room_id:
            return ResourceConflict(
                ResourceKind.ROOM, candidate.room_id, booking.kind, booking.id, booking.window
            )
        for trainer_id in sorted(candidate.trainer_ids & booking.trainer_ids):
            return ResourceConflict(
                ResourceKind.TRAINER, trainer_id, booking.kind, booking.id, booking.window
            )
        for unit_id in sorted(candidate.unit_ids & booking.unit_ids):
            return ResourceConflict(
                ResourceKind.UNIT, unit_id, booking.kind, booking.id, booking.window
            )
    return None
