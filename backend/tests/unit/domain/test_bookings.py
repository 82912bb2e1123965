"""Tests for the common booking shape and first-conflict search."""

from datetime import date

import pytest

from app.core.enums import BookingKind, ResourceKind, Site
from app.domain.bookings import (
    BookingCandidate,
    filter_exempt_units,
    first_conflict,
    resolved_from_session,
    resolved_from_variant,
)
from app.domain.time_window import TimeRangeResolver, TimeWindow
from tests.helpers.time_helpers import madrid, utc


@pytest.mark.unit
class TestResolvedBookings:
    def test_session_without_window_is_skipped(self) -> None:
        assert resolved_from_session(session_id="s1", start_at=None, end_at=None) is None

    def test_session_site_prefers_room_site(self) -> None:
        booking = resolved_from_session(
            session_id="s1",
            start_at=utc(2025, 4, 1, 8),
            end_at=utc(2025, 4, 1, 10),
            trainer_ids=["t1", "t1", ""],
            site_label="GEP Arganda",
            room_site="GEP Sabadell",
        )
        assert booking.kind == BookingKind.SESSION
        assert booking.site == Site.SAB
        assert booking.trainer_ids == frozenset({"t1"})

    def test_variant_window_is_derived(self) -> None:
        booking = resolved_from_variant(
            variant_id="v1",
            day=date(2025, 5, 10),
            resolver=TimeRangeResolver(),
            unit_ids=["u1", "0000"],
            exempt_unit_ids=["0000"],
        )
        assert booking.window == TimeWindow(madrid(2025, 5, 10, 9), madrid(2025, 5, 10, 11))
        assert booking.unit_ids == frozenset({"u1"})

    def test_variant_without_day_is_skipped(self) -> None:
        assert resolved_from_variant(variant_id="v1", day=None, resolver=TimeRangeResolver()) is None


@pytest.mark.unit
class TestFirstConflict:
    def test_trainer_overlap(self) -> None:
        existing = resolved_from_session(
            session_id="s1",
            start_at=utc(2025, 4, 1, 10),
            end_at=utc(2025, 4, 1, 12),
            trainer_ids=["T1"],
        )
        candidate = BookingCandidate.build(
            TimeWindow(utc(2025, 4, 1, 9), utc(2025, 4, 1, 11)), trainer_ids=["T1"]
        )
        conflict = first_conflict(candidate, [existing])
        assert conflict.resource_kind == ResourceKind.TRAINER
        assert conflict.resource_id == "T1"
        assert conflict.booking_id == "s1"

    def test_no_conflict_on_other_resources(self) -> None:
        existing = resolved_from_session(
            session_id="s1",
            start_at=utc(2025, 4, 1, 10),
            end_at=utc(2025, 4, 1, 12),
            room_id="R1",
        )
        candidate = BookingCandidate.build(
            TimeWindow(utc(2025, 4, 1, 9), utc(2025, 4, 1, 11)), room_id="R2", trainer_ids=["T1"]
        )
        assert first_conflict(candidate, [existing]) is None

    def test_exempt_units_never_conflict(self) -> None:
        candidate = BookingCandidate.build(
            TimeWindow(utc(2025, 4, 1, 9), utc(2025, 4, 1, 11)), unit_ids=["0000"]
        ).without_exempt_units(["0000"])
        assert not candidate.has_resources
        assert filter_exempt_units(["0000", "u2", None], ["0000"]) == frozenset({"u2"})
