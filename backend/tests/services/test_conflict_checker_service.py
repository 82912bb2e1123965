"""Conflict detection across sessions and variants."""

from __future__ import annotations

from datetime import date

import pytest

from app.core.enums import BookingKind, ResourceKind, SessionStatus
from app.core.exceptions import ResourceUnavailableException
from app.domain.bookings import BookingCandidate
from app.domain.time_window import TimeWindow
from app.services.conflict_checker import ConflictChecker
from tests.helpers.time_helpers import madrid, utc


@pytest.fixture
def checker(db, capabilities) -> ConflictChecker:
    return ConflictChecker(db, capabilities)


def _candidate(start, end, **resources) -> BookingCandidate:
    return BookingCandidate.build(TimeWindow(start, end), **resources)


def test_trainer_booked_on_overlapping_session_conflicts(build, checker) -> None:
    trainer = build.trainer("T1")
    deal = build.deal()
    existing = build.session(
        deal, utc(2025, 4, 1, 10), utc(2025, 4, 1, 12), trainers=[trainer]
    )

    conflict = checker.check_availability(
        _candidate(utc(2025, 4, 1, 9), utc(2025, 4, 1, 11), trainer_ids=[trainer.id])
    )

    assert conflict is not None
    assert conflict.resource_kind == ResourceKind.TRAINER
    assert conflict.resource_id == trainer.id
    assert conflict.booking_kind == BookingKind.SESSION
    assert conflict.booking_id == existing.id


def test_touching_windows_conflict(build, checker) -> None:
    room = build.room()
    build.session(build.deal(), utc(2025, 4, 1, 10), utc(2025, 4, 1, 12), room=room)

    conflict = checker.check_availability(
        _candidate(utc(2025, 4, 1, 12), utc(2025, 4, 1, 13), room_id=room.id)
    )

    assert conflict is not None
    assert conflict.resource_kind == ResourceKind.ROOM


def test_disjoint_windows_do_not_conflict(build, checker) -> None:
    room = build.room()
    build.session(build.deal(), utc(2025, 4, 1, 10), utc(2025, 4, 1, 12), room=room)

    assert (
        checker.check_availability(
            _candidate(utc(2025, 4, 1, 13), utc(2025, 4, 1, 14), room_id=room.id)
        )
        is None
    )


def test_start_only_session_holds_minimum_duration(build, checker) -> None:
    unit = build.unit()
    build.session(build.deal(), utc(2025, 4, 1, 10), None, units=[unit])

    inside = _candidate(utc(2025, 4, 1, 10, 30), utc(2025, 4, 1, 10, 45), unit_ids=[unit.id])
    after = _candidate(utc(2025, 4, 1, 11, 30), utc(2025, 4, 1, 12), unit_ids=[unit.id])

    assert checker.check_availability(inside) is not None
    assert checker.check_availability(after) is None


def test_exempt_unit_never_conflicts(build, checker) -> None:
    placeholder = build.unit("Placeholder", id="0000")
    deal = build.deal()
    build.session(deal, utc(2025, 4, 1, 9), utc(2025, 4, 1, 12), units=[placeholder])
    build.session(deal, utc(2025, 4, 1, 10), utc(2025, 4, 1, 11), units=[placeholder])

    conflict = checker.check_availability(
        _candidate(utc(2025, 4, 1, 9), utc(2025, 4, 1, 12), unit_ids=["0000"])
    )

    assert conflict is None


def test_excluded_session_is_ignored(build, checker) -> None:
    trainer = build.trainer()
    session = build.session(
        build.deal(), utc(2025, 4, 1, 10), utc(2025, 4, 1, 12), trainers=[trainer]
    )
    candidate = _candidate(utc(2025, 4, 1, 10), utc(2025, 4, 1, 13), trainer_ids=[trainer.id])

    assert checker.check_availability(candidate) is not None
    assert checker.check_availability(candidate, exclude_session_id=session.id) is None


def test_cancelled_session_releases_resources(build, checker) -> None:
    room = build.room()
    build.session(
        build.deal(),
        utc(2025, 4, 1, 10),
        utc(2025, 4, 1, 12),
        room=room,
        status=SessionStatus.CANCELLED,
    )

    assert (
        checker.check_availability(
            _candidate(utc(2025, 4, 1, 10), utc(2025, 4, 1, 12), room_id=room.id)
        )
        is None
    )


def test_finished_session_still_holds_resources(build, checker) -> None:
    room = build.room()
    build.session(
        build.deal(),
        utc(2025, 4, 1, 10),
        utc(2025, 4, 1, 12),
        room=room,
        status=SessionStatus.FINISHED,
    )

    assert (
        checker.check_availability(
            _candidate(utc(2025, 4, 1, 10), utc(2025, 4, 1, 12), room_id=room.id)
        )
        is not None
    )


def test_variant_window_conflicts_with_candidate(build, checker) -> None:
    room = build.room()
    variant = build.variant(build.product(), date(2025, 5, 10), room=room)

    conflict = checker.check_availability(
        _candidate(madrid(2025, 5, 10, 10), madrid(2025, 5, 10, 12), room_id=room.id)
    )

    assert conflict is not None
    assert conflict.booking_kind == BookingKind.VARIANT
    assert conflict.booking_id == variant.id
    assert conflict.window == TimeWindow(madrid(2025, 5, 10, 9), madrid(2025, 5, 10, 11))


def test_variant_uses_product_times(build, checker) -> None:
    trainer = build.trainer()
    product = build.product(default_start_time="15:00", default_end_time="18:00")
    build.variant(product, date(2025, 5, 10), trainers=[trainer])

    morning = _candidate(madrid(2025, 5, 10, 9), madrid(2025, 5, 10, 11), trainer_ids=[trainer.id])
    afternoon = _candidate(
        madrid(2025, 5, 10, 16), madrid(2025, 5, 10, 17), trainer_ids=[trainer.id]
    )

    assert checker.check_availability(morning) is None
    assert checker.check_availability(afternoon) is not None


def test_excluded_variant_is_ignored(build, checker) -> None:
    unit = build.unit()
    variant = build.variant(build.product(), date(2025, 5, 10), units=[unit])
    candidate = _candidate(madrid(2025, 5, 10, 9), madrid(2025, 5, 10, 11), unit_ids=[unit.id])

    assert checker.check_availability(candidate, exclude_variant_id=variant.id) is None


def test_candidate_without_resources_is_free(build, checker) -> None:
    build.session(build.deal(), utc(2025, 4, 1, 10), utc(2025, 4, 1, 12), room=build.room())

    assert checker.check_availability(_candidate(utc(2025, 4, 1, 10), utc(2025, 4, 1, 12))) is None


def test_ensure_resources_available_raises_with_details(build, checker) -> None:
    trainer = build.trainer()
    existing = build.session(
        build.deal(), utc(2025, 4, 1, 10), utc(2025, 4, 1, 12), trainers=[trainer]
    )

    with pytest.raises(ResourceUnavailableException) as exc_info:
        checker.ensure_resources_available(
            _candidate(utc(2025, 4, 1, 11), utc(2025, 4, 1, 12), trainer_ids=[trainer.id])
        )

    error = exc_info.value
    assert error.status_code == 409
    assert error.code == "RESOURCE_UNAVAILABLE"
    assert error.details["resource_kind"] == "trainer"
    assert error.details["booking_id"] == existing.id
    # Reported in Madrid time (summer offset)
    assert error.details["start"] == "2025-04-01T12:00:00+02:00"


def test_locked_resources_during_window(build, checker) -> None:
    busy_trainer = build.trainer("Busy")
    free_trainer = build.trainer("Free")
    off_trainer = build.trainer("Off")
    build.trainer("Retired", active=False)
    room = build.room()
    unit = build.unit()
    build.session(
        build.deal(),
        utc(2025, 4, 1, 10),
        utc(2025, 4, 1, 12),
        room=room,
        trainers=[busy_trainer],
        units=[unit],
    )
    build.day_off(off_trainer, date(2025, 4, 1))

    locks = checker.get_locked_resources(TimeWindow(utc(2025, 4, 1, 11), utc(2025, 4, 1, 13)))

    assert locks.room_ids == {room.id}
    assert locks.trainer_ids == {busy_trainer.id}
    assert locks.unit_ids == {unit.id}
    assert locks.available_trainer_ids == {busy_trainer.id, free_trainer.id}


def test_locked_resources_include_variants(build, checker) -> None:
    trainer = build.trainer()
    variant = build.variant(build.product(), date(2025, 5, 10), trainers=[trainer])

    locks = checker.get_locked_resources(
        TimeWindow(madrid(2025, 5, 10, 10), madrid(2025, 5, 10, 10))
    )
    assert locks.trainer_ids == {trainer.id}

    excluded = checker.get_locked_resources(
        TimeWindow(madrid(2025, 5, 10, 10), madrid(2025, 5, 10, 10)),
        exclude_variant_id=variant.id,
    )
    assert excluded.trainer_ids == set()


def test_inverted_stored_window_holds_nothing(build, checker) -> None:
    room = build.room()
    build.session(build.deal(), utc(2025, 4, 1, 12), utc(2025, 4, 1, 9), room=room)

    conflict = checker.check_availability(
        _candidate(utc(2025, 4, 1, 9), utc(2025, 4, 1, 12), room_id=room.id)
    )

    assert conflict is None


def test_measured_operations_are_recorded(build, checker) -> None:
    room = build.room()
    before = checker.get_metrics().get("check_availability", {}).get("count", 0)

    checker.check_availability(_candidate(utc(2025, 4, 1, 9), utc(2025, 4, 1, 10), room_id=room.id))

    metrics = checker.get_metrics()["check_availability"]
    assert metrics["count"] == before + 1
    assert metrics["failure_count"] <= metrics["count"]
