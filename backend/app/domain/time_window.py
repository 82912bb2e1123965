"""Time-window resolution and overlap rules shared by every booking kind."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
import re
from typing import Optional, Union

from app.core.exceptions import InvalidTimeException
from app.core.timezone_utils import combine_local, ensure_utc

TimeLike = Union[str, time, datetime, None]

DEFAULT_START = time(9, 0)
DEFAULT_END = time(11, 0)
MINIMUM_DURATION = timedelta(hours=1)

_STORED_TIME_RE = re.compile(r"^\s*(\d{1,2}):(\d{2})(?::(\d{2})(?:\.\d+)?)?\s*$")
_INPUT_TIME_RE = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")


@dataclass(frozen=True)
class TimeWindow:
    """Closed interval [start, end] between two aware UTC instants."""

    start: datetime
    end: datetime

    def overlaps(self, other: "TimeWindow") -> bool:
        return overlaps(self, other)

    @property
    def duration(self) -> timedelta:
        return self.end - self.start


def overlaps(a: TimeWindow, b: TimeWindow) -> bool:
    """Touching endpoints count as an overlap."""
    return a.start <= b.end and a.end >= b.start


def clamp(window: TimeWindow, bounds: TimeWindow) -> Optional[TimeWindow]:
    """Clip a window to bounds; None when they do not intersect."""
    start = max(window.start, bounds.start)
    end = min(window.end, bounds.end)
    if end < start:
        return None
    return TimeWindow(start, end)


def normalize_stored_window(
    start: Optional[datetime],
    end: Optional[datetime],
    minimum_duration: timedelta = MINIMUM_DURATION,
) -> Optional[TimeWindow]:
    """
    Window of a booking whose instants are stored explicitly.

    A missing endpoint takes the value of the other one, and an empty window
    gets the minimum duration. A stored end before the start is not coerced:
    the row is treated as unscheduled and holds no resources. Session writes
    reject such windows, so only imported or hand-edited rows reach this.
    """
    effective_start = start if start is not None else end
    effective_end = end if end is not None else start
    if effective_start is None or effective_end is None:
        return None
    effective_start = ensure_utc(effective_start)
    effective_end = ensure_utc(effective_end)
    if effective_end < effective_start:
        return None
    if effective_end == effective_start:
        effective_end = effective_start + minimum_duration
    return TimeWindow(effective_start, effective_end)


def parse_stored_time_of_day(value: TimeLike) -> Optional[time]:
    """
    Lenient parse of a time of day read from storage.

    Anything unparseable is treated as absent.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.time().replace(tzinfo=None)
    if isinstance(value, time):
        return value.replace(tzinfo=None)
    if not isinstance(value, str):
        return None
    match = _STORED_TIME_RE.match(value)
    if not match:
        return None
    hours, minutes = int(match.group(1)), int(match.group(2))
    seconds = int(match.group(3) or 0)
    if hours > 23 or minutes > 59 or seconds > 59:
        return None
    return time(hours, minutes, seconds)


def parse_time_of_day_input(value: TimeLike, field: Optional[str] = None) -> Optional[time]:
    """
    Strict parse of a client-supplied ``HH:MM`` time of day.

    Raises:
        InvalidTimeException: If the value is not a valid ``HH:MM`` string
    """
    if value is None:
        return None
    if isinstance(value, time):
        return value.replace(tzinfo=None)
    if not isinstance(value, str):
        raise InvalidTimeException(value, field)
    match = _INPUT_TIME_RE.match(value.strip())
    if not match:
        raise InvalidTimeException(value, field)
    return time(int(match.group(1)), int(match.group(2)))


class TimeRangeResolver:
    """
    Turns a calendar day plus optional times of day into a concrete window.

    Precedence for the start: explicit, product default, configured default.
    For the end: explicit, product default, the resolved start's source, then
    the configured default end. A resolved end that is not after the start is
    pushed to ``start + minimum_duration``.
    """

    def __init__(
        self,
        default_start: time = DEFAULT_START,
        default_end: time = DEFAULT_END,
        minimum_duration: timedelta = MINIMUM_DURATION,
    ):
        self.default_start = default_start
        self.default_end = default_end
        self.minimum_duration = minimum_duration

    @classmethod
    def from_settings(cls, settings) -> "TimeRangeResolver":
        return cls(
            default_start=parse_stored_time_of_day(settings.default_start_time) or DEFAULT_START,
            default_end=parse_stored_time_of_day(settings.default_end_time) or DEFAULT_END,
            minimum_duration=timedelta(minutes=settings.minimum_booking_minutes),
        )

    def resolve(
        self,
        day: Optional[date],
        start_time: TimeLike = None,
        end_time: TimeLike = None,
        default_start: TimeLike = None,
        default_end: TimeLike = None,
    ) -> Optional[TimeWindow]:
        if day is None:
            return None
        if isinstance(day, datetime):
            day = day.date()

        explicit_start = parse_stored_time_of_day(start_time)
        explicit_end = parse_stored_time_of_day(end_time)
        product_start = parse_stored_time_of_day(default_start)
        product_end = parse_stored_time_of_day(default_end)

        known_start = explicit_start or product_start
        start_tod = known_start or self.default_start
        end_tod = explicit_end or product_end or known_start or self.default_end

        start = combine_local(day, start_tod)
        end = combine_local(day, end_tod)
        if end <= start:
            end = start + self.minimum_duration
        return TimeWindow(start, end)
