"""
Domain models for availability rules, bookings and the blocks derived from them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Dict, List, Optional, Union

import pendulum
from pendulum import DateTime

SLOT_SECONDS = 60 * 60


@dataclass(frozen=True, order=True)
class TimeOfDay:
    """
    Wall-clock time of day, decoupled from any date or timezone.
    """
    hour: int
    minute: int = 0

    def __post_init__(self):
        if not 0 <= self.hour <= 23 or not 0 <= self.minute <= 59:
            raise ValueError(f"Invalid time of day: {self.hour}:{self.minute}")

    @classmethod
    def parse(cls, value: str) -> "TimeOfDay":
        """Parse ``HH:mm`` (seconds, if present, are ignored)."""
        parts = value.strip().split(":")
        if len(parts) < 2:
            raise ValueError(f"Invalid time of day: {value!r}")
        return cls(hour=int(parts[0]), minute=int(parts[1]))

    @classmethod
    def from_datetime(cls, dt: DateTime) -> "TimeOfDay":
        return cls(hour=dt.hour, minute=dt.minute)

    @property
    def minutes(self) -> int:
        """Minutes since midnight."""
        return self.hour * 60 + self.minute

    def on(self, day: date, tz: str, fold: int = 1) -> DateTime:
        """Anchor this time of day to a calendar date in the given timezone."""
        return pendulum.datetime(day.year, day.month, day.day, self.hour, self.minute, tz=tz, fold=fold)

    def earliest_on(self, day: date, tz: str) -> DateTime:
        """
        Like :meth:`on`, but a wall-clock time repeated by an autumn DST
        change resolves to its first occurrence.
        """
        later = self.on(day, tz)
        earlier = self.on(day, tz, fold=0)
        if TimeOfDay.from_datetime(earlier) == self and earlier.timestamp() < later.timestamp():
            return earlier
        return later

    def format(self) -> str:
        return f"{self.hour:02d}:{self.minute:02d}"

    def __str__(self) -> str:
        return self.format()


class CertaintyLevel(str, Enum):
    """How confident a freelancer is about a declared availability."""
    GUARANTEED = "guaranteed"
    TENTATIVE = "tentative"
    UNAVAILABLE = "unavailable"

    @property
    def rank(self) -> int:
        return _CERTAINTY_RANK[self]


_CERTAINTY_RANK = {
    CertaintyLevel.UNAVAILABLE: 0,
    CertaintyLevel.TENTATIVE: 1,
    CertaintyLevel.GUARANTEED: 2,
}


class RecurrencePattern(str, Enum):
    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"
    MONTHLY = "monthly"


@dataclass(frozen=True)
class DirectSchedule:
    """A one-off rule that applies on a single calendar date."""
    on: date


@dataclass(frozen=True)
class RecurringSchedule:
    """A rule repeating from its anchor date, optionally up to ``until`` (inclusive)."""
    pattern: RecurrencePattern
    anchor: date
    until: Optional[date] = None


RuleSchedule = Union[DirectSchedule, RecurringSchedule]


@dataclass(frozen=True)
class AvailabilityRule:
    """
    A freelancer-declared availability statement.

    ``start_time``/``end_time`` are the time-of-day window in the deployment
    timezone; the calendar side lives in ``schedule``.
    """
    id: str
    freelancer_id: str
    start_time: TimeOfDay
    end_time: TimeOfDay
    schedule: RuleSchedule
    certainty_level: CertaintyLevel = CertaintyLevel.GUARANTEED
    updated_at: Optional[DateTime] = None

    @property
    def is_recurring(self) -> bool:
        return isinstance(self.schedule, RecurringSchedule)

    @property
    def recurrence_pattern(self) -> Optional[str]:
        if isinstance(self.schedule, RecurringSchedule):
            return self.schedule.pattern.value
        return None

    @property
    def anchor_date(self) -> date:
        if isinstance(self.schedule, RecurringSchedule):
            return self.schedule.anchor
        return self.schedule.on

    def dedup_key(self) -> tuple:
        """Rules sharing this key produce identical slots on any shared date."""
        return (self.start_time, self.end_time, self.is_recurring, self.recurrence_pattern or "")


@dataclass(frozen=True)
class TimeRange:
    """
    Represents an immutable half-open time range ``[start, end)``.

    Invariant: start must be before end. Bounds are compared as UTC instants,
    so the repeated wall-clock hour of a DST change stays distinct.
    """
    start: DateTime
    end: DateTime

    def __post_init__(self):
        if self.start.timestamp() >= self.end.timestamp():
            raise ValueError(f"Start time {self.start} must be before end time {self.end}")

    def overlaps(self, other: "TimeRange") -> bool:
        """Check if this range overlaps with another. Touching ranges do not overlap."""
        return (
            self.start.timestamp() < other.end.timestamp()
            and other.start.timestamp() < self.end.timestamp()
        )


@dataclass(frozen=True)
class Booking:
    """An existing booking, read-only input to conflict checks."""
    freelancer_id: str
    start_time: DateTime
    end_time: DateTime
    status: str = "confirmed"
    category_id: Optional[str] = None
    id: Optional[str] = None

    @property
    def is_cancelled(self) -> bool:
        return self.status.lower() == "cancelled"

    @property
    def time_range(self) -> TimeRange:
        return TimeRange(start=self.start_time, end=self.end_time)


@dataclass(frozen=True)
class TimeSlot:
    """
    A fixed one-hour candidate booking window.

    Invariant: ``end - start`` is exactly one hour.
    """
    start: DateTime
    end: DateTime

    def __post_init__(self):
        if self.end.timestamp() - self.start.timestamp() != SLOT_SECONDS:
            raise ValueError(f"Slot {self.start} - {self.end} is not exactly one hour long")

    @classmethod
    def starting_at(cls, start: DateTime) -> "TimeSlot":
        return cls(start=start, end=start.add(hours=1))

    @property
    def time_range(self) -> TimeRange:
        return TimeRange(start=self.start, end=self.end)

    @property
    def start_time(self) -> TimeOfDay:
        return TimeOfDay.from_datetime(self.start)

    @property
    def end_time(self) -> TimeOfDay:
        return TimeOfDay.from_datetime(self.end)


@dataclass
class AvailabilityBlock:
    """
    A maximal run of contiguous, conflict-free slots on one date.
    """
    id: str
    start: TimeOfDay
    end: TimeOfDay
    available_start_times: List[TimeOfDay] = field(default_factory=list)
    certainty_level: CertaintyLevel = CertaintyLevel.GUARANTEED
    is_recurring: bool = False
    recurrence_pattern: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the response wire shape."""
        return {
            "id": self.id,
            "start": self.start.format(),
            "end": self.end.format(),
            "availableStartTimes": [t.format() for t in self.available_start_times],
            "certainty_level": self.certainty_level.value,
            "is_recurring": self.is_recurring,
            "recurrence_pattern": self.recurrence_pattern,
        }
