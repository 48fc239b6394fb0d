"""
Conversion of raw store records into domain objects.

Stores hand back loosely-typed rows (JSON objects, PostgREST results).
Malformed rows are logged and skipped so one bad record never aborts a
computation.
"""

import logging
from typing import Any, Iterable, List, Mapping, Optional

import pendulum
from pendulum import DateTime

from ..domain.models import (
    AvailabilityRule,
    Booking,
    CertaintyLevel,
    DirectSchedule,
    RecurrencePattern,
    RecurringSchedule,
    TimeOfDay,
)

logger = logging.getLogger(__name__)

_TRUE_STRINGS = {"true", "t", "yes", "1"}
_FALSE_STRINGS = {"false", "f", "no", "0", ""}


def parse_datetime(value: Any, timezone: str) -> DateTime:
    """
    Parse an ISO 8601 timestamp and convert it to ``timezone``.

    Timestamps without an offset are read as local time in ``timezone``.
    """
    if isinstance(value, DateTime):
        return value.in_timezone(timezone)
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"Expected an ISO 8601 timestamp, got {value!r}")

    parsed = pendulum.parse(value, tz=timezone)
    if not isinstance(parsed, DateTime):
        raise ValueError(f"Could not parse datetime: {value}")
    return parsed.in_timezone(timezone)


def parse_flag(value: Any) -> bool:
    """
    Read a boolean column. JSON booleans pass through; hand-edited files may
    also spell them as strings or 0/1.
    """
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str) and value.strip().lower() in _TRUE_STRINGS | _FALSE_STRINGS:
        return value.strip().lower() in _TRUE_STRINGS
    raise ValueError(f"Expected a boolean, got {value!r}")


def parse_rule(record: Mapping[str, Any], timezone: str) -> Optional[AvailabilityRule]:
    """Build an :class:`AvailabilityRule`, or return ``None`` for a malformed record."""
    if not isinstance(record, Mapping):
        logger.warning("Skipping non-object availability rule record: %r", record)
        return None

    try:
        start = parse_datetime(record.get("start_time", record.get("start")), timezone)
        end = parse_datetime(record.get("end_time", record.get("end")), timezone)
        certainty = CertaintyLevel(record.get("certainty_level") or CertaintyLevel.GUARANTEED.value)

        if parse_flag(record.get("is_recurring")):
            pattern = RecurrencePattern(str(record.get("recurrence_pattern")).lower())
            until_raw = record.get("recurrence_end_date")
            until = parse_datetime(until_raw, timezone).date() if until_raw else None
            schedule = RecurringSchedule(pattern=pattern, anchor=start.date(), until=until)
        else:
            schedule = DirectSchedule(on=start.date())

        updated_raw = record.get("updated_at")

        return AvailabilityRule(
            id=str(record["id"]),
            freelancer_id=str(record["freelancer_id"]),
            start_time=TimeOfDay.from_datetime(start),
            end_time=TimeOfDay.from_datetime(end),
            schedule=schedule,
            certainty_level=certainty,
            updated_at=parse_datetime(updated_raw, timezone) if updated_raw else None,
        )
    except (KeyError, TypeError, ValueError) as exc:
        logger.warning("Skipping malformed availability rule %r: %s", record.get("id"), exc)
        return None


def parse_booking(record: Mapping[str, Any], timezone: str) -> Optional[Booking]:
    """Build a :class:`Booking`, or return ``None`` for a malformed record."""
    if not isinstance(record, Mapping):
        logger.warning("Skipping non-object booking record: %r", record)
        return None

    try:
        start = parse_datetime(record["start_time"], timezone)
        end = parse_datetime(record["end_time"], timezone)
        if end <= start:
            raise ValueError(f"booking ends at {end} before it starts at {start}")

        category_id = record.get("category_id")

        return Booking(
            id=str(record["id"]) if record.get("id") is not None else None,
            freelancer_id=str(record["freelancer_id"]),
            category_id=str(category_id) if category_id is not None else None,
            start_time=start,
            end_time=end,
            status=str(record.get("status") or "confirmed"),
        )
    except (KeyError, TypeError, ValueError) as exc:
        logger.warning("Skipping malformed booking %r: %s", record.get("id"), exc)
        return None


def parse_rules(records: Iterable[Mapping[str, Any]], timezone: str) -> List[AvailabilityRule]:
    rules = (parse_rule(record, timezone) for record in records)
    return [rule for rule in rules if rule is not None]


def parse_bookings(records: Iterable[Mapping[str, Any]], timezone: str) -> List[Booking]:
    bookings = (parse_booking(record, timezone) for record in records)
    return [booking for booking in bookings if booking is not None]
