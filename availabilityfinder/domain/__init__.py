"""
Domain layer - Pure availability logic without external dependencies.
"""

from .availability_engine import AvailabilityEngine, MonthOverview
from .block_merger import BlockMerger
from .conflict_resolver import ConflictResolver
from .horizon_scanner import HorizonScanner
from .models import (
    AvailabilityBlock,
    AvailabilityRule,
    Booking,
    CertaintyLevel,
    DirectSchedule,
    RecurrencePattern,
    RecurringSchedule,
    TimeOfDay,
    TimeRange,
    TimeSlot,
)
from .recurrence import RecurrenceExpander
from .slot_generator import SlotGenerator

__all__ = [
    "AvailabilityEngine",
    "MonthOverview",
    "BlockMerger",
    "ConflictResolver",
    "HorizonScanner",
    "AvailabilityBlock",
    "AvailabilityRule",
    "Booking",
    "CertaintyLevel",
    "DirectSchedule",
    "RecurrencePattern",
    "RecurringSchedule",
    "TimeOfDay",
    "TimeRange",
    "TimeSlot",
    "RecurrenceExpander",
    "SlotGenerator",
]
