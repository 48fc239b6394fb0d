"""
Expansion of a rule's time-of-day window into one-hour candidate slots.
"""

from datetime import date
from typing import Dict, List, Optional, Sequence, Tuple

from .models import AvailabilityRule, TimeSlot


class SlotGenerator:
    """
    Generates fixed-length slots for a rule on a concrete date.

    Slots are anchored to the rule's own start time (09:30 -> 09:30, 10:30, ...),
    not to wall-clock hour boundaries. A trailing remainder shorter than one
    hour is dropped.
    """

    def __init__(self, timezone: str = "Europe/Amsterdam"):
        self.timezone = timezone

    def generate(self, rule: AvailabilityRule, target_date: date) -> List[TimeSlot]:
        window_start = rule.start_time.earliest_on(target_date, self.timezone)
        window_end = rule.end_time.on(target_date, self.timezone)

        slots: List[TimeSlot] = []

        # An inverted or empty window yields nothing
        if window_end.timestamp() <= window_start.timestamp():
            return slots

        current = window_start
        while True:
            slot_end = current.add(hours=1)
            if slot_end.timestamp() > window_end.timestamp():
                break
            slots.append(TimeSlot(start=current, end=slot_end))
            current = slot_end

        return slots

    def generate_for_rules(
        self,
        rules: Sequence[AvailabilityRule],
        target_date: date,
    ) -> Tuple[List[TimeSlot], Optional[AvailabilityRule]]:
        """
        Union the slots of several rules applying on the same date.

        Slots with identical start instants are deduplicated. Instants are
        compared in UTC so both wall-clock 02:00 hours of an autumn DST change
        survive. Returns the slots ordered by start, together with the first
        rule that contributed a slot (``None`` when no rule produced any).
        """
        by_start: Dict[float, TimeSlot] = {}
        source_rule: Optional[AvailabilityRule] = None

        for rule in rules:
            rule_slots = self.generate(rule, target_date)
            if rule_slots and source_rule is None:
                source_rule = rule
            for slot in rule_slots:
                by_start.setdefault(slot.start.timestamp(), slot)

        ordered = [by_start[instant] for instant in sorted(by_start)]
        return ordered, source_rule
