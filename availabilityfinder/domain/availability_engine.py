"""
Availability resolution engine.

This is the heart of the application - a pure transformation from
(rules, bookings, date) to bookable blocks, without any I/O.

Pipeline for one date:
1. Filter rules applying on the date (RecurrenceExpander)
2. Expand them into one-hour slots (SlotGenerator)
3. Drop slots overlapped by live bookings (ConflictResolver)
4. Merge contiguous survivors into blocks (BlockMerger)
"""

from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Optional, Sequence

import pendulum

from .block_merger import BlockMerger
from .conflict_resolver import ConflictResolver
from .horizon_scanner import HorizonScanner
from .models import AvailabilityBlock, AvailabilityRule, Booking, CertaintyLevel
from .recurrence import RecurrenceExpander
from .slot_generator import SlotGenerator


@dataclass
class MonthOverview:
    """Per-date summary of a month, as shown on the availability calendar."""
    available_dates: List[pendulum.Date] = field(default_factory=list)
    certainty: Dict[pendulum.Date, CertaintyLevel] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "availableDates": [d.to_date_string() for d in self.available_dates],
            "certainty": {d.to_date_string(): level.value for d, level in self.certainty.items()},
        }


class AvailabilityEngine:
    """
    Facade wiring the pipeline stages together for one timezone.
    """

    def __init__(self, timezone: str = "Europe/Amsterdam", horizon_strategy: str = HorizonScanner.HEURISTIC):
        self.timezone = timezone
        self.expander = RecurrenceExpander()
        self.slot_generator = SlotGenerator(timezone=timezone)
        self.conflict_resolver = ConflictResolver()
        self.block_merger = BlockMerger()
        self.horizon_scanner = HorizonScanner(
            expander=self.expander,
            timezone=timezone,
            strategy=horizon_strategy,
            day_resolver=self._resolve_live,
        )

    def resolve(
        self,
        rules: Sequence[AvailabilityRule],
        bookings: Sequence[Booking],
        target_date: date,
        category_id: Optional[str] = None,
    ) -> List[AvailabilityBlock]:
        """
        Compute the bookable blocks for ``target_date``.

        Cancelled bookings never conflict; ``category_id`` restricts which
        bookings are considered, rules are global.
        """
        live = ConflictResolver.relevant_bookings(bookings, category_id)
        return self._resolve_live(rules, live, target_date)

    def find_next_available(
        self,
        rules: Sequence[AvailabilityRule],
        bookings: Sequence[Booking],
        after_date: date,
        max_lookahead_days: int,
        category_id: Optional[str] = None,
    ) -> Optional[pendulum.Date]:
        return self.horizon_scanner.find_next(
            rules,
            bookings,
            after_date=after_date,
            max_lookahead_days=max_lookahead_days,
            category_id=category_id,
        )

    def expand_month(
        self,
        rules: Sequence[AvailabilityRule],
        month: date,
    ) -> Dict[pendulum.Date, List[AvailabilityRule]]:
        """Map every date of ``month`` to the rules applying on it (dates without rules omitted)."""
        first = pendulum.date(month.year, month.month, 1)
        expansion: Dict[pendulum.Date, List[AvailabilityRule]] = {}

        for offset in range(first.days_in_month):
            day = first.add(days=offset)
            day_rules = [rule for rule in rules if self.expander.applies(rule, day)]
            if day_rules:
                expansion[day] = day_rules

        return expansion

    def month_overview(
        self,
        rules: Sequence[AvailabilityRule],
        bookings: Sequence[Booking],
        month: date,
        category_id: Optional[str] = None,
        today: Optional[date] = None,
        expansion: Optional[Dict[pendulum.Date, List[AvailabilityRule]]] = None,
    ) -> MonthOverview:
        """
        Summarize a month: strongest certainty per date and dates with capacity.

        ``expansion`` may be a previously computed :meth:`expand_month` result
        for the same rules. Dates before ``today`` are never reported as
        available.
        """
        if expansion is None:
            expansion = self.expand_month(rules, month)

        overview = MonthOverview()
        live = ConflictResolver.relevant_bookings(bookings, category_id)

        for day in sorted(expansion):
            day_rules = expansion[day]

            strongest = max(day_rules, key=lambda rule: rule.certainty_level.rank)
            overview.certainty[day] = strongest.certainty_level

            if today is not None and day < today:
                continue
            if self.horizon_scanner.day_has_capacity(day_rules, live, day):
                overview.available_dates.append(day)

        return overview

    def _resolve_live(
        self,
        rules: Sequence[AvailabilityRule],
        bookings: Sequence[Booking],
        target_date: date,
    ) -> List[AvailabilityBlock]:
        applicable = self.expander.applicable_rules(rules, target_date)
        slots, source_rule = self.slot_generator.generate_for_rules(applicable, target_date)
        free_slots = self.conflict_resolver.remove_conflicts(slots, bookings)
        return self.block_merger.merge(free_slots, source_rule)
