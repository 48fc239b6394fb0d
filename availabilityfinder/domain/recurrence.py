"""
Recurrence expansion: decide whether a rule applies to a calendar date.

Pure domain logic, no I/O.
"""

import logging
from datetime import date
from typing import Iterator, List, Sequence

import pendulum

from .models import AvailabilityRule, DirectSchedule, RecurrencePattern, RecurringSchedule

logger = logging.getLogger(__name__)


class RecurrenceExpander:
    """
    Matches rules against calendar dates.

    - One-off rules apply on their anchor date only.
    - Recurring rules apply from the anchor date up to ``until`` (inclusive):
      weekly on the same weekday, biweekly on the same weekday in even
      whole-week offsets, monthly on the same day-of-month numeral. Months
      without that numeral (e.g. the 31st in February) are skipped, not
      shifted to month-end.
    """

    def applies(self, rule: AvailabilityRule, target_date: date) -> bool:
        schedule = rule.schedule

        if isinstance(schedule, DirectSchedule):
            return target_date == schedule.on

        if not isinstance(schedule, RecurringSchedule):
            return False

        anchor = schedule.anchor
        if target_date < anchor:
            return False
        if schedule.until is not None and target_date > schedule.until:
            return False

        if schedule.pattern is RecurrencePattern.WEEKLY:
            return target_date.weekday() == anchor.weekday()

        if schedule.pattern is RecurrencePattern.BIWEEKLY:
            if target_date.weekday() != anchor.weekday():
                return False
            weeks = (target_date.toordinal() - anchor.toordinal()) // 7
            return weeks % 2 == 0

        if schedule.pattern is RecurrencePattern.MONTHLY:
            return target_date.day == anchor.day

        # Unrecognised pattern: fail safe and exclude the rule
        logger.debug("Rule %s has unsupported recurrence %r", rule.id, schedule.pattern)
        return False

    def applicable_rules(
        self,
        rules: Sequence[AvailabilityRule],
        target_date: date,
    ) -> List[AvailabilityRule]:
        """
        Return the rules applying on ``target_date`` in input order.

        Rules with the same time window and recurrence shape are collapsed to
        the first one.
        """
        seen = set()
        applicable: List[AvailabilityRule] = []

        for rule in rules:
            if not self.applies(rule, target_date):
                continue
            key = rule.dedup_key()
            if key in seen:
                continue
            seen.add(key)
            applicable.append(rule)

        return applicable

    def occurrences(
        self,
        rule: AvailabilityRule,
        start: date,
        end: date,
    ) -> Iterator[pendulum.Date]:
        """Yield every date in ``[start, end]`` on which the rule applies."""
        current = pendulum.date(start.year, start.month, start.day)
        while current <= end:
            if self.applies(rule, current):
                yield current
            current = current.add(days=1)
