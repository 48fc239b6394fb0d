"""
Forward scan for the next date with open capacity.
"""

import logging
from datetime import date
from typing import Callable, Iterator, List, Optional, Sequence

import pendulum

from .conflict_resolver import ConflictResolver
from .models import AvailabilityBlock, AvailabilityRule, Booking
from .recurrence import RecurrenceExpander

logger = logging.getLogger(__name__)

DayResolver = Callable[[Sequence[AvailabilityRule], Sequence[Booking], date], List[AvailabilityBlock]]


class HorizonScanner:
    """
    Finds the first date after a start date that still has capacity.

    The default ``heuristic`` strategy counts the rules applying on a
    candidate date against that date's live bookings and reports a hit when
    there are more rules than bookings. It does not resolve actual free
    slots and can therefore report false positives. The ``exact`` strategy
    runs full slot resolution per candidate and needs a ``day_resolver``.
    """

    HEURISTIC = "heuristic"
    EXACT = "exact"

    def __init__(
        self,
        expander: RecurrenceExpander,
        timezone: str = "Europe/Amsterdam",
        strategy: str = HEURISTIC,
        day_resolver: Optional[DayResolver] = None,
    ):
        if strategy not in (self.HEURISTIC, self.EXACT):
            raise ValueError(f"Unknown horizon strategy: {strategy!r}")
        if strategy == self.EXACT and day_resolver is None:
            raise ValueError("The exact horizon strategy requires a day resolver")

        self.expander = expander
        self.timezone = timezone
        self.strategy = strategy
        self.day_resolver = day_resolver

    @staticmethod
    def candidates(after_date: date, max_lookahead_days: int) -> Iterator[pendulum.Date]:
        """Yield ``after_date + 1`` up to ``after_date + max_lookahead_days``."""
        base = pendulum.date(after_date.year, after_date.month, after_date.day)
        for offset in range(1, max_lookahead_days + 1):
            yield base.add(days=offset)

    def find_next(
        self,
        rules: Sequence[AvailabilityRule],
        bookings: Sequence[Booking],
        after_date: date,
        max_lookahead_days: int,
        category_id: Optional[str] = None,
    ) -> Optional[pendulum.Date]:
        live = ConflictResolver.relevant_bookings(bookings, category_id)

        for candidate in self.candidates(after_date, max_lookahead_days):
            if self.day_has_capacity(rules, live, candidate):
                logger.debug("Next available date after %s: %s", after_date, candidate)
                return candidate

        logger.debug("No capacity within %d days after %s", max_lookahead_days, after_date)
        return None

    def day_has_capacity(
        self,
        rules: Sequence[AvailabilityRule],
        bookings: Sequence[Booking],
        candidate: date,
    ) -> bool:
        """Evaluate one candidate date; ``bookings`` must already be filtered."""
        if self.strategy == self.EXACT:
            return bool(self.day_resolver(rules, bookings, candidate))

        schedule_count = sum(1 for rule in rules if self.expander.applies(rule, candidate))
        if schedule_count == 0:
            return False

        booking_count = sum(
            1 for booking in bookings
            if booking.start_time.in_timezone(self.timezone).date() == candidate
        )
        return schedule_count > booking_count
