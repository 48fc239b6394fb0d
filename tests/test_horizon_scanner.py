"""
Tests for the next-available-date scan.
"""

import pytest

from availabilityfinder.domain.availability_engine import AvailabilityEngine
from availabilityfinder.domain.horizon_scanner import HorizonScanner
from availabilityfinder.domain.recurrence import RecurrenceExpander

from factories import TZ, booking, day, one_off, recurring

MONDAYS = recurring("mon", "2024-01-01", "09:00", "12:00")


def _scanner(strategy=HorizonScanner.HEURISTIC):
    return AvailabilityEngine(timezone=TZ, horizon_strategy=strategy).horizon_scanner


class TestCandidates:
    """Tests for candidate date enumeration."""

    def test_candidates_start_the_day_after(self):
        """Test the candidate window bounds."""
        dates = list(HorizonScanner.candidates(day("2024-01-01"), 3))

        assert [d.to_date_string() for d in dates] == ["2024-01-02", "2024-01-03", "2024-01-04"]

    @pytest.mark.parametrize("days", [0, -5])
    def test_non_positive_horizon_yields_nothing(self, days):
        """Test that an empty horizon evaluates no dates."""
        assert list(HorizonScanner.candidates(day("2024-01-01"), days)) == []

    def test_never_evaluates_more_than_horizon(self):
        """Test the bound on evaluated candidates."""
        scanner = _scanner()
        evaluated = []

        def spy(rules, bookings, candidate):
            evaluated.append(candidate)
            return False

        scanner.day_has_capacity = spy

        assert scanner.find_next([MONDAYS], [], day("2024-01-01"), 10) is None
        assert len(evaluated) == 10


class TestHeuristicStrategy:
    """Tests for the rule-count versus booking-count heuristic."""

    def test_finds_next_matching_weekday(self):
        """Test that the next Monday is found within a week."""
        found = _scanner().find_next([MONDAYS], [], day("2024-01-01"), 7)

        assert found == day("2024-01-08")

    def test_returns_none_when_horizon_exhausted(self):
        """Test a horizon that stops short of the next occurrence."""
        assert _scanner().find_next([MONDAYS], [], day("2024-01-01"), 6) is None

    def test_booked_day_is_skipped(self):
        """Test that as many bookings as rules disqualify a date."""
        bookings = [booking("2024-01-08 09:00", "2024-01-08 10:00")]

        found = _scanner().find_next([MONDAYS], bookings, day("2024-01-01"), 14)

        assert found == day("2024-01-15")

    def test_cancelled_and_other_category_bookings_do_not_count(self):
        """Test booking filtering before counting."""
        bookings = [
            booking("2024-01-08 09:00", "2024-01-08 10:00", status="cancelled"),
            booking("2024-01-08 10:00", "2024-01-08 11:00", category_id="writing"),
        ]

        found = _scanner().find_next([MONDAYS], bookings, day("2024-01-01"), 7, category_id="design")

        assert found == day("2024-01-08")

    def test_heuristic_can_report_false_positive(self):
        """Test the documented approximation: rules are counted, not slots."""
        rules = [
            one_off("a", "2024-01-02", "09:00", "09:30"),
            one_off("b", "2024-01-02", "10:00", "10:30"),
        ]
        bookings = [booking("2024-01-02 12:00", "2024-01-02 13:00")]

        assert _scanner().find_next(rules, bookings, day("2024-01-01"), 3) == day("2024-01-02")
        assert _scanner(HorizonScanner.EXACT).find_next(rules, bookings, day("2024-01-01"), 3) is None


class TestExactStrategy:
    """Tests for full slot resolution per candidate."""

    def test_fully_booked_day_is_skipped(self):
        """Test that a day without free slots is not a hit."""
        bookings = [booking("2024-01-08 09:00", "2024-01-08 12:00")]

        found = _scanner(HorizonScanner.EXACT).find_next([MONDAYS], bookings, day("2024-01-01"), 14)

        assert found == day("2024-01-15")

    def test_partially_booked_day_is_a_hit(self):
        """Test that one free slot is enough."""
        bookings = [
            booking("2024-01-08 09:00", "2024-01-08 10:00"),
            booking("2024-01-08 10:00", "2024-01-08 11:00"),
        ]

        found = _scanner(HorizonScanner.EXACT).find_next([MONDAYS], bookings, day("2024-01-01"), 7)

        assert found == day("2024-01-08")


class TestConfiguration:
    """Tests for scanner construction."""

    def test_unknown_strategy_raises(self):
        """Test strategy validation."""
        with pytest.raises(ValueError, match="Unknown horizon strategy"):
            HorizonScanner(RecurrenceExpander(), strategy="guess")

    def test_exact_requires_resolver(self):
        """Test that the exact strategy cannot run without slot resolution."""
        with pytest.raises(ValueError, match="requires a day resolver"):
            HorizonScanner(RecurrenceExpander(), strategy=HorizonScanner.EXACT)
