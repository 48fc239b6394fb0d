"""
File-backed rule and booking store.

Useful for local runs and demos without a database. The file holds a JSON
object with ``rules`` and ``bookings`` arrays using the same column names as
the database tables.
"""

import json
from pathlib import Path
from typing import Any, Dict, List, Optional

from pendulum import DateTime

from ..domain.exceptions import UpstreamDataError
from ..domain.models import AvailabilityRule, Booking
from .records import parse_bookings, parse_rules


class JsonFileStore:
    """
    Serves availability rules and bookings from a JSON file.

    The file is re-read on every call so edits are picked up immediately.
    """

    def __init__(self, data_file: Path, timezone: str = "Europe/Amsterdam"):
        self.data_file = Path(data_file)
        self.timezone = timezone

    def _load(self) -> Dict[str, Any]:
        try:
            with open(self.data_file, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as exc:
            raise UpstreamDataError(f"Could not read availability data from {self.data_file}: {exc}") from exc

        if not isinstance(data, dict):
            raise UpstreamDataError(f"{self.data_file} must contain a JSON object at the root level.")

        return data

    def get_rules(self, freelancer_id: str) -> List[AvailabilityRule]:
        """All availability rules of a freelancer, regardless of category."""
        records = [
            record for record in self._load().get("rules", [])
            if isinstance(record, dict) and str(record.get("freelancer_id")) == freelancer_id
        ]
        return parse_rules(records, self.timezone)

    def get_bookings(
        self,
        freelancer_id: str,
        start: DateTime,
        end: DateTime,
        category_id: Optional[str] = None,
    ) -> List[Booking]:
        """
        Non-cancelled bookings of a freelancer starting within ``[start, end]``.
        """
        records = [
            record for record in self._load().get("bookings", [])
            if isinstance(record, dict)
            and str(record.get("freelancer_id")) == freelancer_id
            and (category_id is None or str(record.get("category_id")) == category_id)
        ]

        return [
            booking for booking in parse_bookings(records, self.timezone)
            if not booking.is_cancelled
            and start.timestamp() <= booking.start_time.timestamp() <= end.timestamp()
        ]
