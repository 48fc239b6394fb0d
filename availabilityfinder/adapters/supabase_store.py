"""
Supabase (PostgREST) client for fetching availability rules and bookings.
"""

from typing import Any, List, Optional, Sequence, Tuple

import requests
from pendulum import DateTime

from ..domain.exceptions import UpstreamDataError
from ..domain.models import AvailabilityRule, Booking
from .records import parse_bookings, parse_rules


class SupabaseStore:
    """
    Reads the marketplace tables through the Supabase REST endpoint.

    Uses the ``/rest/v1/<table>`` PostgREST API with the project's API key.
    """

    RULES_TABLE = "freelancer_global_availability"
    BOOKINGS_TABLE = "bookings"

    def __init__(
        self,
        base_url: str,
        api_key: str,
        timezone: str = "Europe/Amsterdam",
        timeout: float = 10.0,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize the store.

        Args:
            base_url: Supabase project URL, e.g. ``https://xyz.supabase.co``
            api_key: Service or anon key used for both ``apikey`` and bearer auth
            timezone: IANA timezone all instants are converted to
            timeout: Per-request timeout in seconds
            session: Optional pre-configured ``requests.Session``
        """
        self.base_url = base_url.rstrip("/")
        self.timezone = timezone
        self.timeout = timeout
        self.session = session or requests.Session()
        self.headers = {
            "apikey": api_key,
            "Authorization": f"Bearer {api_key}",
            "Accept": "application/json",
        }

    def _select(self, table: str, params: Sequence[Tuple[str, str]]) -> List[Any]:
        url = f"{self.base_url}/rest/v1/{table}"

        try:
            response = self.session.get(
                url,
                headers=self.headers,
                params=[("select", "*"), *params],
                timeout=self.timeout,
            )
            response.raise_for_status()
            data = response.json()
        except (requests.exceptions.RequestException, ValueError) as e:
            raise UpstreamDataError(f"Failed to fetch {table} from Supabase: {e}") from e

        if not isinstance(data, list):
            raise UpstreamDataError(f"Unexpected response shape for {table}: {type(data).__name__}")

        return data

    def get_rules(self, freelancer_id: str) -> List[AvailabilityRule]:
        """All availability rules of a freelancer, regardless of category."""
        records = self._select(
            self.RULES_TABLE,
            [
                ("freelancer_id", f"eq.{freelancer_id}"),
                ("order", "start_time.asc"),
            ],
        )
        return parse_rules(records, self.timezone)

    def get_bookings(
        self,
        freelancer_id: str,
        start: DateTime,
        end: DateTime,
        category_id: Optional[str] = None,
    ) -> List[Booking]:
        """Non-cancelled bookings of a freelancer starting within ``[start, end]``."""
        params = [
            ("freelancer_id", f"eq.{freelancer_id}"),
            ("start_time", f"gte.{start.in_timezone('UTC').to_iso8601_string()}"),
            ("start_time", f"lte.{end.in_timezone('UTC').to_iso8601_string()}"),
            ("status", "neq.cancelled"),
        ]
        if category_id is not None:
            params.append(("category_id", f"eq.{category_id}"))

        records = self._select(self.BOOKINGS_TABLE, params)
        return parse_bookings(records, self.timezone)
