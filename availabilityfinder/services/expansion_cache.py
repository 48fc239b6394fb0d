"""
Cache of per-month recurrence expansions.

Expanding recurring rules over a month is the repeated part of the month
overview. Entries are keyed by freelancer and month and carry the version of
the rule set they were computed from; a changed ``updated_at`` (or a rule
added or removed) makes the entry stale.
"""

from typing import Dict, List, Optional, Sequence, Tuple

import pendulum

from ..domain.models import AvailabilityRule

Expansion = Dict[pendulum.Date, List[AvailabilityRule]]
CacheKey = Tuple[str, int, int]
RuleSetVersion = Tuple[int, str]


class ExpansionCache:
    """
    In-memory store of month expansions, injected where it is used.
    """

    def __init__(self) -> None:
        self._entries: Dict[CacheKey, Tuple[RuleSetVersion, Expansion]] = {}

    @staticmethod
    def version_of(rules: Sequence[AvailabilityRule]) -> RuleSetVersion:
        """Rule count plus the latest ``updated_at`` across the rule set."""
        stamps = [
            rule.updated_at.in_timezone("UTC").to_iso8601_string()
            for rule in rules
            if rule.updated_at is not None
        ]
        return len(rules), max(stamps, default="")

    def get(self, freelancer_id: str, year: int, month: int, version: RuleSetVersion) -> Optional[Expansion]:
        entry = self._entries.get((freelancer_id, year, month))
        if entry is None:
            return None

        cached_version, expansion = entry
        if cached_version != version:
            del self._entries[(freelancer_id, year, month)]
            return None

        return expansion

    def put(
        self,
        freelancer_id: str,
        year: int,
        month: int,
        version: RuleSetVersion,
        expansion: Expansion,
    ) -> None:
        self._entries[(freelancer_id, year, month)] = (version, expansion)

    def invalidate(self, freelancer_id: Optional[str] = None) -> None:
        """Drop every entry, or only those of one freelancer."""
        if freelancer_id is None:
            self._entries.clear()
            return

        for key in [key for key in self._entries if key[0] == freelancer_id]:
            del self._entries[key]

    def __len__(self) -> int:
        return len(self._entries)
