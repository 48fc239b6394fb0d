"""
Application services answering availability queries.

The service validates query parameters, fetches rules and bookings via store
adapters and delegates the actual computation to the domain-level
``AvailabilityEngine``. Depending on protocols keeps the CLI thin and lets
tests plug in stub stores.
"""

from __future__ import annotations

import datetime as dt
import logging
from typing import Any, Dict, List, Optional, Protocol, Type, TypeVar

import pendulum
from pendulum import DateTime
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from ..domain.availability_engine import AvailabilityEngine
from ..domain.exceptions import ValidationError
from ..domain.models import AvailabilityRule, Booking
from .expansion_cache import ExpansionCache

logger = logging.getLogger(__name__)

QueryT = TypeVar("QueryT", bound=BaseModel)


class RuleStoreProtocol(Protocol):
    """Source of a freelancer's availability rules (all categories)."""

    def get_rules(self, freelancer_id: str) -> List[AvailabilityRule]:
        """Return every rule of the freelancer."""


class BookingStoreProtocol(Protocol):
    """Source of a freelancer's non-cancelled bookings."""

    def get_bookings(
        self,
        freelancer_id: str,
        start: DateTime,
        end: DateTime,
        category_id: Optional[str] = None,
    ) -> List[Booking]:
        """Return bookings starting within ``[start, end]``."""


class _Query(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    freelancer_id: str = Field(min_length=1)
    category_id: Optional[str] = None

    @field_validator("category_id")
    @classmethod
    def blank_category_is_none(cls, value: Optional[str]) -> Optional[str]:
        return value or None


class AvailabilityQuery(_Query):
    target_date: dt.date


class NextAvailableQuery(_Query):
    start_date: dt.date
    days: int = Field(ge=1, le=366)


class MonthQuery(_Query):
    month: dt.date
    today: Optional[dt.date] = None

    @field_validator("month", mode="before")
    @classmethod
    def accept_year_month(cls, value: Any) -> Any:
        """Allow ``YYYY-MM`` in addition to full ISO dates."""
        if isinstance(value, str) and len(value.strip()) == 7:
            return f"{value.strip()}-01"
        return value


class AvailabilityService:
    """
    Orchestrates data retrieval and availability resolution.
    """

    def __init__(
        self,
        rule_store: RuleStoreProtocol,
        booking_store: BookingStoreProtocol,
        engine: AvailabilityEngine,
        lookahead_days: int = 7,
        cache: Optional[ExpansionCache] = None,
    ) -> None:
        self._rule_store = rule_store
        self._booking_store = booking_store
        self._engine = engine
        self._lookahead_days = lookahead_days
        self._cache = cache

    @property
    def timezone(self) -> str:
        return self._engine.timezone

    def get_availability(
        self,
        freelancer_id: Optional[str],
        target_date: Any,
        category_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Resolve the bookable blocks of one date.

        Returns ``{"availabilityBlocks": [...]}`` in the wire shape.
        """
        query = self._validate(
            AvailabilityQuery,
            freelancer_id=freelancer_id,
            target_date=target_date,
            category_id=category_id,
        )
        day = pendulum.date(query.target_date.year, query.target_date.month, query.target_date.day)

        rules = self._rule_store.get_rules(query.freelancer_id)
        bookings = self._booking_store.get_bookings(
            query.freelancer_id,
            *self._day_bounds(day, day),
            category_id=query.category_id,
        )
        logger.debug(
            "Resolving %s for %s: %d rules, %d bookings",
            day, query.freelancer_id, len(rules), len(bookings),
        )

        blocks = self._engine.resolve(rules, bookings, day, category_id=query.category_id)
        return {"availabilityBlocks": [block.to_dict() for block in blocks]}

    def next_available(
        self,
        freelancer_id: Optional[str],
        start_date: Any,
        days: Optional[int] = None,
        category_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Find the first date after ``start_date`` with capacity.

        Returns ``{"nextAvailableDate": "YYYY-MM-DD" | None}``.
        """
        query = self._validate(
            NextAvailableQuery,
            freelancer_id=freelancer_id,
            start_date=start_date,
            days=self._lookahead_days if days is None else days,
            category_id=category_id,
        )
        base = pendulum.date(query.start_date.year, query.start_date.month, query.start_date.day)

        rules = self._rule_store.get_rules(query.freelancer_id)
        bookings = self._booking_store.get_bookings(
            query.freelancer_id,
            *self._day_bounds(base.add(days=1), base.add(days=query.days)),
            category_id=query.category_id,
        )

        found = self._engine.find_next_available(
            rules,
            bookings,
            after_date=base,
            max_lookahead_days=query.days,
            category_id=query.category_id,
        )
        return {"nextAvailableDate": found.to_date_string() if found else None}

    def month_overview(
        self,
        freelancer_id: Optional[str],
        month: Any,
        category_id: Optional[str] = None,
        today: Any = None,
    ) -> Dict[str, Any]:
        """
        Summarize a month for calendar display.

        Returns ``{"availableDates": [...], "certainty": {date: level}}``.
        """
        query = self._validate(
            MonthQuery,
            freelancer_id=freelancer_id,
            month=month,
            category_id=category_id,
            today=today,
        )
        first = pendulum.date(query.month.year, query.month.month, 1)
        last = first.end_of("month")

        rules = self._rule_store.get_rules(query.freelancer_id)
        bookings = self._booking_store.get_bookings(
            query.freelancer_id,
            *self._day_bounds(first, last),
            category_id=query.category_id,
        )

        expansion = self._expansion_for(query.freelancer_id, rules, first)
        overview = self._engine.month_overview(
            rules,
            bookings,
            first,
            category_id=query.category_id,
            today=query.today,
            expansion=expansion,
        )
        return overview.to_dict()

    def _expansion_for(self, freelancer_id: str, rules: List[AvailabilityRule], month: pendulum.Date):
        if self._cache is None:
            return self._engine.expand_month(rules, month)

        version = ExpansionCache.version_of(rules)
        expansion = self._cache.get(freelancer_id, month.year, month.month, version)
        if expansion is None:
            logger.debug("Expansion cache miss for %s %d-%02d", freelancer_id, month.year, month.month)
            expansion = self._engine.expand_month(rules, month)
            self._cache.put(freelancer_id, month.year, month.month, version, expansion)

        return expansion

    def _day_bounds(self, first: dt.date, last: dt.date):
        start = pendulum.datetime(first.year, first.month, first.day, tz=self.timezone)
        end = pendulum.datetime(last.year, last.month, last.day, tz=self.timezone).end_of("day")
        return start, end

    @staticmethod
    def _validate(model: Type[QueryT], **params: Any) -> QueryT:
        """Check query parameters before any store is touched."""
        try:
            return model(**params)
        except PydanticValidationError as exc:
            fields = ", ".join(
                ".".join(str(part) for part in error["loc"]) or "query"
                for error in exc.errors()
            )
            raise ValidationError(f"Missing or invalid parameter(s): {fields}") from exc
