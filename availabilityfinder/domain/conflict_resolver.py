"""
Removal of slots that collide with existing bookings.
"""

from typing import Iterable, List, Optional, Sequence

from .models import Booking, TimeSlot


class ConflictResolver:
    """
    Drops every slot overlapped by a live booking.

    Overlap is the half-open test of :meth:`TimeRange.overlaps`; a booking
    ending exactly when a slot starts does not conflict. An overlap removes
    the whole slot, slots are never clipped.
    """

    @staticmethod
    def relevant_bookings(
        bookings: Iterable[Booking],
        category_id: Optional[str] = None,
    ) -> List[Booking]:
        """
        Drop cancelled bookings and, when requested, bookings of other categories.
        """
        return [
            booking for booking in bookings
            if not booking.is_cancelled
            and (category_id is None or booking.category_id == category_id)
        ]

    def remove_conflicts(
        self,
        slots: Sequence[TimeSlot],
        bookings: Sequence[Booking],
    ) -> List[TimeSlot]:
        live = self.relevant_bookings(bookings)

        if not live:
            return list(slots)

        busy = [booking.time_range for booking in live]
        return [
            slot for slot in slots
            if not any(slot.time_range.overlaps(period) for period in busy)
        ]
