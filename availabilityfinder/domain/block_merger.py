"""
Merging of contiguous slots into announced availability blocks.
"""

from typing import List, Optional, Sequence

from .models import AvailabilityBlock, AvailabilityRule, TimeOfDay, TimeSlot


class BlockMerger:
    """
    Turns an ordered slot list into maximal blocks.

    Every block of one date carries the metadata (certainty, recurrence) of
    the first rule that contributed a slot to that date. If rules with
    different certainty levels overlap on a date, only that first rule's
    metadata surfaces.
    """

    def merge(
        self,
        slots: Sequence[TimeSlot],
        source_rule: Optional[AvailabilityRule] = None,
    ) -> List[AvailabilityBlock]:
        """
        Merge slots (ordered by start) into blocks.

        A gap between a slot's start and the running block end starts a new
        block. Slots from rules anchored at different minutes may overlap the
        running block; they extend it instead of opening an overlapping block.
        Instants are compared in UTC, so the repeated hour of an autumn DST
        change lists its wall-clock start time twice.
        """
        blocks: List[AvailabilityBlock] = []
        current: Optional[AvailabilityBlock] = None
        current_end = 0.0

        for slot in sorted(slots, key=lambda s: s.start.timestamp()):
            if current is None or slot.start.timestamp() > current_end:
                current = self._new_block(slot.start_time, slot.end_time, source_rule)
                current.available_start_times.append(slot.start_time)
                current_end = slot.end.timestamp()
                blocks.append(current)
                continue

            current.available_start_times.append(slot.start_time)
            if slot.end.timestamp() > current_end:
                current_end = slot.end.timestamp()
                current.end = slot.end_time

        return blocks

    def merge_blocks(self, blocks: Sequence[AvailabilityBlock]) -> List[AvailabilityBlock]:
        """
        Coalesce blocks that touch or overlap.

        Applying this to the output of :meth:`merge` is a no-op.
        """
        merged: List[AvailabilityBlock] = []

        for block in sorted(blocks, key=lambda b: b.start):
            if merged and block.start <= merged[-1].end:
                last = merged[-1]
                starts = sorted(set(last.available_start_times) | set(block.available_start_times))
                merged[-1] = AvailabilityBlock(
                    id=last.id,
                    start=last.start,
                    end=max(last.end, block.end),
                    available_start_times=starts,
                    certainty_level=last.certainty_level,
                    is_recurring=last.is_recurring,
                    recurrence_pattern=last.recurrence_pattern,
                )
            else:
                merged.append(AvailabilityBlock(
                    id=block.id,
                    start=block.start,
                    end=block.end,
                    available_start_times=list(block.available_start_times),
                    certainty_level=block.certainty_level,
                    is_recurring=block.is_recurring,
                    recurrence_pattern=block.recurrence_pattern,
                ))

        return merged

    @staticmethod
    def _new_block(
        start: TimeOfDay,
        end: TimeOfDay,
        source_rule: Optional[AvailabilityRule],
    ) -> AvailabilityBlock:
        if source_rule is None:
            return AvailabilityBlock(id=f"block-{start.format()}", start=start, end=end)

        return AvailabilityBlock(
            id=f"{source_rule.id}-{start.format()}",
            start=start,
            end=end,
            certainty_level=source_rule.certainty_level,
            is_recurring=source_rule.is_recurring,
            recurrence_pattern=source_rule.recurrence_pattern,
        )
