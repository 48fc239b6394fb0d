"""
Tests for merging slots into blocks.
"""

from availabilityfinder.domain.block_merger import BlockMerger
from availabilityfinder.domain.models import CertaintyLevel, RecurrencePattern, TimeOfDay, TimeSlot

from factories import at, recurring


def _slots(*starts):
    return [TimeSlot.starting_at(at(f"2024-01-08 {start}")) for start in starts]


def _assert_separated(blocks):
    for previous, following in zip(blocks, blocks[1:]):
        assert previous.end < following.start


class TestBlockMerger:
    """Tests for BlockMerger."""

    def test_contiguous_slots_form_one_block(self):
        """Test a full day of back-to-back slots."""
        blocks = BlockMerger().merge(_slots("09:00", "10:00", "11:00", "12:00"))

        assert len(blocks) == 1
        assert blocks[0].start == TimeOfDay(9, 0)
        assert blocks[0].end == TimeOfDay(13, 0)
        assert [t.format() for t in blocks[0].available_start_times] == ["09:00", "10:00", "11:00", "12:00"]

    def test_gap_starts_new_block(self):
        """Test that a missing hour splits the run."""
        blocks = BlockMerger().merge(_slots("09:00", "11:00", "12:00", "15:00"))

        assert [(b.start.format(), b.end.format()) for b in blocks] == [
            ("09:00", "10:00"),
            ("11:00", "13:00"),
            ("15:00", "16:00"),
        ]
        _assert_separated(blocks)

    def test_unsorted_input_is_ordered(self):
        """Test that input order does not matter."""
        blocks = BlockMerger().merge(_slots("11:00", "09:00", "10:00"))

        assert len(blocks) == 1
        assert blocks[0].start == TimeOfDay(9, 0)

    def test_offset_slots_do_not_produce_overlapping_blocks(self):
        """Test slots from rules anchored at different minutes."""
        blocks = BlockMerger().merge(_slots("09:00", "09:30"))

        assert len(blocks) == 1
        assert blocks[0].end == TimeOfDay(10, 30)
        assert [t.format() for t in blocks[0].available_start_times] == ["09:00", "09:30"]

    def test_metadata_comes_from_source_rule(self):
        """Test that every block carries the first rule's metadata."""
        rule = recurring(
            "weekly-1", "2024-01-01", "09:00", "17:00",
            RecurrencePattern.BIWEEKLY, certainty=CertaintyLevel.TENTATIVE,
        )

        blocks = BlockMerger().merge(_slots("09:00", "11:00"), source_rule=rule)

        assert [b.id for b in blocks] == ["weekly-1-09:00", "weekly-1-11:00"]
        for block in blocks:
            assert block.certainty_level is CertaintyLevel.TENTATIVE
            assert block.is_recurring
            assert block.recurrence_pattern == "biweekly"

    def test_defaults_without_source_rule(self):
        """Test block defaults when no rule is known."""
        blocks = BlockMerger().merge(_slots("09:00"))

        assert blocks[0].id == "block-09:00"
        assert blocks[0].certainty_level is CertaintyLevel.GUARANTEED
        assert not blocks[0].is_recurring

    def test_no_slots(self):
        """Test the empty input."""
        assert BlockMerger().merge([]) == []

    def test_repeated_dst_hour_stays_in_one_block(self):
        """Test that the autumn DST change does not split or shrink a block."""
        first = at("2024-10-27 01:00")
        slots = [TimeSlot.starting_at(first.add(hours=offset)) for offset in range(4)]

        blocks = BlockMerger().merge(slots)

        assert len(blocks) == 1
        assert blocks[0].start == TimeOfDay(1, 0)
        assert blocks[0].end == TimeOfDay(4, 0)
        assert [t.format() for t in blocks[0].available_start_times] == ["01:00", "02:00", "02:00", "03:00"]


class TestMergeBlocks:
    """Tests for re-merging block lists."""

    def test_remerge_is_idempotent(self):
        """Test that merging merged output changes nothing."""
        merger = BlockMerger()
        blocks = merger.merge(_slots("09:00", "10:00", "12:00", "13:00", "16:00"))

        assert merger.merge_blocks(blocks) == blocks
        assert merger.merge_blocks(merger.merge_blocks(blocks)) == blocks

    def test_touching_blocks_are_coalesced(self):
        """Test that adjacent blocks collapse into one."""
        merger = BlockMerger()
        morning = merger.merge(_slots("09:00", "10:00"))
        late_morning = merger.merge(_slots("11:00"))

        merged = merger.merge_blocks(late_morning + morning)

        assert len(merged) == 1
        assert merged[0].start == TimeOfDay(9, 0)
        assert merged[0].end == TimeOfDay(12, 0)
        assert [t.format() for t in merged[0].available_start_times] == ["09:00", "10:00", "11:00"]
