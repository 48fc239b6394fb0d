"""
Tests for the month expansion cache.
"""

from availabilityfinder.services.expansion_cache import ExpansionCache

from factories import day, recurring


def _rules(updated_at="2024-01-01 10:00"):
    return [
        recurring("r1", "2024-01-01", "09:00", "12:00", updated_at=updated_at),
        recurring("r2", "2024-01-02", "13:00", "15:00"),
    ]


class TestVersion:
    """Tests for rule set versioning."""

    def test_version_uses_count_and_latest_update(self):
        """Test that the version reflects the newest updated_at in UTC."""
        count, stamp = ExpansionCache.version_of(_rules())

        assert count == 2
        assert stamp.startswith("2024-01-01T09:00:00")

    def test_version_changes_when_a_rule_is_updated(self):
        """Test that touching a rule changes the version."""
        assert ExpansionCache.version_of(_rules()) != ExpansionCache.version_of(_rules("2024-01-03 08:00"))

    def test_version_changes_when_a_rule_is_removed(self):
        """Test that removing a rule changes the version."""
        assert ExpansionCache.version_of(_rules()) != ExpansionCache.version_of(_rules()[:1])

    def test_version_of_empty_rule_set(self):
        """Test the version of no rules."""
        assert ExpansionCache.version_of([]) == (0, "")


class TestCache:
    """Tests for get/put/invalidate."""

    def test_hit_with_matching_version(self):
        """Test that a stored expansion is returned for the same version."""
        cache = ExpansionCache()
        version = ExpansionCache.version_of(_rules())
        expansion = {day("2024-01-01"): _rules()[:1]}

        cache.put("f-1", 2024, 1, version, expansion)

        assert cache.get("f-1", 2024, 1, version) is expansion
        assert cache.get("f-1", 2024, 2, version) is None
        assert cache.get("f-2", 2024, 1, version) is None

    def test_stale_entry_is_evicted(self):
        """Test that a version mismatch drops the entry."""
        cache = ExpansionCache()
        cache.put("f-1", 2024, 1, ExpansionCache.version_of(_rules()), {})

        assert cache.get("f-1", 2024, 1, ExpansionCache.version_of(_rules("2024-02-01 10:00"))) is None
        assert len(cache) == 0

    def test_invalidate_one_freelancer(self):
        """Test targeted and full invalidation."""
        cache = ExpansionCache()
        version = ExpansionCache.version_of([])
        cache.put("f-1", 2024, 1, version, {})
        cache.put("f-1", 2024, 2, version, {})
        cache.put("f-2", 2024, 1, version, {})

        cache.invalidate("f-1")
        assert len(cache) == 1
        assert cache.get("f-2", 2024, 1, version) == {}

        cache.invalidate()
        assert len(cache) == 0
