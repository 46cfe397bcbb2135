"""
Unit tests for the process-local MemoryCache.
"""
import pytest

from backend.core.memory_cache import MemoryCache
from tests.fakes import make_record


@pytest.mark.unit
class TestMemoryCache:
    def test_get_miss(self):
        assert MemoryCache().get("Barbell Row") is None

    def test_keys_are_normalized(self):
        cache = MemoryCache()
        record = make_record("EZ Bar Curl", id=3)

        cache.put("EZ-Bar Curl", record)

        assert cache.get("ez bar curl") is record
        assert cache.get("  Ez-Bar   Curl ") is record
        assert "EZ-BAR CURL" in cache

    def test_blank_key_not_stored(self):
        cache = MemoryCache()
        cache.put("  ", make_record("Row", id=1))
        assert len(cache) == 0

    def test_put_under_names_includes_own_name(self):
        cache = MemoryCache()
        record = make_record("T Bar Row", id=9)

        cache.put_under_names(record, "Chest-Supported T-Bar Row")

        assert cache.get("chest supported t bar row") is record
        assert cache.get("t bar row") is record
        assert len(cache) == 2

    def test_clear(self):
        cache = MemoryCache()
        cache.put("Row", make_record("Row", id=1))
        cache.clear()
        assert len(cache) == 0
        assert not cache.contains("Row")
