"""
Tests for cache backends and the research pack cache
"""
from datetime import datetime, timedelta, timezone
import json

import pytest

from core import DropReason, Fact, FactSection, ResearchLevel, ResearchMeta, ResearchPack
from storage import DiskCache, MemoryCache, ResearchCache, RESEARCH_CACHE_VERSION, get_cache
from utils.exceptions import CacheUnavailable, ConfigurationError


class FakeClock:
    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


class BrokenCache(MemoryCache):
    def get(self, key):
        raise CacheUnavailable("backend down")

    def set(self, key, value, ttl=None):
        raise CacheUnavailable("backend down")


def _pack(level: ResearchLevel = ResearchLevel.DEEP) -> ResearchPack:
    return ResearchPack(
        campaign_id="cmp-1",
        brand=FactSection(query="Acme", facts=[Fact(claim="Brand: Acme", source="Source: brief")]),
        meta=ResearchMeta(level=level, search_provider="serper"),
    )


class TestBackends:
    def test_memory_cache_returns_copies(self):
        cache = MemoryCache()
        cache.set("k", {"values": [1]})
        first = cache.get("k")
        first["values"].append(2)
        assert cache.get("k") == {"values": [1]}

    def test_memory_cache_rejects_non_json(self):
        with pytest.raises(CacheUnavailable):
            MemoryCache().set("k", {"bad": object()})

    def test_disk_cache_survives_new_instance(self, tmp_path):
        DiskCache(cache_dir=str(tmp_path)).set("k", {"a": 1})
        assert DiskCache(cache_dir=str(tmp_path)).get("k") == {"a": 1}
        assert not list(tmp_path.glob("*.tmp"))

    def test_disk_cache_corrupt_entry_raises(self, tmp_path):
        cache = DiskCache(cache_dir=str(tmp_path))
        (tmp_path / "k.json").write_text("{not json", encoding="utf-8")
        with pytest.raises(CacheUnavailable):
            cache.get("k")

    def test_get_cache_factory(self, tmp_path):
        assert isinstance(get_cache("memory"), MemoryCache)
        assert isinstance(get_cache("disk", cache_dir=str(tmp_path)), DiskCache)
        with pytest.raises(ConfigurationError):
            get_cache("redis")


class TestResearchCache:
    def test_round_trip_within_ttl(self):
        clock = FakeClock(datetime(2025, 1, 1, tzinfo=timezone.utc))
        cache = ResearchCache(MemoryCache(), ttl_seconds=3600, clock=clock)
        pack = _pack()

        assert cache.save("cmp-1", ResearchLevel.DEEP, pack)
        clock.advance(minutes=30)
        loaded = cache.load("cmp-1", ResearchLevel.DEEP)

        assert loaded.ok
        assert loaded.value.meta.cached_at == datetime(2025, 1, 1, tzinfo=timezone.utc).isoformat()
        strip = {"meta": {"cached_at"}}
        assert loaded.value.model_dump(exclude=strip) == pack.model_dump(exclude=strip)

    def test_expired_entry_is_a_miss(self):
        clock = FakeClock(datetime(2025, 1, 1, tzinfo=timezone.utc))
        cache = ResearchCache(MemoryCache(), ttl_seconds=3600, clock=clock)
        cache.save("cmp-1", ResearchLevel.DEEP, _pack())
        clock.advance(hours=2)

        loaded = cache.load("cmp-1", ResearchLevel.DEEP)
        assert not loaded.ok
        assert loaded.reason is DropReason.CACHE_EXPIRED

    def test_levels_are_stored_side_by_side(self):
        backend = MemoryCache()
        cache = ResearchCache(backend)
        cache.save("cmp-1", ResearchLevel.LITE, _pack(ResearchLevel.LITE))
        cache.save("cmp-1", ResearchLevel.DEEP, _pack())

        envelope = backend.get(ResearchCache.key_for("cmp-1"))
        assert envelope["version"] == RESEARCH_CACHE_VERSION
        assert set(envelope["values"]) == {"LITE", "DEEP"}
        assert cache.load("cmp-1", ResearchLevel.LITE).ok

    def test_max_level_bypasses_cache(self):
        backend = MemoryCache()
        cache = ResearchCache(backend)
        assert cache.save("cmp-1", ResearchLevel.MAX, _pack(ResearchLevel.MAX)) is False
        assert backend.size() == 0
        assert cache.load("cmp-1", ResearchLevel.MAX).reason is DropReason.CACHE_MISS

    def test_old_version_is_ignored(self):
        backend = MemoryCache()
        backend.set(ResearchCache.key_for("cmp-1"), {"version": "v1", "values": {}})
        loaded = ResearchCache(backend).load("cmp-1", ResearchLevel.DEEP)
        assert loaded.reason is DropReason.CACHE_VERSION

    def test_backend_failure_degrades_to_miss_and_noop(self):
        cache = ResearchCache(BrokenCache())
        assert cache.load("cmp-1", ResearchLevel.DEEP).reason is DropReason.CACHE_UNAVAILABLE
        assert cache.save("cmp-1", ResearchLevel.DEEP, _pack()) is False

    def test_disk_backed_envelope_is_json(self, tmp_path):
        backend = DiskCache(cache_dir=str(tmp_path))
        ResearchCache(backend).save("cmp-1", ResearchLevel.LITE, _pack(ResearchLevel.LITE))
        stored = json.loads(next(tmp_path.glob("*.json")).read_text(encoding="utf-8"))
        assert stored["value"]["version"] == RESEARCH_CACHE_VERSION
