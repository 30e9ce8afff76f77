"""
Tests for configuration loading
"""
from config.settings import CacheSettings, ResearchSettings, SearchSettings


def test_concurrency_is_clamped():
    assert ResearchSettings(concurrency=50).concurrency == 12
    assert ResearchSettings(concurrency=1).concurrency == 2
    assert ResearchSettings().concurrency == 6


def test_fetch_timeouts_never_empty():
    assert ResearchSettings(fetch_timeouts=()).fetch_timeouts == (9.0, 14.0)
    assert ResearchSettings(fetch_timeouts=(0, 5)).fetch_timeouts == (5.0,)


def test_search_settings_read_environment(monkeypatch):
    monkeypatch.setenv("SEARCH_SERPER_API_KEY", "serper-key")
    monkeypatch.setenv("SEARCH_GL", " NZ ")
    settings = SearchSettings()
    assert settings.serper_api_key == "serper-key"
    assert settings.gl == "nz"


def test_cache_settings_defaults(monkeypatch):
    monkeypatch.delenv("CACHE_PROVIDER", raising=False)
    settings = CacheSettings()
    assert settings.provider == "disk"
    assert settings.ttl_seconds == 6 * 60 * 60
