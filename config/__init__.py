"""
Configuration Management Module
"""
from .settings import (
    Settings,
    SearchSettings,
    ResearchSettings,
    CacheSettings,
    GeneralSettings,
    get_settings,
    get_search_settings,
    get_research_settings,
    get_cache_settings,
)

__all__ = [
    "Settings",
    "SearchSettings",
    "ResearchSettings",
    "CacheSettings",
    "GeneralSettings",
    "get_settings",
    "get_search_settings",
    "get_research_settings",
    "get_cache_settings",
]
