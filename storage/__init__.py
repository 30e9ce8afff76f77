"""
Storage Module
Key-value cache backends and the research pack cache.
"""
from .cache import (
    BaseCache,
    MemoryCache,
    DiskCache,
    get_cache,
)
from .research_cache import ResearchCache, RESEARCH_CACHE_KEY, RESEARCH_CACHE_VERSION

__all__ = [
    "BaseCache",
    "MemoryCache",
    "DiskCache",
    "get_cache",
    "ResearchCache",
    "RESEARCH_CACHE_KEY",
    "RESEARCH_CACHE_VERSION",
]
