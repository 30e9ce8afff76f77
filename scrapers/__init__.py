"""
Scrapers Module
Search providers, encyclopedic lookup and page fetching.
"""
from .base import BaseSearchProvider, safe_text
from .serper_provider import SerperProvider
from .brave_provider import BraveProvider
from .wikipedia import WikipediaClient
from .page_fetcher import PageFetcher

__all__ = [
    "BaseSearchProvider",
    "safe_text",
    "SerperProvider",
    "BraveProvider",
    "WikipediaClient",
    "PageFetcher",
]
