"""
Utils Module
Logging setup, text helpers and the pipeline error taxonomy.
"""
from .logger import setup_logger, setup_app_logging, get_logger
from .exceptions import (
    OfferScopeError,
    ConfigurationError,
    ProviderUnavailable,
    SearchProviderError,
    FetchTimeout,
    FetchFailed,
    ParseEmpty,
    CacheUnavailable,
    MalformedBriefValue,
)
from .text import clean_text, strip_html, unique_strings, host_of, truncate

__all__ = [
    "setup_logger",
    "setup_app_logging",
    "get_logger",
    "OfferScopeError",
    "ConfigurationError",
    "ProviderUnavailable",
    "SearchProviderError",
    "FetchTimeout",
    "FetchFailed",
    "ParseEmpty",
    "CacheUnavailable",
    "MalformedBriefValue",
    "clean_text",
    "strip_html",
    "unique_strings",
    "host_of",
    "truncate",
]
