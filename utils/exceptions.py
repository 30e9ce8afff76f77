"""
Custom Exceptions
Error taxonomy for the research and scoring pipeline.

These are raised inside component boundaries (providers, fetcher, cache
backends, brief coercion) and converted to ``core.Outcome`` values at the
stage edge, so a single failure never aborts an evaluation.
"""
from typing import Any, Optional


class OfferScopeError(Exception):
    """Base error for the offer evaluation pipeline."""

    def __init__(self, message: str, details: dict = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self):
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ConfigurationError(OfferScopeError):
    """Invalid or missing configuration."""
    pass


class ProviderUnavailable(OfferScopeError):
    """No usable search provider (missing key or every provider failed)."""

    def __init__(self, message: str, provider: str = None, **kwargs):
        super().__init__(message, kwargs)
        self.provider = provider


class SearchProviderError(OfferScopeError):
    """A configured provider answered with an error or unreadable payload."""

    def __init__(self, message: str, provider: str = None, **kwargs):
        super().__init__(message, kwargs)
        self.provider = provider


class FetchTimeout(OfferScopeError):
    """Page fetch exceeded its per-attempt timeout."""

    def __init__(self, message: str, url: str = None, **kwargs):
        super().__init__(message, kwargs)
        self.url = url


class FetchFailed(OfferScopeError):
    """Page fetch failed (transport error or non-2xx status)."""

    def __init__(self, message: str, url: str = None, status: Optional[int] = None, **kwargs):
        super().__init__(message, kwargs)
        self.url = url
        self.status = status


class ParseEmpty(OfferScopeError):
    """A fetched page carried no promotion signal."""
    pass


class CacheUnavailable(OfferScopeError):
    """Persistence layer error on cache read or write."""
    pass


class MalformedBriefValue(OfferScopeError):
    """A numeric or band field in the brief could not be parsed."""

    def __init__(self, message: str, field: str = None, value: Any = None, **kwargs):
        super().__init__(message, kwargs)
        self.field = field
        self.value = value
