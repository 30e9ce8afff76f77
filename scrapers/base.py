"""
Base Search Provider
Abstract base for the pluggable JSON search APIs.
"""
from abc import ABC, abstractmethod
from typing import Any, List, Optional
import logging
import time

import httpx
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from core import SearchResult
from utils.exceptions import ProviderUnavailable, SearchProviderError


logger = logging.getLogger(__name__)


def safe_text(value: Any) -> str:
    """Provider fields come back as anything; normalise to a trimmed string."""
    if value is None:
        return ""
    return str(value).strip()


class BaseSearchProvider(ABC):
    """
    Search provider base class.

    Subclasses build the HTTP request and parse the payload; this class owns
    configuration checks, transport retries and error translation.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        api_key: Optional[str] = None,
        timeout: float = 10.0,
    ):
        self._client = client
        self._api_key = (api_key or "").strip() or None
        self._timeout = timeout

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider name recorded in research meta."""
        pass

    def is_configured(self) -> bool:
        return self._api_key is not None

    async def search(
        self,
        query: str,
        *,
        num: int = 6,
        gl: str = "au",
        hl: str = "en",
    ) -> List[SearchResult]:
        """
        Run one query.

        Raises:
            ProviderUnavailable: no API key configured
            SearchProviderError: HTTP error or unreadable payload
        """
        if not self.is_configured():
            raise ProviderUnavailable(f"{self.name} is not configured", provider=self.name)

        start = time.monotonic()
        try:
            response = await self._send(query, num=num, gl=gl, hl=hl)
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPError as e:
            raise SearchProviderError(f"{self.name} request failed: {e}", provider=self.name) from e
        except ValueError as e:
            raise SearchProviderError(f"{self.name} returned invalid JSON", provider=self.name) from e

        results = [r for r in self._parse(payload) if r.url]
        logger.debug(
            f"[{self.name}] '{query}' returned {len(results)} results "
            f"in {(time.monotonic() - start) * 1000:.0f}ms"
        )
        return results

    @retry(
        retry=retry_if_exception_type(httpx.TransportError),
        stop=stop_after_attempt(2),
        wait=wait_exponential(multiplier=0.5, min=0.5, max=4),
        reraise=True,
    )
    async def _send(self, query: str, *, num: int, gl: str, hl: str) -> httpx.Response:
        return await self._request(query, num=num, gl=gl, hl=hl)

    @abstractmethod
    async def _request(self, query: str, *, num: int, gl: str, hl: str) -> httpx.Response:
        pass

    @abstractmethod
    def _parse(self, payload: Any) -> List[SearchResult]:
        pass
