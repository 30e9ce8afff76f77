"""
Wikipedia Lookup
Title normalisation and page summaries for brand/category names.
"""
from typing import Dict, Optional
from urllib.parse import quote
import logging

import httpx


logger = logging.getLogger(__name__)


class WikipediaClient:
    """
    Open-search + REST summary client.

    Every failure is non-fatal: callers get None and fall back to the raw term.
    """

    API_URL = "https://en.wikipedia.org/w/api.php"
    SUMMARY_URL = "https://en.wikipedia.org/api/rest_v1/page/summary/"
    PAGE_URL = "https://en.wikipedia.org/wiki/"

    def __init__(self, client: httpx.AsyncClient, timeout: float = 10.0):
        self._client = client
        self._timeout = timeout

    async def _get_json(self, url: str, params: Optional[Dict[str, str]] = None):
        try:
            response = await self._client.get(url, params=params, timeout=self._timeout, follow_redirects=True)
            response.raise_for_status()
            return response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.debug(f"Wikipedia lookup failed for {url}: {e}")
            return None

    async def opensearch(self, term: str) -> Optional[str]:
        """Best-matching article title for a free-text term."""
        term = (term or "").strip()
        if not term:
            return None
        payload = await self._get_json(
            self.API_URL,
            params={
                "action": "opensearch",
                "limit": "1",
                "namespace": "0",
                "format": "json",
                "search": term,
            },
        )
        if isinstance(payload, list) and len(payload) > 1 and isinstance(payload[1], list) and payload[1]:
            title = str(payload[1][0]).strip()
            return title or None
        return None

    async def summary(self, term: str) -> Optional[Dict[str, str]]:
        """
        Page summary for a term.

        Returns:
            {"title", "extract", "url"} or None
        """
        term = (term or "").strip()
        if not term:
            return None
        title = await self.opensearch(term) or term
        page = await self._get_json(self.SUMMARY_URL + quote(title, safe=""))
        if not isinstance(page, dict) or not page.get("extract"):
            return None
        resolved = str(page.get("title") or title)
        return {
            "title": resolved,
            "extract": str(page["extract"]),
            "url": self.PAGE_URL + quote(resolved, safe=""),
        }
