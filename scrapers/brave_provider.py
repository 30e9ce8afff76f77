"""
Brave Provider
Fallback web search API.
API docs: https://api.search.brave.com/app/documentation
"""
from typing import Any, List

import httpx

from core import SearchResult
from .base import BaseSearchProvider, safe_text


class BraveProvider(BaseSearchProvider):
    """Fallback provider; Brave has no gl/hl knobs beyond the search language."""

    BASE_URL = "https://api.search.brave.com/res/v1/web/search"

    @property
    def name(self) -> str:
        return "brave"

    async def _request(self, query: str, *, num: int, gl: str, hl: str) -> httpx.Response:
        return await self._client.get(
            self.BASE_URL,
            params={"q": query, "count": num, "search_lang": hl or "en"},
            headers={"Accept": "application/json", "X-Subscription-Token": self._api_key or ""},
            timeout=self._timeout,
        )

    def _parse(self, payload: Any) -> List[SearchResult]:
        web = payload.get("web") if isinstance(payload, dict) else None
        rows = web.get("results") if isinstance(web, dict) else None
        if not isinstance(rows, list):
            return []
        return [
            SearchResult(
                title=safe_text(row.get("title")),
                url=safe_text(row.get("url")),
                snippet=safe_text(row.get("description")),
            )
            for row in rows
            if isinstance(row, dict)
        ]
