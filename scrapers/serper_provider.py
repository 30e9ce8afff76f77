"""
Serper Provider
Google-like JSON search API.
API docs: https://serper.dev/
"""
from typing import Any, List

import httpx

from core import SearchResult
from .base import BaseSearchProvider, safe_text


class SerperProvider(BaseSearchProvider):
    """Primary provider: POSTs the query with locale hints."""

    BASE_URL = "https://google.serper.dev/search"

    @property
    def name(self) -> str:
        return "serper"

    async def _request(self, query: str, *, num: int, gl: str, hl: str) -> httpx.Response:
        return await self._client.post(
            self.BASE_URL,
            json={"q": query, "num": num, "gl": gl, "hl": hl},
            headers={"Content-Type": "application/json", "X-API-KEY": self._api_key or ""},
            timeout=self._timeout,
        )

    def _parse(self, payload: Any) -> List[SearchResult]:
        organic = payload.get("organic") if isinstance(payload, dict) else None
        if not isinstance(organic, list):
            return []
        return [
            SearchResult(
                title=safe_text(row.get("title")),
                url=safe_text(row.get("link")),
                snippet=safe_text(row.get("snippet")),
            )
            for row in organic
            if isinstance(row, dict)
        ]
