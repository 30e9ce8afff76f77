"""
Page Fetcher
Plain HTTP GET of candidate promotion pages with a per-attempt timeout ladder.
"""
from typing import Sequence
import logging

import httpx
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_fixed

from core import DropReason, Outcome
from utils.exceptions import FetchFailed, FetchTimeout


logger = logging.getLogger(__name__)


class PageFetcher:
    """
    Fetch page bodies as opaque text.

    Attempt ``n`` uses ``timeouts[n]``; a failed attempt waits ``retry_delay``
    before the next one. The result is always an ``Outcome``.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        timeouts: Sequence[float] = (9.0, 14.0),
        retry_delay: float = 0.25,
        user_agent: str = "Mozilla/5.0",
    ):
        self._client = client
        self.timeouts = tuple(timeouts) or (9.0,)
        self.retry_delay = retry_delay
        self.user_agent = user_agent

    async def _get(self, url: str, timeout: float, accept_language: str) -> str:
        try:
            response = await self._client.get(
                url,
                headers={"user-agent": self.user_agent, "accept-language": accept_language},
                timeout=timeout,
                follow_redirects=True,
            )
        except httpx.TimeoutException as e:
            raise FetchTimeout(f"Timed out after {timeout}s", url=url) from e
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise FetchFailed(f"Transport error: {e}", url=url) from e

        if response.status_code >= 400:
            raise FetchFailed(f"HTTP {response.status_code}", url=url, status=response.status_code)
        text = response.text
        if not text or not text.strip():
            raise FetchFailed("Empty body", url=url, status=response.status_code)
        return text

    async def fetch(self, url: str, accept_language: str = "en-AU") -> Outcome[str]:
        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(len(self.timeouts)),
                wait=wait_fixed(self.retry_delay),
                retry=retry_if_exception_type((FetchTimeout, FetchFailed)),
                reraise=True,
            ):
                with attempt:
                    timeout = self.timeouts[attempt.retry_state.attempt_number - 1]
                    body = await self._get(url, timeout, accept_language)
        except FetchTimeout as e:
            logger.info(f"research.fetch.failed url={url} reason=timeout")
            return Outcome.dropped(DropReason.FETCH_TIMEOUT, str(e))
        except FetchFailed as e:
            logger.info(f"research.fetch.failed url={url} reason=failed status={e.status}")
            return Outcome.dropped(DropReason.FETCH_FAILED, str(e))
        return Outcome.success(body)
