"""Versioned, TTL-bounded persistence of research packs per (campaign, level)."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
import logging
from typing import Any, Callable, Dict, Optional

from pydantic import ValidationError

from core import DropReason, Outcome, ResearchLevel, ResearchPack
from storage.cache import BaseCache
from utils.exceptions import CacheUnavailable


logger = logging.getLogger(__name__)

RESEARCH_CACHE_KEY = "__researchCache"
RESEARCH_CACHE_VERSION = "v3"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _parse_timestamp(value: Any) -> Optional[datetime]:
    try:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except (TypeError, ValueError):
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class ResearchCache:
    """
    Envelope ``{version, values: {LITE|DEEP|MAX: {cachedAt, pack}}}`` stored
    under one key per campaign. Every backend failure degrades to a miss or a
    no-op; MAX research is never read from or written to the cache.
    """

    def __init__(
        self,
        backend: BaseCache,
        ttl_seconds: int = 6 * 60 * 60,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self._backend = backend
        self._ttl = max(0, int(ttl_seconds or 0))
        self._clock = clock or _utcnow

    @staticmethod
    def key_for(campaign_id: str) -> str:
        return BaseCache.make_key(campaign_id, RESEARCH_CACHE_KEY)

    def _read_envelope(self, campaign_id: str) -> Optional[Dict[str, Any]]:
        raw = self._backend.get(self.key_for(campaign_id))
        return raw if isinstance(raw, dict) else None

    def load(self, campaign_id: str, level: ResearchLevel) -> Outcome[ResearchPack]:
        """Return the cached pack, or a drop reason explaining the miss."""
        if level is ResearchLevel.MAX:
            return Outcome.dropped(DropReason.CACHE_MISS, "MAX research bypasses the cache")

        try:
            envelope = self._read_envelope(campaign_id)
        except CacheUnavailable as exc:
            logger.error(f"research.cache.error op=load campaign={campaign_id} level={level.value}: {exc}")
            return Outcome.dropped(DropReason.CACHE_UNAVAILABLE, str(exc))

        if envelope is None:
            return self._miss(campaign_id, level, DropReason.CACHE_MISS, "no envelope")
        if envelope.get("version") != RESEARCH_CACHE_VERSION:
            return self._miss(campaign_id, level, DropReason.CACHE_VERSION, f"version={envelope.get('version')}")

        values = envelope.get("values") if isinstance(envelope.get("values"), dict) else {}
        entry = values.get(level.value)
        if not isinstance(entry, dict) or not entry.get("pack"):
            return self._miss(campaign_id, level, DropReason.CACHE_MISS, "no entry for level")

        cached_at = _parse_timestamp(entry.get("cachedAt"))
        if self._ttl > 0:
            if cached_at is None or self._clock() - cached_at > timedelta(seconds=self._ttl):
                return self._miss(campaign_id, level, DropReason.CACHE_EXPIRED, f"cachedAt={entry.get('cachedAt')}")

        try:
            pack = ResearchPack.model_validate(entry["pack"])
        except ValidationError as exc:
            logger.error(f"research.cache.error op=decode campaign={campaign_id} level={level.value}: {exc}")
            return Outcome.dropped(DropReason.CACHE_VERSION, "stored pack does not match the current schema")

        meta = pack.meta.model_copy(update={"cached_at": str(entry.get("cachedAt"))})
        logger.info(f"research.cache.hit campaign={campaign_id} level={level.value} cachedAt={meta.cached_at}")
        return Outcome.success(pack.model_copy(update={"meta": meta}))

    def save(self, campaign_id: str, level: ResearchLevel, pack: ResearchPack) -> bool:
        """Merge the pack into the envelope; other levels are preserved."""
        if level is ResearchLevel.MAX:
            return False

        cached_at = self._clock().isoformat()
        try:
            try:
                envelope = self._read_envelope(campaign_id)
            except CacheUnavailable as exc:
                logger.warning(f"research.cache.error op=read-before-write campaign={campaign_id}: {exc}")
                envelope = None

            if envelope is None or envelope.get("version") != RESEARCH_CACHE_VERSION:
                values: Dict[str, Any] = {}
            else:
                values = dict(envelope.get("values") or {})

            stamped = pack.model_copy(update={"meta": pack.meta.model_copy(update={"cached_at": cached_at})})
            values[level.value] = {"cachedAt": cached_at, "pack": stamped.model_dump(mode="json")}
            self._backend.set(
                self.key_for(campaign_id),
                {"version": RESEARCH_CACHE_VERSION, "values": values},
            )
        except CacheUnavailable as exc:
            logger.error(f"research.cache.error op=save campaign={campaign_id} level={level.value}: {exc}")
            return False

        logger.info(f"research.cache.store campaign={campaign_id} level={level.value} cachedAt={cached_at}")
        return True

    def _miss(self, campaign_id: str, level: ResearchLevel, reason: DropReason, detail: str) -> Outcome[ResearchPack]:
        logger.info(f"research.cache.miss campaign={campaign_id} level={level.value} reason={reason.value}")
        return Outcome.dropped(reason, detail)
