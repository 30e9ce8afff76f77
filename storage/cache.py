"""
Cache
Key-value backends for persisted research assets.

Values are JSON-compatible blobs. ``DiskCache`` writes each key atomically
(temp file + rename) so a reader never sees a half-written entry and the
store survives process restarts.
"""
from abc import ABC, abstractmethod
from typing import Any, Optional, Dict
from pathlib import Path
from datetime import datetime, timedelta
import hashlib
import json
import logging
import os
import shutil
import tempfile

from utils.exceptions import CacheUnavailable, ConfigurationError


logger = logging.getLogger(__name__)


class BaseCache(ABC):
    """
    Key-value cache interface.
    """

    def __init__(self, ttl: Optional[int] = None):
        """
        Args:
            ttl: default expiry in seconds, None = never expires
        """
        self.ttl = ttl

    @abstractmethod
    def get(self, key: str) -> Optional[Any]:
        """Return the stored value or None."""
        pass

    @abstractmethod
    def set(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        """Store a value."""
        pass

    @abstractmethod
    def delete(self, key: str) -> None:
        pass

    @abstractmethod
    def clear(self) -> None:
        pass

    def exists(self, key: str) -> bool:
        return self.get(key) is not None

    @staticmethod
    def make_key(*args, **kwargs) -> str:
        """
        Build a filesystem-safe key from arbitrary parts.

        Args:
            *args: positional parts
            **kwargs: keyword parts (sorted)

        Returns:
            md5 hex digest of the joined parts
        """
        key_parts = [str(arg) for arg in args]
        key_parts.extend([f"{k}={v}" for k, v in sorted(kwargs.items())])
        key_string = ":".join(key_parts)
        return hashlib.md5(key_string.encode()).hexdigest()

    def _expires_at(self, ttl: Optional[int]) -> Optional[datetime]:
        ttl = ttl or self.ttl
        if not ttl:
            return None
        return datetime.now() + timedelta(seconds=ttl)


class MemoryCache(BaseCache):
    """
    In-process dictionary cache for tests and single-run evaluations.
    """

    def __init__(self, ttl: Optional[int] = None, max_size: int = 1000):
        super().__init__(ttl)
        self.max_size = max_size
        self._cache: Dict[str, Dict] = {}

    def _is_expired(self, entry: Dict) -> bool:
        if entry.get("expires_at") is None:
            return False
        return datetime.now() > entry["expires_at"]

    def _cleanup(self):
        expired_keys = [k for k, v in self._cache.items() if self._is_expired(v)]
        for key in expired_keys:
            del self._cache[key]

        # Evict oldest entries beyond the size limit.
        if len(self._cache) > self.max_size:
            sorted_keys = sorted(
                self._cache.keys(),
                key=lambda k: self._cache[k].get("created_at", datetime.min),
            )
            for key in sorted_keys[: len(self._cache) - self.max_size]:
                del self._cache[key]

    def get(self, key: str) -> Optional[Any]:
        entry = self._cache.get(key)
        if entry is None:
            return None

        if self._is_expired(entry):
            del self._cache[key]
            return None

        # Hand out a copy so callers cannot mutate the stored blob.
        return json.loads(entry["value"])

    def set(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        try:
            blob = json.dumps(value, ensure_ascii=False)
        except (TypeError, ValueError) as e:
            raise CacheUnavailable(f"Value for {key} is not JSON serialisable", {"error": str(e)}) from e

        self._cache[key] = {
            "value": blob,
            "created_at": datetime.now(),
            "expires_at": self._expires_at(ttl),
        }
        self._cleanup()

    def delete(self, key: str) -> None:
        self._cache.pop(key, None)

    def clear(self) -> None:
        self._cache.clear()

    def size(self) -> int:
        return len(self._cache)


class DiskCache(BaseCache):
    """
    One JSON file per key, written atomically.
    """

    def __init__(self, cache_dir: str = "./data/research_cache", ttl: Optional[int] = None):
        """
        Args:
            cache_dir: directory holding the entry files
            ttl: default expiry in seconds
        """
        super().__init__(ttl)
        self.cache_dir = Path(cache_dir)
        try:
            self.cache_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise CacheUnavailable(f"Cannot create cache dir {cache_dir}", {"error": str(e)}) from e

    def _get_path(self, key: str) -> Path:
        return self.cache_dir / f"{key}.json"

    def get(self, key: str) -> Optional[Any]:
        path = self._get_path(key)

        if not path.exists():
            return None

        try:
            with open(path, "r", encoding="utf-8") as f:
                entry = json.load(f)
        except (OSError, ValueError) as e:
            logger.error(f"Failed to load cache {key}: {e}")
            raise CacheUnavailable(f"Failed to load cache {key}", {"error": str(e)}) from e

        expires_at = entry.get("expires_at") if isinstance(entry, dict) else None
        if expires_at is not None and datetime.now().timestamp() > float(expires_at):
            self.delete(key)
            return None

        return entry.get("value") if isinstance(entry, dict) else None

    def set(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        path = self._get_path(key)
        expires_at = self._expires_at(ttl)
        entry = {
            "created_at": datetime.now().timestamp(),
            "expires_at": expires_at.timestamp() if expires_at else None,
            "value": value,
        }

        tmp_name = None
        try:
            fd, tmp_name = tempfile.mkstemp(dir=self.cache_dir, prefix=f".{key}.", suffix=".tmp")
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(entry, f, ensure_ascii=False)
            os.replace(tmp_name, path)
        except (OSError, TypeError, ValueError) as e:
            logger.error(f"Failed to save cache {key}: {e}")
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise CacheUnavailable(f"Failed to save cache {key}", {"error": str(e)}) from e

    def delete(self, key: str) -> None:
        path = self._get_path(key)
        try:
            if path.exists():
                path.unlink()
        except OSError as e:
            raise CacheUnavailable(f"Failed to delete cache {key}", {"error": str(e)}) from e

    def clear(self) -> None:
        shutil.rmtree(self.cache_dir, ignore_errors=True)
        self.cache_dir.mkdir(parents=True, exist_ok=True)

    def size(self) -> int:
        return len(list(self.cache_dir.glob("*.json")))


def get_cache(
    provider: str = "memory",
    cache_dir: str = "./data/research_cache",
    ttl: Optional[int] = None,
    **kwargs,
) -> BaseCache:
    """
    Build a cache backend.

    Args:
        provider: memory | disk
        cache_dir: disk cache directory
        ttl: default expiry

    Returns:
        Cache instance
    """
    if provider == "memory":
        return MemoryCache(ttl=ttl, **kwargs)
    elif provider == "disk":
        return DiskCache(cache_dir=cache_dir, ttl=ttl)
    else:
        raise ConfigurationError(f"Unknown cache provider: {provider}")
