"""Disk-based cache for external ``$ref`` documents.

Uses :mod:`diskcache` to keep the bodies of documents fetched while bundling
(shared schema libraries referenced from many specs) for a configurable
time-to-live.  Only 2xx responses are stored.  The primary document of an
import is never cached, so re-importing a URL always sees its current
content.

Cache keys are SHA-256 hashes of ``GET|<url without fragment>``.

See Also:
    :class:`~specdash.models.CacheConfig` -- ``enabled`` and ``ttl_seconds``.
"""

from __future__ import annotations

import hashlib
from pathlib import Path
from typing import Any, Optional
from urllib.parse import urldefrag

import diskcache

from specdash.models import CacheConfig


class RefCache:
    """Disk-backed cache of fetched ``$ref`` documents.

    Stores dicts with ``status_code``, ``content_type`` and ``body`` keys in
    a :class:`diskcache.Cache` directory.

    Args:
        cache_dir: Root directory for the cache.  A ``refs/`` subdirectory
            is created inside it.
        config: Cache configuration (``enabled`` flag and ``ttl_seconds``).

    Example::

        cache = RefCache("/tmp/specdash-cache", CacheConfig(ttl_seconds=600))
        cache.set("https://example.com/schemas.yaml", {
            "status_code": 200, "content_type": "application/yaml", "body": "Pet: {}"
        })
        hit = cache.get("https://example.com/schemas.yaml")
    """

    def __init__(self, cache_dir: str | Path, config: CacheConfig) -> None:
        self._config = config
        self._cache: Optional[diskcache.Cache] = None
        self._cache_dir = Path(cache_dir)
        if config.enabled:
            self._cache = diskcache.Cache(str(self._cache_dir / "refs"))

    def get(self, url: str) -> Optional[dict[str, Any]]:
        """Return the cached entry for *url*, or ``None`` on a miss or when disabled."""
        if self._cache is None:
            return None
        return self._cache.get(self._make_key(url))

    def set(self, url: str, response_data: dict[str, Any]) -> None:
        """Store a fetched document.

        Entries whose ``status_code`` is not 2xx are ignored.
        """
        if self._cache is None:
            return
        status = response_data.get("status_code", 0)
        if not (200 <= status < 300):
            return
        self._cache.set(self._make_key(url), response_data, expire=self._config.ttl_seconds)

    def invalidate(self, url: str) -> None:
        if self._cache is None:
            return
        self._cache.delete(self._make_key(url))

    def clear(self) -> None:
        """Remove all entries from the cache."""
        if self._cache is not None:
            self._cache.clear()

    def stats(self) -> dict[str, Any]:
        """Return ``enabled`` and, when enabled, ``size``, ``directory``, ``ttl_seconds``."""
        if self._cache is None:
            return {"enabled": False}
        return {
            "enabled": True,
            "size": len(self._cache),
            "directory": str(self._cache_dir / "refs"),
            "ttl_seconds": self._config.ttl_seconds,
        }

    def close(self) -> None:
        if self._cache is not None:
            self._cache.close()

    def _make_key(self, url: str) -> str:
        raw = f"GET|{urldefrag(url)[0]}"
        return hashlib.sha256(raw.encode()).hexdigest()
