"""
Services - Cache Service

TTL-based cache for search result pages.
"""

import hashlib
import json
import threading
from typing import Any, Optional

from cachetools import TTLCache

from transcript_search.config import get_settings
from transcript_search.schemas import SearchQuery


class CacheService:
    """TTL cache keyed by search scope and normalized query parameters."""

    def __init__(self, settings=None):
        self.settings = settings or get_settings()
        self._lock = threading.Lock()

        self._query_cache = TTLCache(
            maxsize=self.settings.cache.max_entries,
            ttl=self.settings.cache.ttl_query,
        )

    @staticmethod
    def make_key(scope: str, scope_id: str, query: SearchQuery) -> str:
        """
        Build a cache key for a search.

        Args:
            scope: "meeting" or "project"
            scope_id: Meeting or project ID
            query: Validated query

        Returns:
            Key of the form search:<scope>:<id>:<digest>
        """
        params = query.model_dump(mode="json")
        digest = hashlib.sha256(
            json.dumps(params, sort_keys=True).encode()
        ).hexdigest()[:16]
        return f"search:{scope}:{scope_id}:{digest}"

    def get(self, key: str) -> Optional[Any]:
        """
        Get value from cache.

        Args:
            key: Cache key

        Returns:
            Cached value or None
        """
        if not self.settings.cache.enabled:
            return None

        with self._lock:
            return self._query_cache.get(key)

    def set(self, key: str, value: Any) -> None:
        """
        Set value in cache.

        Args:
            key: Cache key
            value: Value to cache
        """
        if not self.settings.cache.enabled:
            return

        with self._lock:
            self._query_cache[key] = value

    def get_stats(self) -> dict:
        """Get cache statistics."""
        return {
            "query_cache": {
                "size": len(self._query_cache),
                "maxsize": self._query_cache.maxsize,
                "ttl": self._query_cache.ttl,
            },
            "enabled": self.settings.cache.enabled,
        }
