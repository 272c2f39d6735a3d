"""
Response Cache

Caches provider responses by (model, prompt) so repeated fingerprints of the
same business skip the network call.

Entries live in memory and, when a path is configured, are mirrored to a
single JSON file so the cache survives restarts. Inserts only mark the cache
dirty; ``flush()`` writes the file (atomically, through a temporary file) and
is called when the query client closes. The cache is shared read
by concurrent queries; writes only ever add or replace whole entries.
"""

import hashlib
import json
import logging
import os
from dataclasses import dataclass
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


@dataclass
class CacheEntry:
    """Cache entry with metadata."""
    key: str
    data: Dict
    created_at: datetime
    expires_at: datetime
    hit_count: int = 0

    def is_expired(self) -> bool:
        """Check if entry has expired."""
        return datetime.now() > self.expires_at

    def to_dict(self) -> Dict:
        """Convert to dictionary."""
        return {
            "key": self.key,
            "data": self.data,
            "created_at": self.created_at.isoformat(),
            "expires_at": self.expires_at.isoformat(),
            "hit_count": self.hit_count,
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "CacheEntry":
        """Create from dictionary."""
        return cls(
            key=data["key"],
            data=data["data"],
            created_at=datetime.fromisoformat(data["created_at"]),
            expires_at=datetime.fromisoformat(data["expires_at"]),
            hit_count=data.get("hit_count", 0),
        )


class ResponseCache:
    """
    Content-addressed cache for model responses.

    Usage:
        cache = ResponseCache(ttl_hours=24)
        cached = cache.get(model, prompt)
        if cached is None:
            ...
            cache.set(model, prompt, {"content": text, "tokens_used": 120})
    """

    def __init__(
        self,
        ttl_hours: int = 24,
        cache_path: Optional[str] = None,
        enabled: bool = True,
    ):
        """
        Initialize cache.

        Args:
            ttl_hours: Lifetime of an entry
            cache_path: Optional JSON file mirroring the cache
            enabled: Whether caching is enabled
        """
        self.ttl_hours = ttl_hours
        self.cache_path = Path(cache_path) if cache_path else None
        self.enabled = enabled
        self._entries: Dict[str, CacheEntry] = {}
        self._dirty = False

        # Stats
        self._hits = 0
        self._misses = 0

        if self.enabled and self.cache_path and self.cache_path.exists():
            self._load()

        logger.info(
            f"ResponseCache initialized (enabled={enabled}, ttl={ttl_hours}h, "
            f"path={self.cache_path})"
        )

    @staticmethod
    def generate_key(model: str, prompt: str) -> str:
        """Generate cache key from request parameters."""
        return hashlib.sha256(f"{model}:{prompt}".encode()).hexdigest()[:32]

    def get(self, model: str, prompt: str) -> Optional[Dict]:
        """
        Get cached response.

        Returns:
            Cached data or None if not found/expired
        """
        if not self.enabled:
            return None

        key = self.generate_key(model, prompt)
        entry = self._entries.get(key)

        if entry is None:
            self._misses += 1
            return None

        if entry.is_expired():
            del self._entries[key]
            self._misses += 1
            return None

        entry.hit_count += 1
        self._hits += 1
        logger.debug(f"Cache HIT for {model} ({key[:8]})")
        return dict(entry.data)

    def set(self, model: str, prompt: str, data: Dict, ttl_hours: Optional[int] = None):
        """
        Cache a response.

        Args:
            model: Model identifier
            prompt: Prompt text
            data: Response data to cache
            ttl_hours: Custom TTL in hours (overrides default)
        """
        if not self.enabled:
            return

        key = self.generate_key(model, prompt)
        ttl = ttl_hours or self.ttl_hours
        now = datetime.now()

        self._entries[key] = CacheEntry(
            key=key,
            data=dict(data),
            created_at=now,
            expires_at=now + timedelta(hours=ttl),
        )
        self._dirty = True
        logger.debug(f"Cached {model} ({key[:8]}) for {ttl}h")

    def flush(self):
        """Write pending changes to the cache file, if one is configured."""
        if self.cache_path and self._dirty:
            self._save()

    def clear(self):
        """Drop every entry."""
        self._entries.clear()
        self._dirty = True
        self.flush()
        logger.info("Cleared response cache")

    def cleanup_expired(self) -> int:
        """
        Remove expired cache entries.

        Returns:
            Number of entries removed
        """
        expired = [key for key, entry in self._entries.items() if entry.is_expired()]
        for key in expired:
            del self._entries[key]

        if expired:
            self._dirty = True
            self.flush()

        logger.info(f"Cleaned up {len(expired)} expired cache entries")
        return len(expired)

    def get_stats(self) -> Dict[str, Any]:
        """Get cache statistics."""
        total_requests = self._hits + self._misses
        hit_rate = (self._hits / total_requests * 100) if total_requests else 0

        return {
            "enabled": self.enabled,
            "hits": self._hits,
            "misses": self._misses,
            "hit_rate_percent": round(hit_rate, 1),
            "entry_count": len(self._entries),
            "ttl_hours": self.ttl_hours,
        }

    def __len__(self) -> int:
        return len(self._entries)

    # =========================================================================
    # Persistence
    # =========================================================================

    def _load(self):
        try:
            with open(self.cache_path, "r", encoding="utf-8") as f:
                raw = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning(f"Cache read error: {e}")
            return

        if not isinstance(raw, dict) or not isinstance(raw.get("entries"), list):
            logger.warning(f"Ignoring cache file with unexpected layout: {self.cache_path}")
            return

        loaded = 0
        for item in raw["entries"]:
            try:
                entry = CacheEntry.from_dict(item)
            except (KeyError, TypeError, ValueError) as e:
                logger.warning(f"Skipping malformed cache entry: {e}")
                continue
            if not entry.is_expired():
                self._entries[entry.key] = entry
                loaded += 1

        logger.info(f"Loaded {loaded} cache entries from {self.cache_path}")

    def _save(self):
        # Readers only ever see the old file or the complete new one
        tmp_path = self.cache_path.with_name(self.cache_path.name + ".tmp")
        try:
            self.cache_path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(
                    {"entries": [entry.to_dict() for entry in self._entries.values()]},
                    f,
                )
            os.replace(tmp_path, self.cache_path)
        except OSError as e:
            logger.warning(f"Cache write error: {e}")
            return

        self._dirty = False
        logger.debug(f"Wrote {len(self._entries)} cache entries to {self.cache_path}")
