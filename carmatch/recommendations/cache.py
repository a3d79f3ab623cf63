"""Per-session cache of generated listing descriptions."""
from __future__ import annotations

import threading
import time
from typing import Any

from ..profiles.store import InMemorySessionStore, SessionStore

_DEFAULT_TTL = 3600  # 1 hour


def _session_cache_key(session_id: str) -> str:
    return f"descriptions:{session_id}"


class DescriptionCache:
    """Listing id -> description text, scoped to one session.

    Entries live in a ``SessionStore`` so they share the profile store's
    backend when one is injected. Only description text is cached; scores
    are recomputed on every request.
    """

    def __init__(self, backend: SessionStore | None = None, ttl: float = _DEFAULT_TTL) -> None:
        self.backend = backend if backend is not None else InMemorySessionStore()
        self.ttl = ttl
        self._hits = 0
        self._misses = 0
        self._stats_lock = threading.Lock()

    def _entries(self, session_id: str) -> dict[int, dict[str, Any]]:
        return self.backend.get(_session_cache_key(session_id)) or {}

    def get(self, session_id: str, listing_id: int) -> str | None:
        key = _session_cache_key(session_id)
        with self.backend.lock(key):
            entries = self._entries(session_id)
            entry = entries.get(listing_id)
            if entry and time.time() - entry["created_at"] < self.ttl:
                self._count(hit=True)
                return entry["value"]
            if entry:
                del entries[listing_id]
                self.backend.put(key, entries)
        self._count(hit=False)
        return None

    def set(self, session_id: str, listing_id: int, description: str) -> None:
        key = _session_cache_key(session_id)
        with self.backend.lock(key):
            entries = self._entries(session_id)
            entries[listing_id] = {"value": description, "created_at": time.time()}
            self.backend.put(key, entries)

    def clear_session(self, session_id: str) -> None:
        self.backend.delete(_session_cache_key(session_id))

    def _count(self, hit: bool) -> None:
        with self._stats_lock:
            if hit:
                self._hits += 1
            else:
                self._misses += 1

    def stats(self) -> dict:
        total = self._hits + self._misses
        return {
            "hits": self._hits,
            "misses": self._misses,
            "hit_rate": round(self._hits / total * 100, 1) if total > 0 else 0.0,
        }
