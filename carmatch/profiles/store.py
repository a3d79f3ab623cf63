"""
Session-keyed state.

Profiles and description caches live behind a small key-value interface so
the in-memory default can be swapped for a shared store. Feedback for one
session is applied under that session's lock: the Welford accumulator is a
read-modify-write and must not interleave.
"""
from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import Any, Iterator, Protocol

from ..recommendations.models import Listing
from .profile import UserProfile, apply_feedback

logger = logging.getLogger(__name__)

ANONYMOUS_SESSION = "anonymous"


class SessionStore(Protocol):
    def get(self, key: str) -> Any | None: ...

    def put(self, key: str, value: Any) -> None: ...

    def delete(self, key: str) -> None: ...

    def lock(self, key: str): ...


class InMemorySessionStore:
    """Thread-safe dict-backed store with one re-entrant lock per key."""

    def __init__(self) -> None:
        self._data: dict[str, Any] = {}
        self._locks: dict[str, threading.RLock] = {}
        self._guard = threading.Lock()

    def get(self, key: str) -> Any | None:
        with self._guard:
            return self._data.get(key)

    def put(self, key: str, value: Any) -> None:
        with self._guard:
            self._data[key] = value

    def delete(self, key: str) -> None:
        with self._guard:
            self._data.pop(key, None)
            self._locks.pop(key, None)

    @contextmanager
    def lock(self, key: str) -> Iterator[None]:
        with self._guard:
            key_lock = self._locks.setdefault(key, threading.RLock())
        with key_lock:
            yield

    def __len__(self) -> int:
        with self._guard:
            return len(self._data)

    def clear(self) -> None:
        with self._guard:
            self._data.clear()
            self._locks.clear()


def _session_key(session_id: str | None) -> str:
    key = (session_id or "").strip()
    return key or ANONYMOUS_SESSION


class ProfileStore:
    def __init__(self, backend: SessionStore | None = None) -> None:
        self.backend = backend if backend is not None else InMemorySessionStore()

    def get(self, session_id: str | None) -> UserProfile | None:
        return self.backend.get(_session_key(session_id))

    def get_or_create(self, session_id: str | None) -> UserProfile:
        """Return the session's profile, creating a zeroed one on first access."""
        key = _session_key(session_id)
        with self.backend.lock(key):
            profile = self.backend.get(key)
            if profile is None:
                profile = UserProfile()
                self.backend.put(key, profile)
                logger.debug("Created profile for session %s", key)
            return profile

    def apply(self, session_id: str | None, listing: Listing, feedback: str) -> UserProfile:
        key = _session_key(session_id)
        with self.backend.lock(key):
            profile = self.get_or_create(key)
            apply_feedback(profile, listing, feedback)
            # Shared backends hold copies, so write the mutated profile back.
            self.backend.put(key, profile)
            return profile

    def delete(self, session_id: str | None) -> None:
        self.backend.delete(_session_key(session_id))
