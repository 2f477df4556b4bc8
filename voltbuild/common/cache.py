"""In-process cache for list queries, keyed by (entity type, parent id).

Writers never patch cached entries; they invalidate the affected keys. When a
session is passed, the keys are dropped again once that session's transaction
ends, so a list cached by a reader while the write was still uncommitted does
not outlive the commit.
"""

from __future__ import annotations

import threading
import time
import uuid
from typing import Any

from sqlalchemy import event
from sqlalchemy.orm import Session, SessionTransaction

from voltbuild.common.logging import get_logger

logger = get_logger("cache")

CacheKey = tuple[str, str]

PENDING_INFO_KEY = "voltbuild.cache.pending"


def _key(entity: str, parent_id: str | uuid.UUID) -> CacheKey:
    return (entity, str(parent_id))


class QueryCache:
    """Thread-safe map of ``(entity, parent_id)`` to a cached list payload."""

    def __init__(self, ttl_seconds: float = 300.0):
        self.ttl_seconds = ttl_seconds
        self._entries: dict[CacheKey, tuple[float, Any]] = {}
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    def get(self, entity: str, parent_id: str | uuid.UUID) -> Any | None:
        key = _key(entity, parent_id)
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self.misses += 1
                return None
            stored_at, value = entry
            if time.monotonic() - stored_at > self.ttl_seconds:
                del self._entries[key]
                self.misses += 1
                return None
            self.hits += 1
            return value

    def set(self, entity: str, parent_id: str | uuid.UUID, value: Any) -> None:
        with self._lock:
            self._entries[_key(entity, parent_id)] = (time.monotonic(), value)

    def invalidate(self, entity: str, parent_id: str | uuid.UUID, session: Any = None) -> None:
        """Drop a key now and, given a session, again when its transaction ends."""
        key = _key(entity, parent_id)
        self._drop(key)
        if session is not None:
            session.info.setdefault(PENDING_INFO_KEY, []).append((self, key))

    def invalidate_project(self, project_id: str | uuid.UUID, session: Any = None) -> None:
        """Drop every list cached under a project (phases and tasks)."""
        self.invalidate("phases", project_id, session)
        self.invalidate("tasks", project_id, session)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self.hits = 0
            self.misses = 0

    def _drop(self, key: CacheKey) -> None:
        with self._lock:
            removed = self._entries.pop(key, None)
        if removed is not None:
            logger.debug("Invalidated cache %s/%s", key[0], key[1])

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


@event.listens_for(Session, "after_transaction_end")
def _drop_pending_keys(session: Session, transaction: SessionTransaction) -> None:
    # Savepoints end inside the outer transaction
    if transaction.parent is not None:
        return
    for cache, key in session.info.pop(PENDING_INFO_KEY, []):
        cache._drop(key)


# Global singleton
query_cache = QueryCache()
