"""Short-lived read-through cache of active suspensions, keyed by member id."""

from __future__ import annotations

import time
from typing import Callable, Iterable, Optional

from league.config import settings
from league.models.suspensions import SuspensionRead
from league.services.stores import SuspensionStore


class SuspensionCache:
    """Caches ``SuspensionStore.list_active`` per member.

    Entries expire after ``ttl_seconds``. Every suspension mutation must call
    ``invalidate`` for the affected member. The API keeps one cache for the
    process and ``bind``s it to each request's store.
    """

    def __init__(
        self,
        store: Optional[SuspensionStore] = None,
        ttl_seconds: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.store = store
        self.ttl_seconds = (
            settings.suspension_cache_ttl_seconds if ttl_seconds is None else ttl_seconds
        )
        self._clock = clock
        self._entries: dict[str, tuple[float, list[SuspensionRead]]] = {}

    def bind(self, store: SuspensionStore) -> "SuspensionCache":
        """A cache reading through ``store`` that shares this cache's entries."""
        bound = SuspensionCache(store, self.ttl_seconds, self._clock)
        bound._entries = self._entries
        return bound

    def _require_store(self) -> SuspensionStore:
        if self.store is None:
            raise RuntimeError("SuspensionCache has no store; bind() it first")
        return self.store

    def peek(self, member_id: str) -> Optional[list[SuspensionRead]]:
        """Return the cached active suspensions, or None on a miss or stale entry."""
        entry = self._entries.get(member_id)
        if entry is None:
            return None
        stored_at, suspensions = entry
        if self._clock() - stored_at >= self.ttl_seconds:
            del self._entries[member_id]
            return None
        return list(suspensions)

    def _put(self, member_id: str, suspensions: list[SuspensionRead]) -> None:
        self._entries[member_id] = (self._clock(), list(suspensions))

    async def get_active(self, member_id: str) -> list[SuspensionRead]:
        cached = self.peek(member_id)
        if cached is not None:
            return cached
        suspensions = await self._require_store().list_active([member_id])
        self._put(member_id, suspensions)
        return list(suspensions)

    async def prefetch(self, member_ids: Iterable[str]) -> dict[str, list[SuspensionRead]]:
        """Load active suspensions for many members with a single store query."""
        ids = list(dict.fromkeys(member_ids))
        active = await self._require_store().list_active(ids)
        grouped: dict[str, list[SuspensionRead]] = {member_id: [] for member_id in ids}
        for suspension in active:
            grouped.setdefault(suspension.member_id, []).append(suspension)
        for member_id, suspensions in grouped.items():
            self._put(member_id, suspensions)
        return grouped

    def invalidate(self, member_id: Optional[str] = None) -> None:
        if member_id is None:
            self._entries.clear()
        else:
            self._entries.pop(member_id, None)

    def __contains__(self, member_id: str) -> bool:
        return self.peek(member_id) is not None
