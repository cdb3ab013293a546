"""
Time-boxed cache for the external crusade feed.

Callers only use ``get`` and ``put``, so the in-process cache can be replaced
with the Firestore-backed one (shared between workers) through configuration.
Neither backend locks: two concurrent refreshes may both fetch the feed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional

from google.api_core.exceptions import GoogleAPIError

from crusades.core.config import settings
from crusades.services.firebase_client import get_firestore_client

logger = logging.getLogger(__name__)

FeedItems = List[Dict[str, Any]]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class CacheEntry:
    value: FeedItems
    fetched_at: datetime
    ttl: timedelta

    def is_fresh(self, now: Optional[datetime] = None) -> bool:
        now = now or utcnow()
        return now - self.fetched_at < self.ttl


class FeedCache:
    """Interface shared by the cache backends"""

    def __init__(self, ttl_seconds: int = 300, clock: Callable[[], datetime] = utcnow):
        self.ttl = timedelta(seconds=ttl_seconds)
        self.clock = clock

    def get(self) -> Optional[CacheEntry]:
        raise NotImplementedError

    def put(self, items: FeedItems) -> CacheEntry:
        raise NotImplementedError


class MemoryFeedCache(FeedCache):
    """Process-local cache"""

    def __init__(self, ttl_seconds: int = 300, clock: Callable[[], datetime] = utcnow):
        super().__init__(ttl_seconds, clock)
        self._entry: Optional[CacheEntry] = None

    def get(self) -> Optional[CacheEntry]:
        return self._entry

    def put(self, items: FeedItems) -> CacheEntry:
        self._entry = CacheEntry(value=list(items), fetched_at=self.clock(), ttl=self.ttl)
        return self._entry


class FirestoreFeedCache(FeedCache):
    """Cache stored as a single Firestore document, shared by all workers"""

    COLLECTION = "feed_cache"

    def __init__(
        self,
        ttl_seconds: int = 300,
        clock: Callable[[], datetime] = utcnow,
        document_id: str = "external_crusades",
        client=None,
    ):
        super().__init__(ttl_seconds, clock)
        self.document_id = document_id
        self._client = client

    def _document(self):
        fs = self._client or get_firestore_client()
        if fs is None:
            return None
        return fs.collection(self.COLLECTION).document(self.document_id)

    def get(self) -> Optional[CacheEntry]:
        doc_ref = self._document()
        if doc_ref is None:
            return None
        try:
            doc = doc_ref.get()
        except GoogleAPIError as e:
            logger.warning(f"Feed cache read failed, treating as a miss: {e}")
            return None
        if not doc.exists:
            return None
        data = doc.to_dict() or {}
        try:
            fetched_at = datetime.fromisoformat(data["fetched_at"])
        except (KeyError, TypeError, ValueError):
            logger.warning("Ignoring malformed feed cache document")
            return None
        return CacheEntry(value=list(data.get("items") or []), fetched_at=fetched_at, ttl=self.ttl)

    def put(self, items: FeedItems) -> CacheEntry:
        entry = CacheEntry(value=list(items), fetched_at=self.clock(), ttl=self.ttl)
        doc_ref = self._document()
        if doc_ref is not None:
            try:
                doc_ref.set({
                    "items": entry.value,
                    "fetched_at": entry.fetched_at.isoformat(),
                })
            except GoogleAPIError as e:
                logger.warning(f"Feed cache write failed: {e}")
        return entry


def build_feed_cache() -> FeedCache:
    if settings.FEED_CACHE_BACKEND == "firestore":
        return FirestoreFeedCache(ttl_seconds=settings.FEED_CACHE_TTL_SECONDS)
    return MemoryFeedCache(ttl_seconds=settings.FEED_CACHE_TTL_SECONDS)
