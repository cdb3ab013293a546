"""
Client for the externally hosted crusade feed.

The feed is a JSON document shaped as a bare array, ``{"crusades": [...]}`` or
``{"data": [...]}``. Fetches go through the feed cache; when a fetch fails the
last good value is served regardless of age, and an empty list if there is
none.
"""

import logging
from typing import Any, Dict, List, Optional

import httpx
from pydantic import ValidationError

from crusades.core.config import settings
from crusades.core.parties import EXTERNAL_OWNER_MARKER
from crusades.schemas.event import ExternalCrusade
from crusades.services.feed_cache import FeedCache, build_feed_cache

logger = logging.getLogger(__name__)

WRAPPER_KEYS = ("crusades", "data")


def extract_items(payload: Any) -> Optional[List[Any]]:
    """Pull the item array out of any of the accepted response shapes"""
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict):
        for key in WRAPPER_KEYS:
            if isinstance(payload.get(key), list):
                return payload[key]
    return None


def normalize_items(raw_items: List[Any]) -> List[Dict[str, Any]]:
    items = []
    for raw in raw_items:
        try:
            items.append(ExternalCrusade.model_validate(raw).model_dump())
        except ValidationError:
            logger.warning(f"Skipping malformed external crusade: {raw!r:.200}")
    return items


def as_event(item: Dict[str, Any]) -> Dict[str, Any]:
    """Project a feed item into the event shape served to clients"""
    return {
        **item,
        "category": "Crusade",
        "featured": True,
        "created_by": EXTERNAL_OWNER_MARKER,
        "external": True,
    }


class ExternalFeedClient:
    """Fetches and caches the external crusade list"""

    def __init__(
        self,
        url: str,
        cache: FeedCache,
        timeout: float = 10.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.url = url
        self.cache = cache
        self.timeout = timeout
        self.transport = transport

    def fetch_all(self) -> List[Dict[str, Any]]:
        entry = self.cache.get()
        if entry is not None and entry.is_fresh(self.cache.clock()):
            return entry.value

        try:
            items = self._download()
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Failed to fetch external crusades: {e}")
            items = None

        if items is None:
            return entry.value if entry is not None else []

        return self.cache.put(items).value

    def find(self, event_id: int) -> Optional[Dict[str, Any]]:
        for item in self.fetch_all():
            if item.get("id") == event_id:
                return item
        return None

    def _download(self) -> Optional[List[Dict[str, Any]]]:
        with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
            response = client.get(self.url, headers={"Accept": "application/json"})
            response.raise_for_status()
            payload = response.json()

        raw_items = extract_items(payload)
        if raw_items is None:
            logger.warning(f"External crusades feed returned unexpected shape: {type(payload).__name__}")
            return None
        return normalize_items(raw_items)


_feed_client: Optional[ExternalFeedClient] = None


def get_feed_client() -> ExternalFeedClient:
    """Process-wide feed client used as a FastAPI dependency"""
    global _feed_client
    if _feed_client is None:
        _feed_client = ExternalFeedClient(
            url=settings.EXTERNAL_CRUSADES_URL,
            cache=build_feed_cache(),
            timeout=settings.HTTP_TIMEOUT_SECONDS,
        )
    return _feed_client
