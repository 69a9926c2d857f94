"""
News cache service.

Merges headlines from the configured feeds per topic, dedupes by canonical
URL (earlier feeds win), sorts newest first and caps the list. The merged
list is cached behind the SWR coordinator.
"""

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

import structlog

from ..core.exceptions import ValidationError
from ..core.utils.date_utils import parse_iso
from .swr import CacheKeys, SWRCoordinator

logger = structlog.get_logger()

NewsFetcher = Callable[[], Awaitable[list[dict[str, Any]]]]

TRACKING_PARAMS = {"utm_source", "utm_medium", "utm_campaign", "ref"}


def canonicalize_url(url: str) -> str:
    """
    Canonical form of an article URL for deduplication.

    Drops tracking parameters, lowercases, strips a trailing slash.
    """
    url = (url or "").strip()
    try:
        parts = urlsplit(url)
    except ValueError:
        return url.lower()
    if not parts.scheme or not parts.netloc:
        return url.lower().rstrip("/")

    query = urlencode(
        [(k, v) for k, v in parse_qsl(parts.query, keep_blank_values=True) if k not in TRACKING_PARAMS]
    )
    rebuilt = urlunsplit((parts.scheme, parts.netloc, parts.path, query, parts.fragment))
    return rebuilt.lower().rstrip("/")


def dedupe_by_url(items: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Keep the first item for each canonical URL."""
    seen: set[str] = set()
    unique = []
    for item in items:
        key = canonicalize_url(item.get("url", ""))
        if not key or key in seen:
            continue
        seen.add(key)
        unique.append(item)
    return unique


def _published_sort_key(item: dict[str, Any]) -> float:
    published = parse_iso(item.get("published_at"))
    return published.timestamp() if published else 0.0


def merge_news(
    feeds: list[list[dict[str, Any]]], max_items: int = 50
) -> list[dict[str, Any]]:
    """Merge feeds in priority order, dedupe, sort newest first, cap."""
    merged = dedupe_by_url([item for feed in feeds for item in feed])
    merged.sort(key=_published_sort_key, reverse=True)
    return merged[:max_items]


class NewsCacheService:
    """Cached, merged news per topic."""

    def __init__(
        self,
        coordinator: SWRCoordinator,
        feeds: dict[str, list[NewsFetcher]],
        ttl_seconds: int = 1800,
        max_items: int = 50,
    ):
        """
        Args:
            coordinator: SWR coordinator
            feeds: Topic -> fetchers in priority order
            ttl_seconds: Freshness window for a merged list
            max_items: Cap on returned items
        """
        self.coordinator = coordinator
        self.feeds = feeds
        self.ttl_seconds = ttl_seconds
        self.max_items = max_items

    @property
    def topics(self) -> list[str]:
        return sorted(self.feeds)

    async def _refresh(self, topic: str) -> list[dict[str, Any]] | None:
        fetchers = self.feeds[topic]
        results = await asyncio.gather(*(fetch() for fetch in fetchers), return_exceptions=True)

        feeds = []
        for index, result in enumerate(results):
            if isinstance(result, BaseException):
                logger.warning(
                    "News feed failed",
                    topic=topic,
                    feed_index=index,
                    error=str(result),
                )
                continue
            feeds.append(result)

        if not feeds:
            # Every feed failed: report a refresh failure so stale data is kept
            return None

        items = merge_news(feeds, self.max_items)
        logger.info("News merged", topic=topic, feeds=len(feeds), items=len(items))
        return items

    async def get_news(self, topic: str) -> dict[str, Any]:
        """
        Merged news for a topic plus cache metadata.

        Raises:
            ValidationError: If the topic has no configured feeds
        """
        topic = (topic or "").strip().lower()
        if topic not in self.feeds:
            raise ValidationError(f"Unknown news topic: {topic}", supported=self.topics)

        result = await self.coordinator.get_or_refresh(
            CacheKeys.news(topic), self.ttl_seconds, lambda: self._refresh(topic)
        )
        return {
            "topic": topic,
            "items": result.value or [],
            "unavailable": result.unavailable,
            **result.metadata(),
        }
