"""Recent headlines for a niche from the Google News RSS search feed."""
from __future__ import annotations

import logging
from typing import List

import feedparser
import httpx

from trend_engine.errors import SourceUnavailableError
from trend_engine.models import TextItem

from .interest_source import USER_AGENT

logger = logging.getLogger(__name__)

NEWS_RSS_URL = "https://news.google.com/rss/search"


def entries_to_items(entries, limit: int) -> List[TextItem]:
    """Convert parsed feed entries to :class:`TextItem`, skipping untitled ones."""
    items: List[TextItem] = []
    for entry in entries:
        title = (entry.get("title") or "").strip()
        if not title:
            continue
        source = entry.get("source") or {}
        items.append(TextItem(
            title=title,
            link=entry.get("link", ""),
            published_at=entry.get("published"),
            source=source.get("title", "") if isinstance(source, dict) else "",
        ))
        if len(items) >= limit:
            break
    return items


class GoogleNewsSource:
    """Keyword search against Google News, newest stories first as served."""

    name = "google_news"

    def __init__(self, timeout: float = 15.0, language: str = "en", geo: str = "", client: httpx.Client | None = None):
        self.language = language
        self.geo = geo
        self.client = client or httpx.Client(
            timeout=timeout,
            follow_redirects=True,
            headers={"User-Agent": USER_AGENT},
        )

    def fetch(self, query: str, limit: int = 5) -> List[TextItem]:
        """Return up to *limit* headlines for *query*.

        Raises:
            SourceUnavailableError: On network failure or an unreadable feed.
        """
        params = {"q": query, "hl": self.language}
        if self.geo:
            params["gl"] = self.geo
            params["ceid"] = f"{self.geo}:{self.language}"
        try:
            response = self.client.get(NEWS_RSS_URL, params=params)
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise SourceUnavailableError(f"news feed failed for '{query}': {e}") from e

        feed = feedparser.parse(response.text)
        if feed.bozo and not feed.entries:
            raise SourceUnavailableError(f"unreadable news feed for '{query}': {feed.get('bozo_exception')}")

        items = entries_to_items(feed.entries, limit)
        logger.debug(f"News feed returned {len(items)} items for '{query}'")
        return items

    def close(self) -> None:
        self.client.close()
