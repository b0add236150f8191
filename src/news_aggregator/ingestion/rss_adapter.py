"""RSS/Atom feed source adapter."""

from __future__ import annotations

import logging
import re
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from html import unescape
from typing import Callable

import feedparser
import httpx

from news_aggregator.ingestion.adapter import (
    FrontierInFutureError,
    MalformedContentError,
    SourceAdapter,
    SourceFetchError,
)
from news_aggregator.ingestion.article import Article, sort_by_published_at

logger = logging.getLogger(__name__)

_HTML_TAG_RE = re.compile(r"<[^>]+>")


def strip_html(text: str) -> str:
    """Remove HTML tags and unescape entities."""
    return unescape(_HTML_TAG_RE.sub("", text)).strip()


def _parse_pub_date(entry: dict) -> datetime | None:
    """Extract the publication date from a feed entry, as an aware datetime."""
    raw = entry.get("published") or entry.get("updated")
    if raw:
        try:
            dt = parsedate_to_datetime(raw)
            if dt.tzinfo is None:
                dt = dt.replace(tzinfo=timezone.utc)
            return dt
        except (ValueError, TypeError):
            pass
    # feedparser sometimes provides a parsed tuple
    parsed = entry.get("published_parsed") or entry.get("updated_parsed")
    if parsed:
        try:
            return datetime(*parsed[:6], tzinfo=timezone.utc)
        except (ValueError, TypeError):
            pass
    return None


def _get_content(entry: dict) -> str:
    """Extract the best available content from a feed entry."""
    # Prefer content:encoded (full article), then summary/description
    if "content" in entry and entry["content"]:
        return strip_html(entry["content"][0].get("value", ""))
    return strip_html(entry.get("summary", "") or entry.get("description", ""))


class RSSAdapter(SourceAdapter):
    """Adapter for a single RSS or Atom feed.

    Feeds carry full publish timestamps, so the frontier is applied directly
    to the entries of one download.
    """

    def __init__(self, clock: Callable[[], datetime] | None = None) -> None:
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._name = ""
        self._url = ""
        self._timeout = 30.0

    @property
    def name(self) -> str:
        return self._name

    def configure(self, config: dict) -> None:
        """Accept feed configuration.

        Expected format:
        {"name": "...", "url": "...", "timeout": 30}
        """
        try:
            self._name = config["name"]
            self._url = config["url"]
        except KeyError as exc:
            raise ValueError(f"RSS source requires {exc.args[0]!r}") from exc
        self._timeout = float(config.get("timeout", 30))

    def fetch(self, from_time: datetime) -> list[Article]:
        if from_time.tzinfo is None:
            raise ValueError("from_time must be timezone-aware")
        now = self._clock()
        if from_time > now:
            raise FrontierInFutureError(f"from {from_time.isoformat()} is after now {now.isoformat()}")

        try:
            response = httpx.get(self._url, timeout=self._timeout, follow_redirects=True)
        except httpx.HTTPError as exc:
            raise SourceFetchError(f"failed to get feed {self._url}: {exc}") from exc

        if response.status_code == 304:
            return []
        if response.status_code != 200:
            raise SourceFetchError(f"feed {self._url} returned status {response.status_code}")

        feed = feedparser.parse(response.text)
        if feed.bozo and not feed.entries:
            raise MalformedContentError(f"unparseable feed {self._url}: {feed.get('bozo_exception')}")

        articles: list[Article] = []
        for entry in feed.entries:
            entry_url = entry.get("link")
            published_at = _parse_pub_date(entry)
            if not entry_url or published_at is None:
                logger.debug("Skipping entry without link or date: %s", entry_url)
                continue
            if published_at < from_time:
                continue
            articles.append(
                Article(
                    url=entry_url,
                    title=strip_html(entry.get("title", "")),
                    text=_get_content(entry),
                    published_at=published_at,
                    source_name=self._name,
                )
            )

        logger.info("Fetched %d new article(s) from %s", len(articles), self._name)
        return sort_by_published_at(articles)
