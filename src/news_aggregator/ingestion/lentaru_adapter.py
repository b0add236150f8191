"""lenta.ru source adapter — scrapes the per-day news listings."""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date, datetime, timedelta, timezone
from typing import Callable

from zoneinfo import ZoneInfo

import httpx
from bs4 import BeautifulSoup

from news_aggregator.ingestion.adapter import (
    FrontierInFutureError,
    MalformedContentError,
    SourceAdapter,
    SourceFetchError,
)
from news_aggregator.ingestion.article import Article, sort_by_published_at

logger = logging.getLogger(__name__)

SOURCE_NAME = "lenta.ru"

_BASE_URL = "https://lenta.ru"
_MOSCOW = ZoneInfo("Europe/Moscow")
# lenta.ru answers a request for a day it has nothing for with a redirect.
_NO_CONTENT_STATUSES = frozenset({301, 302, 303, 307, 308})


def listing_url(day: date) -> str:
    """Return the URL of the news listing for a calendar day."""
    return f"{_BASE_URL}/{day.year}/{day.month:02d}/{day.day:02d}/"


def local_datetime(day: date, time_str: str) -> datetime:
    """Anchor an ``HH:MM`` listing time to a calendar day in Moscow time.

    Raises MalformedContentError if the time cannot be parsed.
    """
    parts = time_str.split(":")
    if len(parts) != 2:
        raise MalformedContentError(f"expected HH:MM time, got {time_str!r}")
    try:
        hour = int(parts[0].strip())
        minute = int(parts[1].strip())
    except ValueError as exc:
        raise MalformedContentError(f"unparseable time {time_str!r}") from exc
    if not 0 <= hour <= 23:
        raise MalformedContentError(f"hour out of range in {time_str!r}")
    if not 0 <= minute <= 59:
        raise MalformedContentError(f"minute out of range in {time_str!r}")
    return datetime(day.year, day.month, day.day, hour, minute, tzinfo=_MOSCOW)


def parse_listing(html: str, day: date) -> list[Article]:
    """Parse the article summaries of one day's listing page.

    Returned articles have an empty ``text``; bodies are fetched separately.
    A summary without a URL or with a bad time fails the whole page.
    """
    soup = BeautifulSoup(html, "html.parser")
    articles: list[Article] = []
    for item in soup.select(".item.news"):
        link = item.select_one(".titles > h3 > a")
        href = link.get("href") if link is not None else None
        if not href:
            raise MalformedContentError("listing item without article URL")

        time_el = item.select_one(".time")
        published_at = local_datetime(day, time_el.get_text(strip=True) if time_el else "")

        title_el = item.select_one(".titles > h3 > a > span")
        title = title_el.get_text(strip=True) if title_el is not None else ""

        articles.append(
            Article(
                url=_BASE_URL + href,
                title=title,
                text="",
                published_at=published_at,
                source_name=SOURCE_NAME,
            )
        )
    return articles


def parse_article_text(html: str) -> str:
    """Extract the body paragraphs of an article page, one per line."""
    soup = BeautifulSoup(html, "html.parser")
    return "\n".join(p.get_text(strip=True) for p in soup.select(".b-text > p"))


class LentaRuAdapter(SourceAdapter):
    """Adapter for lenta.ru.

    The site pages its archive by calendar day only, so a fetch lists every
    day from the frontier's day up to today and drops what precedes the
    frontier before downloading any article body.
    """

    def __init__(self, clock: Callable[[], datetime] | None = None) -> None:
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._timeout = 30.0

    @property
    def name(self) -> str:
        return SOURCE_NAME

    def configure(self, config: dict) -> None:
        self._timeout = float(config.get("timeout", 30))

    def fetch(self, from_time: datetime) -> list[Article]:
        if from_time.tzinfo is None:
            raise ValueError("from_time must be timezone-aware")
        now = self._clock()
        if from_time > now:
            raise FrontierInFutureError(f"from {from_time.isoformat()} is after now {now.isoformat()}")

        day = from_time.astimezone(_MOSCOW).date()
        today = now.astimezone(_MOSCOW).date()

        listed: list[Article] = []
        while day <= today:
            listed.extend(self._fetch_listing(day))
            day += timedelta(days=1)

        listed = sort_by_published_at(listed)
        start = len(listed)
        for i, article in enumerate(listed):
            if article.published_at >= from_time:
                start = i
                break

        articles = [replace(a, text=self._fetch_text(a.url)) for a in listed[start:]]
        logger.info(
            "Fetched %d new article(s) from %s (%d listed since %s)",
            len(articles), SOURCE_NAME, len(listed), from_time.isoformat(),
        )
        return articles

    def _fetch_listing(self, day: date) -> list[Article]:
        """Fetch one day's listing. An empty list means the site has nothing for that day."""
        url = listing_url(day)
        try:
            response = httpx.get(url, timeout=self._timeout, follow_redirects=False)
        except httpx.HTTPError as exc:
            raise SourceFetchError(f"failed to get listing {url}: {exc}") from exc

        if response.status_code in _NO_CONTENT_STATUSES:
            logger.debug("No listing for %s (status %d)", day.isoformat(), response.status_code)
            return []
        if response.status_code != 200:
            raise SourceFetchError(f"listing {url} returned status {response.status_code}")

        return parse_listing(response.text, day)

    def _fetch_text(self, url: str) -> str:
        try:
            response = httpx.get(url, timeout=self._timeout, follow_redirects=False)
        except httpx.HTTPError as exc:
            raise SourceFetchError(f"failed to get article {url}: {exc}") from exc
        if response.status_code != 200:
            raise SourceFetchError(f"article {url} returned status {response.status_code}")
        return parse_article_text(response.text)
