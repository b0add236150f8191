"""Article — the unit of content exchanged between sources and the store."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone


@dataclass(frozen=True)
class Article:
    """A single published item.

    ``url`` identifies the article across the whole store. ``published_at``
    must be timezone-aware and is normalized to UTC so that articles from
    sources in different time zones compare correctly.
    """

    url: str
    title: str
    text: str
    published_at: datetime
    source_name: str

    def __post_init__(self) -> None:
        if self.published_at.tzinfo is None or self.published_at.utcoffset() is None:
            raise ValueError(f"published_at for {self.url} must be timezone-aware")
        object.__setattr__(self, "published_at", self.published_at.astimezone(timezone.utc))


def sort_by_published_at(articles: list[Article]) -> list[Article]:
    """Return articles in ascending publish-time order (stable)."""
    return sorted(articles, key=lambda a: a.published_at)
