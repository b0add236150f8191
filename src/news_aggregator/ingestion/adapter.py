"""Source adapter interface and fetch error taxonomy."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime

from news_aggregator.ingestion.article import Article


class SourceError(Exception):
    """Base class for errors raised by a source adapter fetch."""


class FrontierInFutureError(SourceError, ValueError):
    """The requested frontier lies after the adapter's current time."""


class SourceFetchError(SourceError):
    """Transient upstream failure: network error or unexpected HTTP status."""


class MalformedContentError(SourceError):
    """Upstream content could not be parsed; the whole fetch is abandoned."""


class SourceAdapter(ABC):
    """Abstract base class for source adapters.

    An adapter knows how to list the articles one publisher released at or
    after a given point in time. It keeps no position of its own: the caller
    derives the frontier from what is already stored.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Stable source name, used as the store partition key."""

    @abstractmethod
    def fetch(self, from_time: datetime) -> list[Article]:
        """Fetch all articles published at or after ``from_time``.

        Returns articles in ascending publish-time order, with full text.
        Returns an empty list when the upstream reports it has nothing.

        Raises FrontierInFutureError if ``from_time`` is after now,
        SourceFetchError on transport failures, and MalformedContentError
        when the upstream content cannot be parsed.
        """

    @abstractmethod
    def configure(self, config: dict) -> None:
        """Accept adapter-specific configuration."""
