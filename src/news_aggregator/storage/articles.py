"""Article store — the single authority over persisted articles.

Every read and write of the article set goes through ``ArticleStore``:
inserting freshly fetched articles tagged with their keyword sets, the
"latest article for a source" lookup the synchronizer derives its frontier
from, keyword search, and retention eviction.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from datetime import datetime, timezone
from typing import Iterable

from news_aggregator.ingestion.article import Article
from news_aggregator.keywords.extractor import KeywordExtractor
from news_aggregator.storage.connection import get_connection

logger = logging.getLogger(__name__)

SEARCH_LIMIT = 100

_TIME_FORMAT = "%Y-%m-%dT%H:%M:%S.%fZ"

_ARTICLE_COLUMNS = "url, title, text, published_at, source_name"


class ArticleNotFound(LookupError):
    """No article is stored for the requested source."""


def to_db_time(dt: datetime) -> str:
    """Format an aware datetime as a fixed-width UTC string."""
    return dt.astimezone(timezone.utc).strftime(_TIME_FORMAT)


def from_db_time(value: str) -> datetime:
    return datetime.strptime(value, _TIME_FORMAT).replace(tzinfo=timezone.utc)


def _row_to_article(row: sqlite3.Row) -> Article:
    return Article(
        url=row["url"],
        title=row["title"],
        text=row["text"],
        published_at=from_db_time(row["published_at"]),
        source_name=row["source_name"],
    )


class ArticleStore:
    """SQLite-backed article persistence with keyword tagging."""

    def __init__(
        self,
        database_path: str,
        extractor: KeywordExtractor,
        search_limit: int = SEARCH_LIMIT,
    ) -> None:
        self._database_path = database_path
        self._extractor = extractor
        self._search_limit = search_limit

    @property
    def database_path(self) -> str:
        return self._database_path

    @property
    def extractor(self) -> KeywordExtractor:
        return self._extractor

    def store(self, articles: Iterable[Article]) -> int:
        """Tag and insert a batch of articles in one transaction.

        All keyword sets are extracted before anything is written, so a
        KeywordExtractionError leaves the store untouched. Articles whose URL
        is already stored are skipped. Returns the number of rows inserted.
        """
        ingested_at = to_db_time(datetime.now(timezone.utc))
        rows = []
        for article in articles:
            keywords = self._extractor.extract_keywords(f"{article.title}\n{article.text}")
            rows.append((
                article.url,
                article.title,
                article.text,
                to_db_time(article.published_at),
                article.source_name,
                json.dumps(sorted(keywords), ensure_ascii=False),
                ingested_at,
            ))

        if not rows:
            return 0

        with get_connection(self._database_path) as conn:
            before = conn.total_changes
            conn.executemany(
                "INSERT OR IGNORE INTO articles "
                "(url, title, text, published_at, source_name, keywords, ingested_at) "
                "VALUES (?, ?, ?, ?, ?, ?, ?)",
                rows,
            )
            inserted = conn.total_changes - before

        if inserted < len(rows):
            logger.info("Skipped %d already stored article(s)", len(rows) - inserted)
        return inserted

    def latest(self, source_name: str) -> Article:
        """Return the most recently published article of a source.

        Raises ArticleNotFound if the source has no stored articles.
        """
        with get_connection(self._database_path) as conn:
            row = conn.execute(
                f"SELECT {_ARTICLE_COLUMNS} FROM articles "
                "WHERE source_name = ? "
                "ORDER BY published_at DESC LIMIT 1",
                (source_name,),
            ).fetchone()
        if row is None:
            raise ArticleNotFound(source_name)
        return _row_to_article(row)

    def search(self, query: str) -> list[Article]:
        """Return articles matching every keyword of ``query``, newest first.

        An empty keyword set matches all articles. Raises
        KeywordExtractionError if the query itself cannot be tagged.
        """
        keywords = sorted(self._extractor.extract_keywords(query))

        params: list[object] = []
        where_clause = ""
        if keywords:
            placeholders = ", ".join("?" for _ in keywords)
            where_clause = (
                "WHERE (SELECT COUNT(DISTINCT value) FROM json_each(articles.keywords) "
                f"WHERE value IN ({placeholders})) = ?"
            )
            params.extend(keywords)
            params.append(len(keywords))

        with get_connection(self._database_path) as conn:
            rows = conn.execute(
                f"SELECT {_ARTICLE_COLUMNS} FROM articles {where_clause} "
                "ORDER BY published_at DESC, url DESC LIMIT ?",
                [*params, self._search_limit],
            ).fetchall()

        return [_row_to_article(r) for r in rows]

    def evict(self, cutoff: datetime) -> int:
        """Delete articles published strictly before ``cutoff``. Returns the count."""
        with get_connection(self._database_path) as conn:
            cursor = conn.execute(
                "DELETE FROM articles WHERE published_at < ?",
                (to_db_time(cutoff),),
            )
            removed = cursor.rowcount
        if removed:
            logger.info("Evicted %d article(s) published before %s", removed, cutoff.isoformat())
        return removed

    def count(self) -> int:
        with get_connection(self._database_path) as conn:
            return conn.execute("SELECT COUNT(*) FROM articles").fetchone()[0]
