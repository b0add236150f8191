"""Database schema definition and initialization."""

from __future__ import annotations

import logging

from news_aggregator.storage.connection import get_connection

logger = logging.getLogger(__name__)

_SCHEMA_SQL = """\
-- Articles with their keyword sets, computed once at insertion
CREATE TABLE IF NOT EXISTS articles (
    url             TEXT PRIMARY KEY,
    title           TEXT NOT NULL,
    text            TEXT NOT NULL,
    published_at    TEXT NOT NULL,          -- UTC, fixed width, sorts lexically
    source_name     TEXT NOT NULL,
    keywords        TEXT NOT NULL,          -- JSON array
    ingested_at     TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_articles_source_published_at
    ON articles(source_name, published_at);
CREATE INDEX IF NOT EXISTS idx_articles_published_at ON articles(published_at);

-- Synchronization cycle tracking
CREATE TABLE IF NOT EXISTS sync_runs (
    id          TEXT PRIMARY KEY,
    started_at  TEXT NOT NULL,
    finished_at TEXT NOT NULL,
    status      TEXT NOT NULL CHECK (status IN ('success', 'error')),
    result      TEXT NOT NULL,   -- JSON
    error       TEXT
);

CREATE INDEX IF NOT EXISTS idx_sync_runs_started_at ON sync_runs(started_at);
"""


def init_db(database_path: str) -> None:
    """Create all tables and indexes if they do not already exist."""
    with get_connection(database_path) as conn:
        conn.executescript(_SCHEMA_SQL)
    logger.info("Database initialized at %s", database_path)
