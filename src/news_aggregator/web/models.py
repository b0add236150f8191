"""Pydantic v2 response models for the news aggregator web API."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel


# ---------------------------------------------------------------------------
# Articles
# ---------------------------------------------------------------------------
class ArticleOut(BaseModel):
    url: str
    title: str
    source_name: str
    published_at: datetime
    paragraphs: list[str]


class ArticleSearchResponse(BaseModel):
    query: str
    articles: list[ArticleOut]
    total: int


# ---------------------------------------------------------------------------
# Sync runs
# ---------------------------------------------------------------------------
class SyncRun(BaseModel):
    id: str
    started_at: str
    finished_at: str
    status: str
    result: dict
    error: str | None


class SyncRunListResponse(BaseModel):
    runs: list[SyncRun]
    total: int
    page: int
    per_page: int
    pages: int
