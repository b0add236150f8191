"""API route handlers for the news aggregator web API."""

from __future__ import annotations

import logging
import math
import sqlite3

from fastapi import APIRouter, HTTPException, Query, Request
from fastapi.responses import JSONResponse, RedirectResponse

from news_aggregator.ingestion.article import Article
from news_aggregator.keywords.extractor import KeywordExtractionError
from news_aggregator.storage.runs import list_runs
from news_aggregator.web.models import (
    ArticleOut,
    ArticleSearchResponse,
    SyncRunListResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()
health_router = APIRouter()


def _article_out(article: Article) -> ArticleOut:
    return ArticleOut(
        url=article.url,
        title=article.title,
        source_name=article.source_name,
        published_at=article.published_at,
        paragraphs=[p for p in article.text.split("\n") if p],
    )


@health_router.get("/")
def index() -> RedirectResponse:
    return RedirectResponse("/api/v1/articles", status_code=308)


@health_router.get("/health")
def health(request: Request) -> JSONResponse:
    """Check database connectivity and return health status."""
    store = request.app.state.store
    try:
        articles = store.count()
        return JSONResponse({"status": "healthy", "database": "ok", "articles": articles})
    except (sqlite3.Error, OSError) as exc:
        logger.warning("Health check failed: %s", exc)
        return JSONResponse(
            {"status": "unhealthy", "database": "error", "detail": str(exc)},
            status_code=503,
        )


@router.get("/articles", response_model=ArticleSearchResponse)
def articles(request: Request, q: str = "") -> ArticleSearchResponse:
    store = request.app.state.store
    try:
        found = store.search(q)
    except KeywordExtractionError as exc:
        logger.warning("Search for %r failed: %s", q, exc)
        raise HTTPException(status_code=502, detail="Keyword extraction failed") from exc
    return ArticleSearchResponse(
        query=q,
        articles=[_article_out(a) for a in found],
        total=len(found),
    )


@router.get("/runs", response_model=SyncRunListResponse)
def runs(
    request: Request,
    page: int = Query(1, ge=1),
    per_page: int = Query(50, ge=1, le=100),
) -> SyncRunListResponse:
    database_path = request.app.state.store.database_path
    rows, total = list_runs(database_path, page=page, per_page=per_page)
    pages = math.ceil(total / per_page) if total else 0
    return SyncRunListResponse(
        runs=rows,
        total=total,
        page=page,
        per_page=per_page,
        pages=pages,
    )
