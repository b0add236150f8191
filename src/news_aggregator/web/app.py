"""FastAPI application factory for the news aggregator query API."""

from __future__ import annotations

from fastapi import FastAPI

from news_aggregator.storage.articles import ArticleStore
from news_aggregator.web.routes import health_router, router


def create_app(store: ArticleStore, lifespan=None) -> FastAPI:
    """Build and return a configured FastAPI application."""
    app = FastAPI(title="News Aggregator", docs_url="/api/docs", lifespan=lifespan)
    app.state.store = store
    app.include_router(health_router)
    app.include_router(router, prefix="/api/v1")
    return app
