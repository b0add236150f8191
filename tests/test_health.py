"""Tests for the /health endpoint."""

from __future__ import annotations

from fastapi.testclient import TestClient

from news_aggregator.keywords.extractor import SimpleKeywordExtractor
from news_aggregator.storage.articles import ArticleStore
from news_aggregator.storage.schema import init_db
from news_aggregator.web.app import create_app


class TestHealthEndpoint:
    def test_healthy_response(self, tmp_path):
        db_path = str(tmp_path / "test.db")
        init_db(db_path)
        app = create_app(ArticleStore(db_path, SimpleKeywordExtractor()))
        client = TestClient(app)

        resp = client.get("/health")
        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "healthy"
        assert data["database"] == "ok"
        assert data["articles"] == 0

    def test_unhealthy_when_db_missing(self, tmp_path):
        db_path = str(tmp_path / "nonexistent" / "missing.db")
        app = create_app(ArticleStore(db_path, SimpleKeywordExtractor()))
        client = TestClient(app, raise_server_exceptions=False)

        resp = client.get("/health")
        assert resp.status_code == 503
        data = resp.json()
        assert data["status"] == "unhealthy"
        assert data["database"] == "error"
        assert "detail" in data

    def test_health_not_under_api_prefix(self, tmp_path):
        db_path = str(tmp_path / "test.db")
        init_db(db_path)
        app = create_app(ArticleStore(db_path, SimpleKeywordExtractor()))
        client = TestClient(app)

        # /health should work at root
        assert client.get("/health").status_code == 200
        # /api/v1/health should NOT exist
        resp = client.get("/api/v1/health")
        assert resp.status_code != 200
