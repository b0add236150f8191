"""Storage layer — SQLite database access and schema management."""

from news_aggregator.storage.articles import ArticleNotFound, ArticleStore
from news_aggregator.storage.connection import get_connection
from news_aggregator.storage.schema import init_db

__all__ = ["ArticleNotFound", "ArticleStore", "get_connection", "init_db"]
