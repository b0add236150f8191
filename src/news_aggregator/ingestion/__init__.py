"""Ingestion — source adapters and the article model."""

from news_aggregator.ingestion.lentaru_adapter import LentaRuAdapter
from news_aggregator.ingestion.registry import register_adapter
from news_aggregator.ingestion.rss_adapter import RSSAdapter

register_adapter("lentaru", LentaRuAdapter)
register_adapter("rss", RSSAdapter)
