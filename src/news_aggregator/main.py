"""Application entry point — runs the aggregator + web server in a single process."""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from contextlib import asynccontextmanager

import uvicorn

from news_aggregator.aggregator import Aggregator
from news_aggregator.config import Config, load_config
import news_aggregator.ingestion  # noqa: F401  — triggers adapter registration
from news_aggregator.ingestion.registry import build_sources
from news_aggregator.keywords import build_keyword_extractor
from news_aggregator.storage import ArticleStore, init_db
from news_aggregator.web.app import create_app

logger = logging.getLogger("news_aggregator")


def _setup_logging(log_level: str, log_format: str) -> None:
    """Configure root logger based on config."""
    level = getattr(logging, log_level.upper(), logging.INFO)

    if log_format == "json":
        formatter = logging.Formatter(
            json.dumps(
                {
                    "time": "%(asctime)s",
                    "level": "%(levelname)s",
                    "logger": "%(name)s",
                    "thread": "%(threadName)s",
                    "message": "%(message)s",
                }
            )
        )
    else:
        formatter = logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s")

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.setLevel(level)
    root.addHandler(handler)


def build_aggregator(config: Config) -> Aggregator:
    """Wire store, keyword extractor and sources. Raises on bad configuration."""
    init_db(config.database_path)
    store = ArticleStore(config.database_path, build_keyword_extractor(config))
    sources = build_sources(config.sources_config_path)
    return Aggregator(sources, store)


def main() -> None:
    """Load config, set up logging, and start aggregator + web server."""
    config = load_config()

    _setup_logging(config.log_level, config.log_format)

    logger.info(
        "News aggregator starting (env=%s, db=%s, sources=%s)",
        config.app_env,
        config.database_path,
        config.sources_config_path,
    )

    try:
        aggregator = build_aggregator(config)
    except Exception:
        logger.exception("Failed to create news aggregator")
        sys.exit(1)

    @asynccontextmanager
    async def lifespan(app):
        aggregator.start()
        yield
        # The web server has already drained its connections here.
        await asyncio.to_thread(aggregator.stop)

    app = create_app(aggregator.store, lifespan=lifespan)

    uvicorn.run(
        app,
        host=config.web_host,
        port=config.web_port,
        timeout_graceful_shutdown=config.web_shutdown_grace_seconds,
        log_config=None,
    )


if __name__ == "__main__":
    main()
