"""Keyword extraction — text to normalized term sets."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from news_aggregator.keywords.extractor import (
    KeywordExtractionError,
    KeywordExtractor,
    SimpleKeywordExtractor,
)
from news_aggregator.keywords.mystem import MystemKeywordExtractor

if TYPE_CHECKING:
    from news_aggregator.config import Config

logger = logging.getLogger(__name__)

__all__ = [
    "KeywordExtractionError",
    "KeywordExtractor",
    "MystemKeywordExtractor",
    "SimpleKeywordExtractor",
    "build_keyword_extractor",
]


def build_keyword_extractor(config: Config) -> KeywordExtractor:
    """Use mystem when a binary path is configured, else the in-process tokenizer."""
    if config.mystem_bin_path:
        logger.info("Keyword extraction via mystem at %s", config.mystem_bin_path)
        return MystemKeywordExtractor(config.mystem_bin_path)
    logger.info("Keyword extraction via in-process tokenizer")
    return SimpleKeywordExtractor()
