"""Keyword extraction interface and the in-process tokenizer."""

from __future__ import annotations

import re
from abc import ABC, abstractmethod

from news_aggregator.keywords.stopwords import is_stop_word

_WORD_RE = re.compile(r"[^\W_]+")


class KeywordExtractionError(Exception):
    """Keyword extraction failed; the text could not be tagged."""


class KeywordExtractor(ABC):
    """Maps free text to a set of normalized terms.

    Used both to tag articles when they are stored and to tag a search
    phrase at query time, so the two sides must normalize identically.
    """

    def extract_keywords(self, text: str) -> frozenset[str]:
        """Return the keyword set of ``text``. Empty text yields an empty set."""
        if not text or not text.strip():
            return frozenset()
        return self._extract(text)

    @abstractmethod
    def _extract(self, text: str) -> frozenset[str]:
        """Extract keywords from non-empty text. Raises KeywordExtractionError."""


class SimpleKeywordExtractor(KeywordExtractor):
    """In-process tokenizer: lowercased word tokens minus stop words."""

    def _extract(self, text: str) -> frozenset[str]:
        return frozenset(
            word
            for word in _WORD_RE.findall(text.lower())
            if len(word) > 1 and not is_stop_word(word)
        )
