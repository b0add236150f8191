"""Keyword extraction through the Yandex mystem lemmatizer."""

from __future__ import annotations

import logging
import subprocess

from news_aggregator.keywords.extractor import KeywordExtractionError, KeywordExtractor
from news_aggregator.keywords.stopwords import is_stop_word

logger = logging.getLogger(__name__)

_TIMEOUT_SECONDS = 60


def parse_mystem_output(output: str) -> frozenset[str]:
    """Collect lemmas from ``mystem -n -l`` output.

    Each line holds the ``|``-separated lemma candidates of one word; a
    trailing ``?`` marks a guessed lemma.
    """
    keywords: set[str] = set()
    for line in output.splitlines():
        for lemma in line.split("|"):
            lemma = lemma.strip().rstrip("?")
            if lemma and not is_stop_word(lemma):
                keywords.add(lemma)
    return frozenset(keywords)


class MystemKeywordExtractor(KeywordExtractor):
    """Runs the mystem binary once per text, feeding the text on stdin."""

    def __init__(self, bin_path: str) -> None:
        self._bin_path = bin_path

    def _extract(self, text: str) -> frozenset[str]:
        try:
            result = subprocess.run(
                [self._bin_path, "-n", "-l"],
                input=text,
                capture_output=True,
                text=True,
                encoding="utf-8",
                timeout=_TIMEOUT_SECONDS,
                check=True,
                start_new_session=True,
            )
        except subprocess.CalledProcessError as exc:
            raise KeywordExtractionError(
                f"mystem exited with status {exc.returncode}: {(exc.stderr or '').strip()}"
            ) from exc
        except (OSError, subprocess.TimeoutExpired) as exc:
            raise KeywordExtractionError(f"failed to run mystem: {exc}") from exc

        return parse_mystem_output(result.stdout)
