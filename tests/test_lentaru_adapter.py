"""Tests for news_aggregator.ingestion.lentaru_adapter — lenta.ru adapter."""

from __future__ import annotations

from datetime import date, datetime, timezone
from unittest.mock import MagicMock, patch

import httpx
import pytest

from news_aggregator.ingestion.adapter import (
    FrontierInFutureError,
    MalformedContentError,
    SourceFetchError,
)
from news_aggregator.ingestion.lentaru_adapter import (
    LentaRuAdapter,
    listing_url,
    local_datetime,
    parse_article_text,
    parse_listing,
)

NOW = datetime(2024, 1, 10, 0, 0, tzinfo=timezone.utc)  # 03:00 in Moscow


def _listing_item(href, time_str, title):
    return f"""
    <div class="item news b-tabloid__topic_news">
      <div class="time">{time_str}</div>
      <div class="titles"><h3><a href="{href}"><span>{title}</span></a></h3></div>
    </div>
    """


def _listing(*items):
    return f"<html><body><section>{''.join(items)}</section></body></html>"


def _article_page(*paragraphs):
    body = "".join(f"<p>{p}</p>" for p in paragraphs)
    return f'<html><body><div class="b-text">{body}</div></body></html>'


LISTING_JAN_9 = _listing(
    _listing_item("/news/2024/01/09/late/", "14:00", "Вторая новость"),
    _listing_item("/news/2024/01/09/early/", "02:30", "Ночная новость"),
    _listing_item("/news/2024/01/09/first/", "13:00", "Первая &amp; новость"),
)

PAGES = {
    "https://lenta.ru/news/2024/01/09/first/": _article_page("Абзац один.", "Абзац два."),
    "https://lenta.ru/news/2024/01/09/late/": _article_page("Поздний текст."),
    "https://lenta.ru/news/2024/01/09/early/": _article_page("Ночной текст."),
}


def _response(status_code, text=""):
    resp = MagicMock()
    resp.status_code = status_code
    resp.text = text
    return resp


def _mock_get(listings, pages=PAGES, requested=None):
    """Build a side_effect for httpx.get serving day listings and article pages.

    Days missing from ``listings`` answer with a redirect, as lenta.ru does.
    """
    def side_effect(url, **kwargs):
        if requested is not None:
            requested.append(url)
        if url in listings:
            return _response(200, listings[url])
        if url in pages:
            return _response(200, pages[url])
        return _response(302)
    return side_effect


def _adapter():
    return LentaRuAdapter(clock=lambda: NOW)


# --- Helper functions ---


class TestListingUrl:
    def test_zero_padded_path(self):
        assert listing_url(date(2024, 1, 9)) == "https://lenta.ru/2024/01/09/"


class TestLocalDatetime:
    def test_anchors_time_to_day_in_moscow(self):
        dt = local_datetime(date(2024, 1, 9), "13:00")
        assert dt.astimezone(timezone.utc) == datetime(2024, 1, 9, 10, 0, tzinfo=timezone.utc)

    @pytest.mark.parametrize("time_str", ["24:00", "12:60", "1300", "ab:cd", "", "1:2:3"])
    def test_rejects_malformed_time(self, time_str):
        with pytest.raises(MalformedContentError):
            local_datetime(date(2024, 1, 9), time_str)


class TestParseListing:
    def test_parses_summaries(self):
        articles = parse_listing(LISTING_JAN_9, date(2024, 1, 9))

        assert len(articles) == 3
        first = next(a for a in articles if a.url.endswith("/first/"))
        assert first.url == "https://lenta.ru/news/2024/01/09/first/"
        assert first.title == "Первая & новость"
        assert first.source_name == "lenta.ru"
        assert first.text == ""
        assert first.published_at == datetime(2024, 1, 9, 10, 0, tzinfo=timezone.utc)

    def test_item_without_url_fails_page(self):
        html = _listing('<div class="item news"><div class="time">10:00</div></div>')
        with pytest.raises(MalformedContentError, match="URL"):
            parse_listing(html, date(2024, 1, 9))

    def test_item_with_bad_time_fails_page(self):
        html = _listing(_listing_item("/news/x/", "позже", "Title"))
        with pytest.raises(MalformedContentError):
            parse_listing(html, date(2024, 1, 9))

    def test_empty_listing(self):
        assert parse_listing(_listing(), date(2024, 1, 9)) == []


class TestParseArticleText:
    def test_joins_paragraphs_with_newlines(self):
        assert parse_article_text(_article_page(" One. ", "Two &amp; three.")) == "One.\nTwo & three."

    def test_ignores_paragraphs_outside_body(self):
        html = '<html><p>Ad</p><div class="b-text"><p>Body</p></div></html>'
        assert parse_article_text(html) == "Body"


# --- LentaRuAdapter ---


class TestLentaRuAdapter:
    def test_name(self):
        assert _adapter().name == "lenta.ru"

    def test_fetch_returns_articles_at_or_after_frontier_in_order(self):
        listings = {"https://lenta.ru/2024/01/09/": LISTING_JAN_9}
        from_time = datetime(2024, 1, 9, 0, 0, tzinfo=timezone.utc)  # 03:00 Moscow

        with patch(
            "news_aggregator.ingestion.lentaru_adapter.httpx.get",
            side_effect=_mock_get(listings),
        ):
            articles = _adapter().fetch(from_time)

        assert [a.url for a in articles] == [
            "https://lenta.ru/news/2024/01/09/first/",
            "https://lenta.ru/news/2024/01/09/late/",
        ]
        assert articles[0].text == "Абзац один.\nАбзац два."
        assert articles[1].text == "Поздний текст."

    def test_frontier_is_inclusive(self):
        listings = {"https://lenta.ru/2024/01/09/": LISTING_JAN_9}
        from_time = datetime(2024, 1, 9, 11, 0, tzinfo=timezone.utc)  # exactly the 14:00 item

        with patch(
            "news_aggregator.ingestion.lentaru_adapter.httpx.get",
            side_effect=_mock_get(listings),
        ):
            articles = _adapter().fetch(from_time)

        assert [a.url for a in articles] == ["https://lenta.ru/news/2024/01/09/late/"]

    def test_bodies_fetched_only_for_retained_articles(self):
        listings = {"https://lenta.ru/2024/01/09/": LISTING_JAN_9}
        requested: list[str] = []

        with patch(
            "news_aggregator.ingestion.lentaru_adapter.httpx.get",
            side_effect=_mock_get(listings, requested=requested),
        ):
            _adapter().fetch(datetime(2024, 1, 9, 0, 0, tzinfo=timezone.utc))

        assert "https://lenta.ru/news/2024/01/09/early/" not in requested
        assert "https://lenta.ru/news/2024/01/09/first/" in requested

    def test_enumerates_every_day_through_today(self):
        requested: list[str] = []

        with patch(
            "news_aggregator.ingestion.lentaru_adapter.httpx.get",
            side_effect=_mock_get({}, requested=requested),
        ):
            _adapter().fetch(datetime(2024, 1, 7, 12, 0, tzinfo=timezone.utc))

        assert requested == [
            "https://lenta.ru/2024/01/07/",
            "https://lenta.ru/2024/01/08/",
            "https://lenta.ru/2024/01/09/",
            "https://lenta.ru/2024/01/10/",
        ]

    def test_day_boundary_uses_moscow_time(self):
        requested: list[str] = []
        # 22:30 UTC on Jan 8 is already Jan 9 in Moscow.
        from_time = datetime(2024, 1, 8, 22, 30, tzinfo=timezone.utc)

        with patch(
            "news_aggregator.ingestion.lentaru_adapter.httpx.get",
            side_effect=_mock_get({}, requested=requested),
        ):
            _adapter().fetch(from_time)

        assert requested[0] == "https://lenta.ru/2024/01/09/"

    def test_redirect_means_no_content(self):
        with patch(
            "news_aggregator.ingestion.lentaru_adapter.httpx.get",
            side_effect=_mock_get({}),
        ) as mock_get:
            articles = _adapter().fetch(datetime(2024, 1, 9, 0, 0, tzinfo=timezone.utc))

        assert articles == []
        for call in mock_get.call_args_list:
            assert call.kwargs["follow_redirects"] is False

    def test_frontier_in_future_is_rejected(self):
        with patch("news_aggregator.ingestion.lentaru_adapter.httpx.get") as mock_get:
            with pytest.raises(FrontierInFutureError):
                _adapter().fetch(datetime(2024, 1, 10, 0, 1, tzinfo=timezone.utc))

        mock_get.assert_not_called()

    def test_naive_frontier_is_rejected(self):
        with pytest.raises(ValueError):
            _adapter().fetch(datetime(2024, 1, 9, 0, 0))

    def test_listing_error_status_aborts(self):
        with patch(
            "news_aggregator.ingestion.lentaru_adapter.httpx.get",
            return_value=_response(500),
        ):
            with pytest.raises(SourceFetchError, match="status 500"):
                _adapter().fetch(datetime(2024, 1, 9, 0, 0, tzinfo=timezone.utc))

    def test_listing_transport_error_aborts(self):
        with patch(
            "news_aggregator.ingestion.lentaru_adapter.httpx.get",
            side_effect=httpx.ConnectError("fail"),
        ):
            with pytest.raises(SourceFetchError):
                _adapter().fetch(datetime(2024, 1, 9, 0, 0, tzinfo=timezone.utc))

    def test_body_fetch_failure_aborts_whole_call(self):
        listings = {"https://lenta.ru/2024/01/09/": LISTING_JAN_9}
        pages = {"https://lenta.ru/news/2024/01/09/first/": PAGES["https://lenta.ru/news/2024/01/09/first/"]}

        def side_effect(url, **kwargs):
            if url in listings:
                return _response(200, listings[url])
            if url in pages:
                return _response(200, pages[url])
            if "/news/" in url:
                return _response(404)
            return _response(302)

        with patch("news_aggregator.ingestion.lentaru_adapter.httpx.get", side_effect=side_effect):
            with pytest.raises(SourceFetchError, match="status 404"):
                _adapter().fetch(datetime(2024, 1, 9, 0, 0, tzinfo=timezone.utc))

    def test_malformed_listing_aborts(self):
        listings = {"https://lenta.ru/2024/01/09/": _listing(_listing_item("/news/x/", "25:00", "T"))}

        with patch(
            "news_aggregator.ingestion.lentaru_adapter.httpx.get",
            side_effect=_mock_get(listings),
        ):
            with pytest.raises(MalformedContentError):
                _adapter().fetch(datetime(2024, 1, 9, 0, 0, tzinfo=timezone.utc))

    def test_configure_timeout(self):
        adapter = _adapter()
        adapter.configure({"timeout": 5})

        with patch(
            "news_aggregator.ingestion.lentaru_adapter.httpx.get",
            side_effect=_mock_get({}),
        ) as mock_get:
            adapter.fetch(datetime(2024, 1, 9, 23, 0, tzinfo=timezone.utc))

        assert mock_get.call_args.kwargs["timeout"] == 5.0
