from __future__ import annotations

import httpx
import pytest

pytest.importorskip("pytest_httpx")

from ingestion.connectors.rss import RSSConnector

FEED_URL = "https://feeds.example.com/rss"

DOCUMENT = """<rss><channel>
<item><title>First</title><link>https://news.example.com/1</link></item>
<item><title>Second</title><link>https://news.example.com/2</link></item>
</channel></rss>"""


def test_rss_connector_returns_empty_on_http_error(httpx_mock):
    httpx_mock.add_response(url=FEED_URL, status_code=503)

    connector = RSSConnector(user_agent="TestBot/1.0")

    assert connector.fetch(FEED_URL) == []


def test_rss_connector_returns_empty_on_transport_error(httpx_mock):
    httpx_mock.add_exception(httpx.ConnectError("refused"), url=FEED_URL)

    connector = RSSConnector()

    assert connector.fetch(FEED_URL) == []


def test_rss_connector_sends_user_agent_and_limits_items(httpx_mock):
    httpx_mock.add_response(url=FEED_URL, text=DOCUMENT)

    connector = RSSConnector(user_agent="TestBot/1.0", max_items=1)
    items = connector.fetch(FEED_URL)

    assert [i.title for i in items] == ["First"]
    request = httpx_mock.get_request()
    assert request.headers["User-Agent"] == "TestBot/1.0"
