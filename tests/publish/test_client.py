from __future__ import annotations

import json

import httpx
import pytest

pytest.importorskip("pytest_httpx")

from publish.client import PublishError, RateLimitedError, XClient, looks_rate_limited
from publish.settings import OAuthCredentials

ENDPOINT = "https://api.x.test/2/tweets"


@pytest.fixture()
def client() -> XClient:
    creds = OAuthCredentials(
        consumer_key="ck",
        consumer_secret="cs",
        access_token="at",
        access_token_secret="ats",
    )
    return XClient(credentials=creds, endpoint=ENDPOINT, timeout_seconds=5)


def test_send_returns_created_id(httpx_mock, client):
    httpx_mock.add_response(url=ENDPOINT, method="POST", status_code=201, json={"data": {"id": "1850000000000000001", "text": "hi"}})

    assert client.send("こんにちは #日本") == "1850000000000000001"

    request = httpx_mock.get_request()
    assert request.headers["Authorization"].startswith("OAuth ")
    assert 'oauth_consumer_key="ck"' in request.headers["Authorization"]
    assert request.headers["Content-Type"] == "application/json"
    assert json.loads(request.content) == {"text": "こんにちは #日本"}


def test_status_429_is_rate_limited(httpx_mock, client):
    httpx_mock.add_response(url=ENDPOINT, method="POST", status_code=429, json={"title": "Too Many Requests"})

    with pytest.raises(RateLimitedError):
        client.send("hello")


def test_rate_limit_text_in_body_is_rate_limited(httpx_mock, client):
    httpx_mock.add_response(url=ENDPOINT, method="POST", status_code=503, text="Rate limit exceeded")

    with pytest.raises(RateLimitedError):
        client.send("hello")


def test_other_http_errors_are_hard_failures(httpx_mock, client):
    httpx_mock.add_response(url=ENDPOINT, method="POST", status_code=403, json={"detail": "duplicate content"})

    with pytest.raises(PublishError) as excinfo:
        client.send("hello")

    assert not isinstance(excinfo.value, RateLimitedError)
    assert "status: 403" in str(excinfo.value)
    assert "duplicate content" in str(excinfo.value)


def test_missing_id_is_a_failure(httpx_mock, client):
    httpx_mock.add_response(url=ENDPOINT, method="POST", status_code=200, json={"errors": [{"message": "nope"}]})

    with pytest.raises(PublishError):
        client.send("hello")


def test_transport_error_is_a_failure(httpx_mock, client):
    httpx_mock.add_exception(httpx.ConnectTimeout("timed out"), url=ENDPOINT)

    with pytest.raises(PublishError) as excinfo:
        client.send("hello")

    assert not isinstance(excinfo.value, RateLimitedError)


def test_looks_rate_limited():
    assert looks_rate_limited(429, "")
    assert looks_rate_limited(400, "RATE_LIMIT reached")
    assert looks_rate_limited(None, "upstream said 429 too many")
    assert not looks_rate_limited(500, "internal error")
    assert not looks_rate_limited(500, "id 14290")
