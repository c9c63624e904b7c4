from __future__ import annotations

import importlib
import json
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from ingestion.db.models import PostStatus
from ingestion.models.domain import FeedItemDTO
from ingestion.settings import reset_settings_cache
from ingestion.tasks import collect as collect_mod
from publish import dispatcher as dispatcher_mod
from publish.client import PublishError
from publish.settings import reset_publish_settings_cache


class _StaticConnector:
    def __init__(self, items):
        self._items = items

    def fetch(self, url):
        return list(self._items)


class _Sender:
    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.sent = []

    def send(self, text: str) -> str:
        self.sent.append(text)
        if self.fail:
            raise PublishError("HTTP error! status: 403, body: forbidden")
        return "1850000000000000042"


@pytest.fixture()
def client(pipeline_env):
    main = importlib.reload(importlib.import_module("api.main"))
    with TestClient(main.app) as test_client:
        yield test_client
    collect_mod.CONNECTOR_FACTORY = None
    dispatcher_mod.SENDER_FACTORY = None


def test_collect_reports_processed_items(client, monkeypatch):
    monkeypatch.setenv(
        "FEED_SOURCES",
        json.dumps([{"name": "NHK", "category": "japan", "feed_url": "https://nhk.example/rss"}]),
    )
    reset_settings_cache()
    fresh = (datetime.now(timezone.utc) - timedelta(minutes=3)).isoformat()
    collect_mod.CONNECTOR_FACTORY = lambda: _StaticConnector(
        [
            FeedItemDTO(title="経済ニュース", link="https://news.example.com/1", published=fresh),
            FeedItemDTO(title="スポーツ", link="https://news.example.com/2", published=fresh),
        ]
    )

    resp = client.post("/collect", json={"kind": "collect", "manual": True})

    assert resp.status_code == 200
    assert resp.json() == {
        "success": True,
        "message": "News collection completed",
        "articlesProcessed": 2,
    }


def test_collect_accepts_empty_body(client):
    resp = client.post("/collect")

    assert resp.status_code == 200
    assert resp.json()["articlesProcessed"] == 0


def test_dispatch_without_credentials_is_configuration_error(client, monkeypatch):
    monkeypatch.delenv("TWITTER_CONSUMER_SECRET")
    reset_publish_settings_cache()

    resp = client.post("/dispatch", json={"kind": "dispatch"})

    assert resp.status_code == 500
    body = resp.json()
    assert body["success"] is False
    assert body["error_type"] == "configuration"
    assert "TWITTER_CONSUMER_SECRET" in body["error"]


def test_immediate_dispatch_returns_tweet_id(client, make_post):
    make_post(text="newest")
    dispatcher_mod.SENDER_FACTORY = lambda settings: _Sender()

    resp = client.post("/dispatch", json={"kind": "dispatch", "immediate": True})

    assert resp.status_code == 200
    assert resp.json() == {
        "success": True,
        "message": "Immediate tweet posted successfully",
        "tweet_id": "1850000000000000042",
    }


def test_immediate_dispatch_failure_is_reported(client, make_post):
    make_post(text="newest")
    dispatcher_mod.SENDER_FACTORY = lambda settings: _Sender(fail=True)

    resp = client.post("/dispatch", json={"kind": "dispatch", "immediate": True})

    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is False
    assert "403" in body["error"]


def test_immediate_dispatch_with_empty_queue(client):
    dispatcher_mod.SENDER_FACTORY = lambda settings: _Sender()

    resp = client.post("/dispatch", json={"kind": "dispatch", "immediate": True})

    assert resp.status_code == 200
    assert resp.json() == {"success": True, "message": "No pending posts for immediate posting"}


def test_batch_dispatch_reports_both_stages(client, make_post):
    make_post(text="retry me", status=PostStatus.FAILED, error_message="boom")
    make_post(text="fresh")
    sender = _Sender()
    dispatcher_mod.SENDER_FACTORY = lambda settings: sender

    resp = client.post("/dispatch", json={"kind": "dispatch"})

    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["data"]["retry"]["message"] == "Retry process completed for 1 posts"
    assert body["data"]["retry"]["requeued"] == 1
    assert body["data"]["posting"]["message"] == "Processed 2 posts"
    assert [r["success"] for r in body["data"]["posting"]["results"]] == [True, True]
    assert sender.sent == ["fresh", "retry me"]


def test_preflight_is_answered(client):
    resp = client.options(
        "/dispatch",
        headers={
            "Origin": "https://dashboard.example.com",
            "Access-Control-Request-Method": "POST",
            "Access-Control-Request-Headers": "authorization, content-type",
        },
    )

    assert resp.status_code == 200
    assert resp.headers["access-control-allow-origin"] == "*"


def test_healthcheck(client):
    assert client.get("/healthz").json() == {"status": "ok"}
