from __future__ import annotations

import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]

if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

CREDENTIAL_ENV = (
    "TWITTER_CONSUMER_KEY",
    "TWITTER_CONSUMER_SECRET",
    "TWITTER_ACCESS_TOKEN",
    "TWITTER_ACCESS_TOKEN_SECRET",
)


def _reset_caches() -> None:
    from ingestion.settings import reset_settings_cache
    from publish.settings import reset_publish_settings_cache

    reset_settings_cache()
    reset_publish_settings_cache()


@pytest.fixture()
def pipeline_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path):
    """SQLite-backed settings with dummy credentials and no pacing delay."""
    monkeypatch.setenv("POSTGRES_DSN", f"sqlite:///{tmp_path / 'news.db'}")
    monkeypatch.setenv("INGESTION_REDIS_URL", "redis://localhost:6379/0")
    monkeypatch.setenv("PUBLISH_PACING_SECONDS", "0")
    monkeypatch.delenv("FEED_SOURCES", raising=False)
    for name in CREDENTIAL_ENV:
        monkeypatch.setenv(name, f"dummy-{name.lower()}")
    _reset_caches()

    from ingestion.db.session import ensure_schema

    ensure_schema()
    yield tmp_path
    _reset_caches()


@pytest.fixture()
def db_session(pipeline_env):
    from ingestion.db.session import get_sessionmaker

    session = get_sessionmaker()()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def make_post(db_session):
    """Insert an article plus one post and return the post."""
    from ingestion.db.models import Article, Post, PostStatus

    counter = {"n": 0}

    def _make(
        *,
        status: PostStatus = PostStatus.PENDING,
        created_at: datetime | None = None,
        updated_at: datetime | None = None,
        error_message: str | None = None,
        text: str | None = None,
    ) -> Post:
        counter["n"] += 1
        n = counter["n"]
        now = datetime.now(timezone.utc)
        article = Article(
            title=f"記事 {n}",
            content="",
            source_url=f"https://news.example.com/{n}",
            source_name="Example",
            category="japan",
            published_at=now,
        )
        db_session.add(article)
        db_session.flush()
        post = Post(
            article_id=article.id,
            tweet_content=text or f"post {n} #日本 #ニュース #速報",
            hashtags=["日本", "ニュース", "速報"],
            status=status,
            error_message=error_message,
            created_at=created_at or now - timedelta(minutes=100 - n),
            updated_at=updated_at or now,
        )
        db_session.add(post)
        db_session.commit()
        return post

    return _make
