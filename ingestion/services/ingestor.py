"""Deduplicates and freshness-filters feed items before persisting them."""

from __future__ import annotations

import html
from datetime import datetime, timedelta, timezone
from typing import Optional
from urllib.parse import urlsplit, urlunsplit

from dateutil import parser as date_parser
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ingestion.db.models import Article
from ingestion.models.domain import FeedItemDTO
from ingestion.repositories.articles import get_article_by_link, save_article
from ingestion.services.composer import enqueue_post
from ingestion.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_RECENCY_WINDOW = timedelta(hours=2)

# Zone abbreviations dateutil does not know on its own; the value is the UTC offset in seconds.
FEED_TZINFOS = {
    "JST": 9 * 3600,
    "KST": 9 * 3600,
}


def canonicalize_link(link: str) -> str:
    """Normalize a feed link into the identity key of an article.

    Scheme and host are lower-cased and the fragment dropped; path and query
    are kept verbatim since many outlets route articles by query string.
    """
    raw = html.unescape(link.strip())
    try:
        parts = urlsplit(raw)
    except ValueError:
        return raw
    if not parts.scheme or not parts.netloc:
        return raw
    return urlunsplit((parts.scheme.lower(), parts.netloc.lower(), parts.path, parts.query, ""))


def resolve_published_at(raw: Optional[str], now: datetime) -> datetime:
    """Parse a feed timestamp; anything unparsable counts as ``now``."""
    if not raw:
        return now
    try:
        parsed = date_parser.parse(raw, tzinfos=FEED_TZINFOS)
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        # out-of-range offsets (+9999) only fail here
        return parsed.astimezone(timezone.utc)
    except (ValueError, OverflowError, TypeError):
        return now


def ingest_item(
    session: Session,
    item: FeedItemDTO,
    source_name: str,
    category: str,
    *,
    now: Optional[datetime] = None,
    recency_window: timedelta = DEFAULT_RECENCY_WINDOW,
) -> Article | None:
    """Persist ``item`` as a new article and queue its post.

    Returns None when the item is a duplicate, is stale, or could not be
    stored. Store errors are logged and swallowed; the next collection run
    offers the same item again.
    """
    current = now or datetime.now(timezone.utc)
    link = canonicalize_link(item.link)
    extra = {"source": source_name, "link": link}

    if get_article_by_link(session, link) is not None:
        logger.debug("ingest.duplicate", extra=extra)
        return None

    published_at = resolve_published_at(item.published, current)
    if published_at < current - recency_window:
        logger.debug("ingest.stale", extra={**extra, "published_at": published_at.isoformat()})
        return None

    try:
        article = save_article(
            session,
            title=item.title,
            content=item.description,
            canonical_link=link,
            source_name=source_name,
            category=category,
            published_at=published_at,
        )
        enqueue_post(session, article)
        session.commit()
    except SQLAlchemyError as exc:
        session.rollback()
        logger.warning("ingest.persist_failed", extra={**extra, "error": str(exc)})
        return None

    logger.info("ingest.saved", extra={**extra, "article_id": str(article.id)})
    return article
