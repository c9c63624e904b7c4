"""Celery tasks for the collection workflow."""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable

from celery import shared_task

from ingestion.connectors.base import BaseConnector
from ingestion.connectors.rss import RSSConnector
from ingestion.db.session import ensure_schema, session_scope
from ingestion.repositories.sources import list_active_sources, sync_sources, touch_last_fetched
from ingestion.services.ingestor import ingest_item
from ingestion.settings import get_settings
from ingestion.utils.logging import get_logger


# Connector factory is kept pluggable for tests; it must return an object with .fetch(url).
CONNECTOR_FACTORY: Callable[[], BaseConnector] | None = None


@dataclass(frozen=True)
class CollectSummary:
    sources: int
    processed: int
    saved: int


def _get_connector() -> BaseConnector:
    if CONNECTOR_FACTORY is not None:
        return CONNECTOR_FACTORY()
    return RSSConnector.from_settings()


def collect_core() -> CollectSummary:
    """Fetch every active source, ingest fresh items and queue their posts.

    Sources are processed one at a time. Each accepted item is committed on
    its own, so a failure halfway through keeps everything stored before it.
    """
    settings = get_settings()
    ensure_schema()
    connector = _get_connector()
    window = timedelta(minutes=settings.recency_window_minutes)
    trace_id = str(uuid.uuid4())
    logger = get_logger(__name__)
    logger.info("collect.start", extra={"trace_id": trace_id})

    processed = saved = 0
    with session_scope() as session:
        if settings.feed_sources:
            created = sync_sources(session, settings.feed_sources)
            session.commit()
            logger.info("collect.sources_synced", extra={"trace_id": trace_id, "sources_created": created})

        sources = list_active_sources(session)
        logger.info("collect.sources", extra={"trace_id": trace_id, "count": len(sources)})
        for source in sources:
            name, category, feed_url = source.name, source.category, source.feed_url
            items = connector.fetch(feed_url or "")
            for item in items:
                processed += 1
                if ingest_item(session, item, name, category, recency_window=window) is not None:
                    saved += 1
            touch_last_fetched(session, source, datetime.now(timezone.utc))
            session.commit()
            logger.info(
                "collect.source_done",
                extra={"trace_id": trace_id, "source": name, "fetched": len(items)},
            )

    summary = CollectSummary(sources=len(sources), processed=processed, saved=saved)
    logger.info(
        "collect.done",
        extra={"trace_id": trace_id, "sources": summary.sources, "processed": processed, "saved": saved},
    )
    return summary


@shared_task(name="ingestion.tasks.collect.collect_news")
def collect_news() -> int:  # pragma: no cover - wrapper
    return collect_core().processed
