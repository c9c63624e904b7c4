"""Repository helpers for feed sources."""

from __future__ import annotations

from datetime import datetime
from typing import Iterable, List

from sqlalchemy import select
from sqlalchemy.orm import Session

from ingestion.db.models import Source
from ingestion.settings import FeedSourceConfig


def list_active_sources(session: Session) -> List[Source]:
    stmt = (
        select(Source)
        .where(Source.is_active.is_(True), Source.feed_url.is_not(None))
        .order_by(Source.name)
    )
    return list(session.execute(stmt).scalars().all())


def touch_last_fetched(session: Session, source: Source, when: datetime) -> None:
    source.last_fetched_at = when
    session.add(source)


def sync_sources(session: Session, configs: Iterable[FeedSourceConfig]) -> int:
    """Upsert configured sources by name; returns the number of new rows."""
    created = 0
    for cfg in configs:
        row = session.scalar(select(Source).where(Source.name == cfg.name))
        if row is None:
            row = Source(name=cfg.name)
            created += 1
        row.category = cfg.category
        row.url = cfg.url
        row.feed_url = cfg.feed_url
        row.is_active = cfg.active
        session.add(row)
    session.flush()
    return created
