"""Repositories for persisting articles."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import select
from sqlalchemy.orm import Session

from ingestion.db.models import Article


def get_article_by_link(session: Session, canonical_link: str) -> Article | None:
    stmt = select(Article).where(Article.source_url == canonical_link)
    return session.execute(stmt).scalars().first()


def save_article(
    session: Session,
    *,
    title: str,
    content: str,
    canonical_link: str,
    source_name: str,
    category: str,
    published_at: datetime,
) -> Article:
    """Insert a new, unprocessed article and flush it so it gets an id."""
    article = Article(
        title=title,
        content=content,
        source_url=canonical_link,
        source_name=source_name,
        category=category,
        published_at=published_at,
        processed=False,
    )
    session.add(article)
    session.flush()
    return article


def mark_processed(session: Session, article: Article) -> None:
    article.processed = True
    session.add(article)
