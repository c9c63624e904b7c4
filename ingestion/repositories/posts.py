"""Repositories for the outbound post queue."""

from __future__ import annotations

from datetime import datetime
from typing import List, Sequence

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from ingestion.db.models import Article, Post, PostStatus, utcnow

ERROR_MESSAGE_MAX_CHARS = 512


def save_post(session: Session, article: Article, *, text: str, hashtags: Sequence[str]) -> Post:
    post = Post(
        article_id=article.id,
        tweet_content=text,
        hashtags=list(hashtags),
        status=PostStatus.PENDING,
    )
    session.add(post)
    session.flush()
    return post


def select_pending(session: Session, limit: int) -> List[Post]:
    """Pending posts, newest first."""
    stmt = (
        select(Post)
        .options(selectinload(Post.article))
        .where(Post.status == PostStatus.PENDING)
        .order_by(Post.created_at.desc())
        .limit(limit)
    )
    return list(session.execute(stmt).scalars().all())


def select_recent_failures(session: Session, *, since: datetime, limit: int) -> List[Post]:
    stmt = (
        select(Post)
        .where(Post.status == PostStatus.FAILED, Post.updated_at >= since)
        .order_by(Post.updated_at.desc())
        .limit(limit)
    )
    return list(session.execute(stmt).scalars().all())


def mark_posted(session: Session, post: Post, tweet_id: str, *, when: datetime | None = None) -> None:
    now = when or utcnow()
    post.status = PostStatus.POSTED
    post.tweet_id = tweet_id
    post.error_message = None
    post.posted_at = now
    post.updated_at = now
    session.add(post)


def mark_failed(session: Session, post: Post, error: str, *, when: datetime | None = None) -> None:
    post.status = PostStatus.FAILED
    post.error_message = (error or "unknown error")[:ERROR_MESSAGE_MAX_CHARS]
    post.updated_at = when or utcnow()
    session.add(post)


def reset_to_pending(session: Session, post: Post, *, when: datetime | None = None) -> None:
    post.status = PostStatus.PENDING
    post.error_message = None
    post.updated_at = when or utcnow()
    session.add(post)
