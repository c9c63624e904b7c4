"""Database utilities for the news pipeline."""

from .models import Article, Base, Post, PostStatus, Source  # noqa: F401
from .session import get_engine, get_sessionmaker, session_scope  # noqa: F401

__all__ = [
    "Article",
    "Base",
    "Post",
    "PostStatus",
    "Source",
    "get_engine",
    "get_sessionmaker",
    "session_scope",
]
