"""Turns articles into length-bounded posts with topical hashtags."""

from __future__ import annotations

import re
from typing import List, Tuple

from sqlalchemy.orm import Session

from ingestion.db.models import Article, Post
from ingestion.models.domain import ComposedPost
from ingestion.repositories.articles import mark_processed
from ingestion.repositories.posts import save_post
from ingestion.utils.logging import get_logger

logger = get_logger(__name__)

MAX_POST_LENGTH = 280
# Room kept free for hashtags and attribution on the first pass.
RESERVED_SUFFIX_LENGTH = 60
TAG_COUNT = 3
ELLIPSIS = "..."
SOURCE_NAME_MAX_CHARS = 50

DEFAULT_TAGS = {
    "japan": ("日本", "ニュース", "速報"),
}
FALLBACK_TAGS = ("世界", "ニュース", "海外")

# Scanned in order; one tag per matching group. ASCII keywords must start a
# word; CJK keywords match anywhere.
KEYWORD_GROUPS: Tuple[Tuple[str, re.Pattern[str]], ...] = (
    ("政治", re.compile(r"政治|政府|(?<![a-z])politic", re.IGNORECASE)),
    ("経済", re.compile(r"経済|市場|(?<![a-z])econom", re.IGNORECASE)),
    ("スポーツ", re.compile(r"スポーツ|(?<![a-z])sport", re.IGNORECASE)),
    ("技術", re.compile(r"技術|(?<![a-z])tech|(?<![a-z])AI(?![a-z])", re.IGNORECASE)),
    ("災害", re.compile(r"災害|地震|台風", re.IGNORECASE)),
    ("コロナ", re.compile(r"コロナ|(?<![a-z])covid", re.IGNORECASE)),
)


def generate_hashtags(category: str, title: str) -> List[str]:
    """Return exactly three tags; keyword tags win over category defaults."""
    defaults = DEFAULT_TAGS.get(category.strip().lower(), FALLBACK_TAGS)
    specific = [tag for tag, pattern in KEYWORD_GROUPS if pattern.search(title)]
    keep = max(0, TAG_COUNT - len(specific))
    return (list(defaults[:keep]) + specific)[:TAG_COUNT]


def _attribution(source_name: str) -> str:
    return f"\n\n📰 {source_name.strip()[:SOURCE_NAME_MAX_CHARS]}"


def _truncate(text: str, length: int) -> str:
    return text[: max(0, length - len(ELLIPSIS))] + ELLIPSIS


def compose_post(title: str, category: str, source_name: str) -> ComposedPost:
    title = title.strip()
    truncated = False
    body_title = title
    if len(body_title) > MAX_POST_LENGTH - RESERVED_SUFFIX_LENGTH:
        body_title = _truncate(title, MAX_POST_LENGTH - RESERVED_SUFFIX_LENGTH)
        truncated = True

    hashtags = generate_hashtags(category, title)
    tag_text = " ".join(f"#{tag}" for tag in hashtags)
    attribution = _attribution(source_name)

    text = f"{body_title} {tag_text}{attribution}"
    if len(text) > MAX_POST_LENGTH:
        available = MAX_POST_LENGTH - len(tag_text) - len(attribution) - 1
        body_title = _truncate(title, available)
        truncated = True
        text = f"{body_title} {tag_text}{attribution}"
    return ComposedPost(text=text, hashtags=hashtags, truncated=truncated)


def enqueue_post(session: Session, article: Article) -> Post:
    """Compose a post for ``article``, queue it as pending and flag the article."""
    composed = compose_post(article.title, article.category, article.source_name)
    post = save_post(session, article, text=composed.text, hashtags=composed.hashtags)
    mark_processed(session, article)
    logger.info(
        "compose.queued",
        extra={
            "article_id": str(article.id),
            "post_id": str(post.id),
            "length": len(composed.text),
            "truncated": composed.truncated,
        },
    )
    return post

