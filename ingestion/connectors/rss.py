"""RSS/Atom connector with a tolerant, regex-based item scanner.

Feeds in the wild are frequently invalid XML (unescaped ampersands, stray
HTML, truncated documents). Instead of a strict XML parser the scanner pulls
four fields out of each ``<item>``/``<entry>`` block and drops any block it
cannot make sense of.
"""

from __future__ import annotations

import html
import itertools
import re
from datetime import datetime, timezone
from typing import List, Optional

import httpx

from ingestion.models.domain import FeedItemDTO
from ingestion.settings import Settings, get_settings
from ingestion.utils.logging import get_logger

from .base import BaseConnector, FetchError

logger = get_logger(__name__)

TITLE_MAX_CHARS = 200
DESCRIPTION_MAX_CHARS = 500
# Scanner input is bounded so a runaway document cannot stall a collection run.
MAX_DOCUMENT_CHARS = 5_000_000

# Bodies never run past the next opener, so unclosed blocks cost one pass over the document.
_BLOCK_RE = re.compile(
    r"<(item|entry)\b[^<>]*>((?:(?!<(?:item|entry)\b).)*?)</\1\s*>",
    re.IGNORECASE | re.DOTALL,
)
_CDATA_RE = re.compile(r"<!\[CDATA\[((?:(?!<!\[CDATA\[).)*?)\]\]>", re.DOTALL)
_TAG_RE = re.compile(r"<[^<>]*>")
_WS_RE = re.compile(r"\s+")
_HREF_RE = re.compile(r"<link\b[^<>]*?href\s*=\s*[\"']([^\"']+)[\"']", re.IGNORECASE)


def _element_text(block: str, *names: str) -> Optional[str]:
    for name in names:
        tag = re.escape(name)
        pattern = rf"<{tag}\b[^<>]*>((?:(?!<{tag}\b).)*?)</{tag}\s*>"
        match = re.search(pattern, block, re.IGNORECASE | re.DOTALL)
        if match:
            return match.group(1)
    return None


def clean_text(raw: Optional[str]) -> str:
    """Unwrap CDATA, decode entities, strip markup and collapse whitespace."""
    if not raw:
        return ""
    text = _CDATA_RE.sub(r"\1", raw)
    # Escaped markup (&lt;p&gt;) turns into real tags here and is stripped below.
    text = html.unescape(text)
    text = _TAG_RE.sub("", text)
    return _WS_RE.sub(" ", text).strip()


def _extract_link(block: str) -> str:
    link = clean_text(_element_text(block, "link"))
    if link:
        return link
    match = _HREF_RE.search(block)
    return html.unescape(match.group(1)).strip() if match else ""


def parse_feed_items(document: str, *, limit: int = 15, now: Optional[datetime] = None) -> List[FeedItemDTO]:
    """Extract candidate items from the first ``limit`` blocks in document order.

    The limit applies to blocks, not to accepted items: a block dropped for a
    missing title or link still uses up one slot.
    """
    fallback_published = (now or datetime.now(timezone.utc)).isoformat()
    items: List[FeedItemDTO] = []
    blocks = _BLOCK_RE.finditer(document[:MAX_DOCUMENT_CHARS])
    for match in itertools.islice(blocks, limit):
        block = match.group(2)
        try:
            title = clean_text(_element_text(block, "title"))[:TITLE_MAX_CHARS]
            link = _extract_link(block)
            if not title or not link:
                logger.debug("feed.item_skipped", extra={"reason": "missing_title_or_link"})
                continue
            description = clean_text(_element_text(block, "description", "summary", "content"))
            published = clean_text(_element_text(block, "pubDate", "published", "updated", "dc:date"))
            items.append(
                FeedItemDTO(
                    title=title,
                    description=description[:DESCRIPTION_MAX_CHARS],
                    link=link,
                    published=published or fallback_published,
                )
            )
        except ValueError as exc:
            logger.debug("feed.item_invalid", extra={"error": str(exc)})
    return items


class RSSConnector(BaseConnector):
    """Connector that reads one RSS/Atom document per call."""

    source_type = "rss"

    def __init__(
        self,
        *,
        user_agent: str = "Mozilla/5.0 (compatible; NewsBot/1.0)",
        timeout_seconds: float = 10.0,
        max_items: int = 15,
        client: httpx.Client | None = None,
    ) -> None:
        self._user_agent = user_agent
        self._timeout = timeout_seconds
        self._max_items = max_items
        self._client = client

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "RSSConnector":
        cfg = settings or get_settings()
        return cls(
            user_agent=cfg.feed_user_agent,
            timeout_seconds=float(cfg.feed_timeout_seconds),
            max_items=int(cfg.feed_max_items),
        )

    def _fetch_raw(self, url: str) -> str:
        headers = {"User-Agent": self._user_agent}
        try:
            if self._client is not None:
                resp = self._client.get(url, headers=headers, timeout=self._timeout)
            else:
                resp = httpx.get(url, headers=headers, timeout=self._timeout, follow_redirects=True)
        except httpx.HTTPError as exc:
            raise FetchError(f"feed request failed: {exc}") from exc
        if not resp.is_success:
            raise FetchError(f"feed returned HTTP {resp.status_code}")
        return resp.text

    def _parse(self, document: str) -> List[FeedItemDTO]:
        return parse_feed_items(document, limit=self._max_items)
