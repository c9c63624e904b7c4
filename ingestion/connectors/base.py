"""Connector abstraction, errors, and helpers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List

from ingestion.models.domain import FeedItemDTO
from ingestion.utils.logging import get_logger


class ConnectorError(Exception):
    """Base connector error."""


class FetchError(ConnectorError):
    """Upstream could not be read (network failure or non-success status)."""


logger = get_logger(__name__)


class BaseConnector(ABC):
    """Best-effort feed connector.

    ``fetch`` never raises: a feed that cannot be read yields no items so the
    remaining sources of a collection run still get processed.
    """

    source_type: str

    def fetch(self, url: str) -> List[FeedItemDTO]:
        try:
            document = self._fetch_raw(url)
        except ConnectorError as exc:
            logger.warning("feed.fetch_failed", extra={"feed_url": url, "error": str(exc)})
            return []
        items = self._parse(document)
        logger.info("feed.parsed", extra={"feed_url": url, "items": len(items)})
        return items

    @abstractmethod
    def _fetch_raw(self, url: str) -> str:
        """Return the raw upstream document, raising ConnectorError on failure."""

    @abstractmethod
    def _parse(self, document: str) -> List[FeedItemDTO]:
        """Extract candidate items from a raw document."""
