"""Requeues recently failed posts for another dispatch attempt."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List

from sqlalchemy.orm import Session

from ingestion.repositories.posts import reset_to_pending, select_recent_failures
from ingestion.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_RETRY_WINDOW = timedelta(hours=1)
DEFAULT_RETRY_LIMIT = 2


@dataclass
class RetryReport:
    requeued: int = 0
    post_ids: List[str] = field(default_factory=list)

    @property
    def message(self) -> str:
        if not self.requeued:
            return "No failed posts to retry"
        return f"Retry process completed for {self.requeued} posts"

    def as_dict(self) -> Dict[str, Any]:
        return {
            "message": self.message,
            "requeued": self.requeued,
            "results": [{"success": True, "post_id": pid, "action": "reset_to_pending"} for pid in self.post_ids],
        }


def retry_recent_failures(
    session: Session,
    *,
    now: datetime | None = None,
    window: timedelta = DEFAULT_RETRY_WINDOW,
    limit: int = DEFAULT_RETRY_LIMIT,
) -> RetryReport:
    """Reset up to ``limit`` posts that failed within ``window`` back to pending.

    Posts whose last failure is older than the window are left alone for good.
    """
    current = now or datetime.now(timezone.utc)
    report = RetryReport()
    for post in select_recent_failures(session, since=current - window, limit=limit):
        reset_to_pending(session, post, when=current)
        report.requeued += 1
        report.post_ids.append(str(post.id))
        logger.info("retry.requeued", extra={"post_id": str(post.id)})
    session.commit()
    return report
