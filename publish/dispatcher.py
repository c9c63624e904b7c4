"""Posting worker: drains the pending queue through the publishing API.

Posts are sent strictly one at a time with a fixed pause between sends. The
publishing API penalizes bursts, so the pacing is part of correctness rather
than a throughput knob.
"""

from __future__ import annotations

import time
import uuid
from dataclasses import dataclass, field
from datetime import timedelta
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Protocol

from sqlalchemy.orm import Session

from ingestion.db.models import Post
from ingestion.db.session import ensure_schema, session_scope
from ingestion.repositories.posts import mark_failed, mark_posted, select_pending
from ingestion.utils.logging import get_logger
from publish.client import PublishError, RateLimitedError, XClient
from publish.retry import RetryReport, retry_recent_failures
from publish.settings import PublishSettings, get_publish_settings

logger = get_logger(__name__)


class DispatchMode(str, Enum):
    BATCH = "batch"
    IMMEDIATE = "immediate"


class PostSender(Protocol):
    def send(self, text: str) -> str: ...  # noqa: D401


@dataclass(frozen=True)
class PostOutcome:
    post_id: str
    success: bool
    tweet_id: Optional[str] = None
    error: Optional[str] = None
    retry: bool = False

    def as_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"success": self.success, "post_id": self.post_id}
        if self.tweet_id:
            data["tweet_id"] = self.tweet_id
        if self.error:
            data["error"] = self.error
        if self.retry:
            data["retry"] = True
        return data


@dataclass
class DispatchReport:
    mode: DispatchMode
    outcomes: List[PostOutcome] = field(default_factory=list)

    @property
    def message(self) -> str:
        if not self.outcomes:
            if self.mode is DispatchMode.IMMEDIATE:
                return "No pending posts for immediate posting"
            return "No pending posts to process"
        return f"Processed {len(self.outcomes)} posts"

    def as_dict(self) -> Dict[str, Any]:
        return {"message": self.message, "results": [o.as_dict() for o in self.outcomes]}


class PostingWorker:
    """Sends pending posts in newest-first order with fixed pacing."""

    def __init__(
        self,
        sender: PostSender,
        *,
        batch_size: int = 3,
        pacing_seconds: float = 10.0,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._sender = sender
        self._batch_size = batch_size
        self._pacing_seconds = pacing_seconds
        self._sleep = sleep

    def dispatch(self, session: Session, mode: DispatchMode = DispatchMode.BATCH) -> DispatchReport:
        limit = 1 if mode is DispatchMode.IMMEDIATE else self._batch_size
        posts = select_pending(session, limit)
        logger.info("dispatch.pending", extra={"mode": mode.value, "count": len(posts)})
        report = DispatchReport(mode=mode)
        for index, post in enumerate(posts):
            report.outcomes.append(self._attempt(session, post))
            is_last = index == len(posts) - 1
            if not is_last and self._pacing_seconds > 0:
                logger.info("dispatch.pacing", extra={"seconds": self._pacing_seconds})
                self._sleep(self._pacing_seconds)
        return report

    def _attempt(self, session: Session, post: Post) -> PostOutcome:
        post_id = str(post.id)
        extra = {"post_id": post_id, "title": post.article.title if post.article else None}
        try:
            tweet_id = self._sender.send(post.tweet_content)
        except RateLimitedError as exc:
            # Soft failure: left pending for a later cycle.
            logger.warning("dispatch.rate_limited", extra={**extra, "error": str(exc)})
            return PostOutcome(post_id=post_id, success=False, error="Rate limit - will retry", retry=True)
        except PublishError as exc:
            mark_failed(session, post, str(exc))
            session.commit()
            logger.warning("dispatch.failed", extra={**extra, "error": str(exc)})
            return PostOutcome(post_id=post_id, success=False, error=str(exc))
        mark_posted(session, post, tweet_id)
        session.commit()
        logger.info("dispatch.posted", extra={**extra, "tweet_id": tweet_id})
        return PostOutcome(post_id=post_id, success=True, tweet_id=tweet_id)


# Sender factory is kept pluggable for tests; it receives the validated settings.
SENDER_FACTORY: Callable[[PublishSettings], PostSender] | None = None


@dataclass
class DispatchResult:
    mode: DispatchMode
    posting: DispatchReport
    retry: Optional[RetryReport] = None


def _build_sender(settings: PublishSettings) -> PostSender:
    if SENDER_FACTORY is not None:
        return SENDER_FACTORY(settings)
    return XClient.from_settings(settings)


def dispatch_core(*, immediate: bool = False) -> DispatchResult:
    """Run one dispatch invocation.

    Credentials are checked before anything else; ConfigurationError
    propagates without touching the store or the network. Regular runs
    requeue recent failures first, immediate runs send only the newest
    pending post.
    """
    settings = get_publish_settings()
    settings.credentials()
    mode = DispatchMode.IMMEDIATE if immediate else DispatchMode.BATCH
    trace_id = str(uuid.uuid4())
    logger.info("dispatch.start", extra={"trace_id": trace_id, "mode": mode.value})

    sender = _build_sender(settings)
    worker = PostingWorker(
        sender,
        batch_size=int(settings.batch_size),
        pacing_seconds=float(settings.pacing_seconds),
    )
    ensure_schema()
    with session_scope() as session:
        retry_report = None
        if mode is DispatchMode.BATCH:
            retry_report = retry_recent_failures(
                session,
                window=timedelta(minutes=settings.retry_window_minutes),
                limit=int(settings.retry_batch_size),
            )
            logger.info("dispatch.retry", extra={"trace_id": trace_id, "requeued": retry_report.requeued})
        posting = worker.dispatch(session, mode)

    logger.info(
        "dispatch.done",
        extra={
            "trace_id": trace_id,
            "mode": mode.value,
            "attempted": len(posting.outcomes),
            "posted": sum(1 for o in posting.outcomes if o.success),
        },
    )
    return DispatchResult(mode=mode, posting=posting, retry=retry_report)
