"""Celery tasks for the deliver/publish stage."""

from __future__ import annotations

from celery import shared_task

from publish.dispatcher import dispatch_core


@shared_task(
    name="ingestion.tasks.deliver.dispatch_posts",
    queue="deliver.dispatch",
)
def dispatch_posts(immediate: bool = False) -> int:  # pragma: no cover - thin Celery wrapper
    """Retry recent failures and send the next batch of pending posts."""
    result = dispatch_core(immediate=immediate)
    return sum(1 for outcome in result.posting.outcomes if outcome.success)
