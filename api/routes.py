from __future__ import annotations

from typing import Annotated, Optional

from fastapi import APIRouter, Body
from fastapi.responses import JSONResponse

from ingestion.tasks.collect import collect_core
from ingestion.utils.logging import get_logger
from publish.dispatcher import DispatchResult, dispatch_core
from publish.settings import ConfigurationError

from .models import (
    BatchDispatchData,
    BatchDispatchResponse,
    CollectRequest,
    CollectResponse,
    DispatchRequest,
    ErrorResponse,
    ErrorType,
    ImmediateDispatchResponse,
    StageReport,
)

router = APIRouter()
logger = get_logger(__name__)


def _error(message: str, error_type: ErrorType, status_code: int = 500) -> JSONResponse:
    body = ErrorResponse(error=message, error_type=error_type)
    return JSONResponse(status_code=status_code, content=body.model_dump())


# Handlers are sync on purpose: the pipeline blocks on HTTP, DB and pacing
# sleeps, so FastAPI runs them in its threadpool.
@router.post("/collect", tags=["pipeline"])
def collect_route(payload: Annotated[Optional[CollectRequest], Body()] = None) -> JSONResponse:
    request = payload or CollectRequest()
    logger.info("api.collect", extra={"manual": request.manual})
    try:
        summary = collect_core()
    except Exception as exc:
        logger.exception("api.collect_failed")
        return _error(str(exc), "runtime")
    body = CollectResponse(
        message="News collection completed",
        articlesProcessed=summary.processed,
    )
    return JSONResponse(content=body.model_dump())


@router.post("/dispatch", tags=["pipeline"])
def dispatch_route(payload: Annotated[Optional[DispatchRequest], Body()] = None) -> JSONResponse:
    request = payload or DispatchRequest()
    logger.info("api.dispatch", extra={"immediate": request.immediate})
    try:
        result = dispatch_core(immediate=request.immediate)
    except ConfigurationError as exc:
        logger.error("api.dispatch_misconfigured", extra={"error": str(exc)})
        return _error(str(exc), "configuration")
    except Exception as exc:
        logger.exception("api.dispatch_failed")
        return _error(str(exc), "runtime")

    if request.immediate:
        return JSONResponse(content=_immediate_body(result).model_dump(exclude_none=True))
    return JSONResponse(content=_batch_body(result).model_dump(exclude_none=True))


def _immediate_body(result: DispatchResult) -> ImmediateDispatchResponse:
    if not result.posting.outcomes:
        return ImmediateDispatchResponse(success=True, message=result.posting.message)
    outcome = result.posting.outcomes[0]
    if outcome.success:
        return ImmediateDispatchResponse(
            success=True,
            message="Immediate tweet posted successfully",
            tweet_id=outcome.tweet_id,
        )
    return ImmediateDispatchResponse(
        success=False,
        message="Immediate tweet was not posted",
        error=outcome.error,
    )


def _batch_body(result: DispatchResult) -> BatchDispatchResponse:
    retry = result.retry.as_dict() if result.retry else {"message": "Retry skipped", "results": []}
    return BatchDispatchResponse(
        data=BatchDispatchData(
            retry=StageReport(**retry),
            posting=StageReport(**result.posting.as_dict()),
        )
    )
