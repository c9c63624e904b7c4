from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

ErrorType = Literal["configuration", "runtime"]


class CollectRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    kind: Literal["collect"] = "collect"
    # Accepted for caller bookkeeping only.
    manual: bool = False


class DispatchRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    kind: Literal["dispatch"] = "dispatch"
    immediate: bool = False


class CollectResponse(BaseModel):
    success: bool = True
    message: str
    articlesProcessed: int


class ImmediateDispatchResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool
    message: str
    tweet_id: Optional[str] = None
    error: Optional[str] = None


class StageReport(BaseModel):
    message: str
    results: List[Dict[str, Any]] = Field(default_factory=list)
    requeued: Optional[int] = None


class BatchDispatchData(BaseModel):
    retry: StageReport
    posting: StageReport


class BatchDispatchResponse(BaseModel):
    success: bool = True
    data: BatchDispatchData


class ErrorResponse(BaseModel):
    success: bool = False
    error: str
    error_type: ErrorType = "runtime"
