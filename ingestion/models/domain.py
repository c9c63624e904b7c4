"""Domain DTOs for the collection pipeline."""

from __future__ import annotations

from typing import List

from pydantic import BaseModel, Field


class FeedItemDTO(BaseModel):
    """Candidate item extracted from a feed document (never persisted as is)."""

    title: str = Field(..., max_length=200)
    description: str = Field("", max_length=500)
    link: str
    published: str = Field(..., description="피드에 기재된 원본 발행 시각 문자열 (없으면 수집 시각)")


class ComposedPost(BaseModel):
    """Post body and tags produced for an article."""

    text: str = Field(..., max_length=280)
    hashtags: List[str] = Field(..., min_length=3, max_length=3)
    truncated: bool = False
