"""Configuration models for the collection pipeline."""

from __future__ import annotations

import json
from functools import lru_cache
from typing import Any, List, Optional, Set

from pydantic import (
    BaseModel,
    Field,
    PositiveInt,
    ValidationError,
    field_validator,
)
from pydantic_settings import BaseSettings, SettingsConfigDict


class FeedSourceConfig(BaseModel):
    """A feed source declared through configuration."""

    name: str = Field(..., description="매체 표시 이름.")
    category: str = Field("world", description="기본 해시태그 결정용 카테고리 (japan/world).")
    url: str = Field("", description="매체 홈페이지 URL.")
    feed_url: Optional[str] = Field(None, description="RSS/Atom 피드 URL.")
    active: bool = Field(True, description="수집 대상 여부.")

    @field_validator("name", "category")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("name/category는 공백일 수 없습니다.")
        return stripped


class Settings(BaseSettings):
    """피드 수집용 환경 설정."""

    model_config = SettingsConfigDict(
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
        populate_by_name=True,
    )

    postgres_dsn: str = Field(..., alias="POSTGRES_DSN", description="데이터베이스 연결 문자열.")
    redis_url: str = Field(
        "redis://localhost:6379/0",
        alias="INGESTION_REDIS_URL",
        description="Celery 브로커/백엔드 Redis DSN.",
    )
    feed_user_agent: str = Field(
        "Mozilla/5.0 (compatible; NewsBot/1.0)",
        alias="FEED_USER_AGENT",
        description="피드 요청 시 전송할 User-Agent.",
    )
    feed_timeout_seconds: PositiveInt = Field(10, alias="FEED_TIMEOUT_SECONDS", description="피드 요청 타임아웃(초).")
    feed_max_items: PositiveInt = Field(15, alias="FEED_MAX_ITEMS", description="피드당 추출 항목 수 상한.")
    recency_window_minutes: PositiveInt = Field(
        120,
        alias="RECENCY_WINDOW_MINUTES",
        description="이 시간보다 오래된 항목은 수집하지 않는다 (분).",
    )
    feed_sources: List[FeedSourceConfig] = Field(
        default_factory=list,
        alias="FEED_SOURCES",
        description="저장소에 동기화할 피드 소스 JSON 배열.",
    )
    collect_interval_minutes: PositiveInt = Field(15, alias="COLLECT_INTERVAL_MINUTES", description="수집 주기 (분 단위).")
    dispatch_interval_minutes: PositiveInt = Field(5, alias="DISPATCH_INTERVAL_MINUTES", description="게시 주기 (분 단위).")
    structlog_level: str = Field("INFO", alias="STRUCTLOG_LEVEL", description="구조화 로그 레벨.")
    log_json: bool = Field(False, alias="LOG_JSON", description="로그를 JSON 형식으로 출력할지 여부.")
    celery_task_soft_time_limit: PositiveInt = Field(
        300,
        alias="CELERY_TASK_SOFT_TIME_LIMIT",
        description="Celery 태스크 소프트 타임아웃 (초).",
    )

    @field_validator("feed_sources", mode="before")
    @classmethod
    def _parse_feed_sources(cls, value: Any) -> List[Any]:
        if value in (None, "", []):
            return []
        if isinstance(value, str):
            try:
                return json.loads(value)
            except json.JSONDecodeError as exc:
                raise ValueError("FEED_SOURCES는 JSON 배열이어야 합니다.") from exc
        if isinstance(value, list):
            return value
        raise ValueError("FEED_SOURCES는 리스트 형태여야 합니다.")

    @field_validator("feed_sources")
    @classmethod
    def _validate_unique_sources(cls, value: List[FeedSourceConfig]) -> List[FeedSourceConfig]:
        seen: Set[str] = set()
        for source in value:
            if source.name in seen:
                raise ValueError(f"중복된 피드 소스가 존재합니다: {source.name}")
            seen.add(source.name)
        return value

    @field_validator("postgres_dsn")
    @classmethod
    def _validate_postgres_dsn(cls, value: str) -> str:
        if "://" not in value:
            raise ValueError("POSTGRES_DSN은 유효한 DSN 문자열이어야 합니다.")
        return value


@lru_cache()
def get_settings() -> Settings:
    """환경 변수를 기준으로 Settings 인스턴스를 반환한다."""
    try:
        return Settings()
    except ValidationError as exc:
        raise RuntimeError(f"환경 변수 검증에 실패했습니다: {exc}") from exc


def reset_settings_cache() -> None:
    """Settings LRU 캐시를 초기화한다 (테스트 용도)."""
    get_settings.cache_clear()  # type: ignore[attr-defined]
