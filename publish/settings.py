"""Settings for the publishing (X API) stage."""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

from pydantic import (
    Field,
    NonNegativeFloat,
    PositiveInt,
    SecretStr,
    ValidationError,
    field_validator,
)
from pydantic_settings import BaseSettings, SettingsConfigDict


class ConfigurationError(RuntimeError):
    """Required publishing configuration is missing or invalid."""


@dataclass(frozen=True)
class OAuthCredentials:
    """The four OAuth 1.0a secrets, built once and passed around explicitly."""

    consumer_key: str
    consumer_secret: str
    access_token: str
    access_token_secret: str

    def __repr__(self) -> str:  # never leak secrets into logs
        return f"OAuthCredentials(consumer_key={self.consumer_key[:4]}***)"


class PublishSettings(BaseSettings):
    """게시(X API) 단계 환경 설정."""

    model_config = SettingsConfigDict(
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
        populate_by_name=True,
    )

    consumer_key: Optional[SecretStr] = Field(None, alias="TWITTER_CONSUMER_KEY")
    consumer_secret: Optional[SecretStr] = Field(None, alias="TWITTER_CONSUMER_SECRET")
    access_token: Optional[SecretStr] = Field(None, alias="TWITTER_ACCESS_TOKEN")
    access_token_secret: Optional[SecretStr] = Field(None, alias="TWITTER_ACCESS_TOKEN_SECRET")
    endpoint: str = Field("https://api.x.com/2/tweets", alias="PUBLISH_ENDPOINT", description="게시 API 엔드포인트")
    timeout_seconds: PositiveInt = Field(15, alias="PUBLISH_TIMEOUT_SECONDS", description="게시 요청 타임아웃(초)")
    batch_size: PositiveInt = Field(3, alias="PUBLISH_BATCH_SIZE", description="배치당 최대 게시 수")
    pacing_seconds: NonNegativeFloat = Field(10.0, alias="PUBLISH_PACING_SECONDS", description="게시 간 대기(초)")
    retry_window_minutes: PositiveInt = Field(60, alias="RETRY_WINDOW_MINUTES", description="실패 재시도 허용 구간(분)")
    retry_batch_size: PositiveInt = Field(2, alias="RETRY_BATCH_SIZE", description="회당 재시도 대상 수")

    @field_validator("consumer_key", "consumer_secret", "access_token", "access_token_secret", mode="before")
    @classmethod
    def _strip_blank(cls, value: object) -> object:
        if isinstance(value, str):
            value = value.strip()
            return value or None
        return value

    def credentials(self) -> OAuthCredentials:
        """Return the API credentials or raise ConfigurationError naming the first gap."""
        fields = (
            ("TWITTER_CONSUMER_KEY", self.consumer_key),
            ("TWITTER_CONSUMER_SECRET", self.consumer_secret),
            ("TWITTER_ACCESS_TOKEN", self.access_token),
            ("TWITTER_ACCESS_TOKEN_SECRET", self.access_token_secret),
        )
        values = []
        for env_name, secret in fields:
            if secret is None:
                raise ConfigurationError(f"Missing {env_name} environment variable")
            values.append(secret.get_secret_value())
        return OAuthCredentials(*values)


@lru_cache()
def get_publish_settings() -> PublishSettings:
    try:
        return PublishSettings()
    except ValidationError as exc:
        raise ConfigurationError(f"게시 설정 검증 실패: {exc}") from exc


def reset_publish_settings_cache() -> None:
    get_publish_settings.cache_clear()  # type: ignore[attr-defined]
