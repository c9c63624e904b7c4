"""HTTP client for the X (Twitter) v2 post endpoint."""

from __future__ import annotations

import re
from dataclasses import dataclass

import httpx

from publish.settings import OAuthCredentials, PublishSettings, get_publish_settings
from publish.signer import build_authorization_header


class PublishError(Exception):
    """Post could not be published (retryable only through the retry window)."""


class RateLimitedError(PublishError):
    """The API throttled the request; the post should stay queued."""


_RATE_LIMIT_RE = re.compile(r"\b429\b|rate[\s_-]?limit", re.IGNORECASE)


def looks_rate_limited(status_code: int | None, message: str) -> bool:
    return status_code == 429 or bool(_RATE_LIMIT_RE.search(message or ""))


@dataclass(frozen=True)
class XClient:
    credentials: OAuthCredentials
    endpoint: str = "https://api.x.com/2/tweets"
    timeout_seconds: float = 15.0

    @classmethod
    def from_settings(cls, settings: PublishSettings | None = None) -> "XClient":
        cfg = settings or get_publish_settings()
        return cls(
            credentials=cfg.credentials(),
            endpoint=cfg.endpoint,
            timeout_seconds=float(cfg.timeout_seconds),
        )

    def send(self, text: str) -> str:
        """Publish ``text`` and return the id of the created post."""
        headers = {
            "Authorization": build_authorization_header("POST", self.endpoint, self.credentials),
            "Content-Type": "application/json",
        }
        try:
            resp = httpx.post(
                self.endpoint,
                headers=headers,
                json={"text": text},
                timeout=self.timeout_seconds,
            )
        except httpx.HTTPError as exc:
            message = f"transport error: {exc}"
            if looks_rate_limited(None, message):
                raise RateLimitedError(message) from exc
            raise PublishError(message) from exc

        if not resp.is_success:
            message = f"HTTP error! status: {resp.status_code}, body: {resp.text}"
            if looks_rate_limited(resp.status_code, resp.text):
                raise RateLimitedError(message)
            raise PublishError(message)

        try:
            payload = resp.json()
        except ValueError as exc:
            raise PublishError(f"invalid response body: {resp.text[:200]}") from exc
        data = payload.get("data") if isinstance(payload, dict) else None
        post_id = data.get("id") if isinstance(data, dict) else None
        if not post_id:
            raise PublishError(f"response without post id: {resp.text[:200]}")
        return str(post_id)
