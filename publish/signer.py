"""OAuth 1.0a request signing (HMAC-SHA1) for the publishing API."""

from __future__ import annotations

import uuid
from typing import Mapping, Optional

from oauthlib.common import add_params_to_uri
from oauthlib.oauth1 import SIGNATURE_HMAC, Client
from oauthlib.oauth1.rfc5849 import signature, utils

from publish.settings import OAuthCredentials

SIGNATURE_METHOD = SIGNATURE_HMAC
OAUTH_VERSION = "1.0"


def percent_encode(value: str) -> str:
    """RFC 3986 encoding: only ``A-Z a-z 0-9 - . _ ~`` stay literal."""
    return utils.escape(str(value))


def signature_base_string(method: str, url: str, params: Mapping[str, str]) -> str:
    normalized = signature.normalize_parameters([(str(k), str(v)) for k, v in params.items()])
    return signature.signature_base_string(method, signature.base_string_uri(url), normalized)


def sign(
    method: str,
    url: str,
    params: Mapping[str, str],
    consumer_secret: str,
    token_secret: str,
) -> str:
    base = signature_base_string(method, url, params)
    return signature.sign_hmac_sha1(base, consumer_secret, token_secret)


def build_authorization_header(
    method: str,
    url: str,
    credentials: OAuthCredentials,
    *,
    extra_params: Optional[Mapping[str, str]] = None,
    nonce: Optional[str] = None,
    timestamp: Optional[int] = None,
) -> str:
    """Build the ``Authorization: OAuth ...`` value for one request.

    A fresh nonce/timestamp pair is generated on every call; the API rejects
    replayed pairs. ``extra_params`` are query parameters that take part in
    the signature but are not emitted in the header. JSON bodies are never
    signed.
    """
    client = Client(
        credentials.consumer_key,
        client_secret=credentials.consumer_secret,
        resource_owner_key=credentials.access_token,
        resource_owner_secret=credentials.access_token_secret,
        signature_method=SIGNATURE_METHOD,
        nonce=nonce or uuid.uuid4().hex,
        timestamp=str(timestamp) if timestamp is not None else None,
    )
    signed_url = add_params_to_uri(url, list((extra_params or {}).items())) if extra_params else url
    _, headers, _ = client.sign(signed_url, http_method=method.upper())
    return headers["Authorization"]
