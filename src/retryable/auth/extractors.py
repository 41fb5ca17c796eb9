"""Token extraction strategies for credential-exchange responses.

An extractor receives the (successful) :class:`httpx.Response` of an
authorization call and returns the bearer token it carries, or ``None``.
Empty strings count as "no token".

Built-in strategies:

- :func:`body_text_extractor` -- the whole response body is the token.
- :func:`json_field_extractor` -- the token lives in a top-level JSON field.
- :func:`header_extractor` -- the token is returned in a response header.

:func:`extractor_from_config` maps the ``token_extractor`` / ``token_field``
settings of an :class:`~retryable.models.AuthConfig` to one of these.
"""

from __future__ import annotations

import json
from typing import Callable, Optional

import httpx

from retryable.exceptions import ProviderError
from retryable.models import AuthConfig

TokenExtractor = Callable[[httpx.Response], Optional[str]]


def body_text_extractor(response: httpx.Response) -> Optional[str]:
    """Treat the whole response body as the token.

    Surrounding whitespace is stripped, and a body that is a bare JSON string
    literal (``"abc"``) is unquoted.
    """
    text = response.text.strip()
    if len(text) >= 2 and text[0] == text[-1] == '"':
        try:
            decoded = json.loads(text)
        except json.JSONDecodeError:
            decoded = None
        if isinstance(decoded, str):
            text = decoded.strip()
    return text or None


def json_field_extractor(field: str = "access_token") -> TokenExtractor:
    """Build an extractor that reads *field* from a JSON object body."""

    def extract(response: httpx.Response) -> Optional[str]:
        try:
            payload = response.json()
        except ValueError:
            return None
        if not isinstance(payload, dict):
            return None
        value = payload.get(field)
        if not isinstance(value, str):
            return None
        return value.strip() or None

    return extract


def header_extractor(name: str = "Authorization") -> TokenExtractor:
    """Build an extractor that reads the token from response header *name*.

    A leading ``Bearer`` scheme is stripped.
    """

    def extract(response: httpx.Response) -> Optional[str]:
        value = response.headers.get(name, "").strip()
        if value.lower().startswith("bearer "):
            value = value[7:].strip()
        return value or None

    return extract


def extractor_from_config(auth_config: AuthConfig) -> TokenExtractor:
    """Return the extractor selected by ``auth_config.token_extractor``.

    Raises:
        ProviderError: If the extractor name is unknown.
    """
    kind = auth_config.token_extractor
    if kind == "body":
        return body_text_extractor
    if kind == "json":
        return json_field_extractor(auth_config.token_field or "access_token")
    if kind == "header":
        return header_extractor(auth_config.token_field or "Authorization")
    raise ProviderError(
        f"Unknown token_extractor '{kind}'. Expected one of: body, json, header"
    )
