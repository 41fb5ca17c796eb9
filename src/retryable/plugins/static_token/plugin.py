"""Static token authorization provider.

This module provides :class:`StaticTokenProvider`, which implements the
``static_token`` auth type. A pre-issued token is resolved once from the
configured ``token_source`` (e.g. ``env:API_TOKEN``, ``file:~/.token``) and
handed out on every authorization.

This provider performs no exchange. If the server rejects the token, every
re-authorization yields the same value and the call ends with
:class:`~retryable.exceptions.RetriesExceeded`.
"""

from __future__ import annotations

from typing import Optional

import httpx

from retryable.auth.base import AuthorizationProvider
from retryable.cancellation import CancellationSignal
from retryable.config import resolve_credential
from retryable.models import AuthConfig


class StaticTokenProvider(AuthorizationProvider):
    """Hand out a fixed bearer token."""

    auth_type = "static_token"

    def __init__(self, token: Optional[str]) -> None:
        self._token = token.strip() if token else None

    async def authorize(self, signal: CancellationSignal) -> Optional[str]:
        if signal.is_cancelled:
            return None
        return self._token or None

    @classmethod
    def from_config(
        cls,
        auth_config: AuthConfig,
        http_client: httpx.AsyncClient,
    ) -> StaticTokenProvider:
        assert auth_config.token_source is not None
        return cls(resolve_credential(auth_config.token_source))

    @classmethod
    def validate_config(cls, auth_config: AuthConfig) -> list[str]:
        if not auth_config.token_source:
            return ["static_token requires a 'token_source'"]
        return []
