"""Asynchronous HTTP client with transparent retry and re-authorization.

This module provides :class:`RetryableClient`, a thin convenience layer over
:class:`~retryable.client.orchestrator.RetryOrchestrator`. It wraps an
:class:`httpx.AsyncClient` and exposes ``get`` / ``post`` / ``put`` /
``patch`` / ``delete``; each call builds a request-producing action and
hands it to the orchestrator, which injects the bearer token, classifies
the outcome and retries.

Request bodies go through a pluggable serializer on every physical attempt,
so each retry sends a freshly serialized payload.

Example::

    async with RetryableClient.from_profile(profile) as client:
        response = await client.post("/orders", {"sku": "A-1", "qty": 2})

See Also:
    :mod:`retryable.client.orchestrator` for the retry state machine.
    :mod:`retryable.cancellation` for per-call cancellation.
"""

from __future__ import annotations

import json
from typing import Any, Callable, Mapping, Optional, Union

import httpx

from retryable.auth.base import AuthorizationProvider
from retryable.auth.manager import AuthManager, create_default_manager
from retryable.auth.token_cache import TokenCache
from retryable.cancellation import NEVER_CANCELLED, CancellationSignal
from retryable.client.orchestrator import RetryOrchestrator
from retryable.client.outcome import Cancelled
from retryable.exceptions import ConfigError
from retryable.models import Profile, RetryPolicy

Serializer = Callable[[Any], Union[bytes, str]]

_NO_BODY: Any = object()


def json_serializer(body: Any) -> bytes:
    """Serialize *body* as compact UTF-8 JSON."""
    return json.dumps(body, ensure_ascii=False, separators=(",", ":")).encode("utf-8")


class RetryableClient:
    """HTTP client that retries transport faults and re-authorizes on 401.

    All calls through one client share a single
    :class:`~retryable.auth.token_cache.TokenCache`, so a token acquired by
    one call is reused by the next until the server rejects it.

    Args:
        http_client: Transport for API calls (and, usually, for the
            provider's own authorization calls).
        provider: Produces bearer tokens.
        policy: Attempt budget and transport-fault backoff.
        serializer: Turns request bodies into wire payloads.
        content_type: ``Content-Type`` sent with serialized bodies.
        owns_http_client: Close *http_client* when this client is closed.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        provider: AuthorizationProvider,
        policy: Optional[RetryPolicy] = None,
        serializer: Serializer = json_serializer,
        content_type: str = "application/json",
        owns_http_client: bool = False,
    ) -> None:
        self._client = http_client
        self._serializer = serializer
        self._content_type = content_type
        self._owns_http_client = owns_http_client
        self._orchestrator = RetryOrchestrator(provider, policy, TokenCache())

    @classmethod
    def from_profile(
        cls,
        profile: Profile,
        auth_manager: Optional[AuthManager] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        **kwargs: Any,
    ) -> RetryableClient:
        """Build a client, its transport, and its provider from a profile.

        The returned client owns its :class:`httpx.AsyncClient` and closes
        it on exit. *transport* replaces the default network transport
        (e.g. an :class:`httpx.MockTransport`); other keyword arguments are
        passed to the constructor.

        Without an explicit *auth_manager*, providers registered under the
        ``retryable.providers`` entry points are available alongside the
        built-in ones.

        Raises:
            ConfigError: If the profile has no auth section or a credential
                source cannot be resolved.
            ProviderError: If the auth type is unknown or misconfigured.
        """
        if profile.auth is None:
            raise ConfigError(
                f"Profile '{profile.name}' has no auth section; a token provider is required"
            )
        manager = auth_manager or create_default_manager(discover=True)
        http_client = httpx.AsyncClient(
            base_url=profile.base_url or "",
            timeout=profile.request.timeout,
            verify=profile.request.verify_ssl,
            follow_redirects=True,
            transport=transport,
        )
        provider = manager.create(profile.auth, http_client)
        return cls(
            http_client,
            provider,
            policy=profile.retry,
            owns_http_client=True,
            **kwargs,
        )

    # ------------------------------------------------------------------ #
    # Lifecycle
    # ------------------------------------------------------------------ #

    async def __aenter__(self) -> RetryableClient:
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the transport if this client owns it."""
        if self._owns_http_client and not self._client.is_closed:
            await self._client.aclose()

    @property
    def orchestrator(self) -> RetryOrchestrator:
        return self._orchestrator

    async def invalidate_token(self) -> bool:
        """Drop the cached token so the next call re-authorizes."""
        return await self._orchestrator.token_cache.invalidate()

    # ------------------------------------------------------------------ #
    # Public request methods
    # ------------------------------------------------------------------ #

    async def request(
        self,
        method: str,
        path: str,
        body: Any = _NO_BODY,
        *,
        params: Optional[Mapping[str, Any]] = None,
        headers: Optional[Mapping[str, str]] = None,
        signal: CancellationSignal = NEVER_CANCELLED,
    ) -> Union[httpx.Response, Cancelled]:
        """Send a request with retry and re-authorization.

        Args:
            method: HTTP method.
            path: URL path appended to the transport's ``base_url``, or an
                absolute URL.
            body: Request body, serialized on every attempt. Omit for no body.
            params: Query parameters.
            headers: Extra request headers. A caller-supplied
                ``Authorization`` header is replaced by the bearer token.
            signal: Per-call cancellation signal.

        Returns:
            The response (any status other than 401 is passed through) or
            :data:`~retryable.client.outcome.CANCELLED`.

        Raises:
            AuthenticationFailed: The provider produced no token.
            RetriesExceeded: The attempt budget was spent.
        """
        method = method.upper()
        extra_headers = dict(headers or {})
        query = dict(params or {})

        async def action(auth_headers: Mapping[str, str]) -> httpx.Response:
            merged = httpx.Headers(extra_headers)
            merged.update(auth_headers)
            content = None
            if body is not _NO_BODY:
                content = self._serializer(body)
                if "Content-Type" not in merged:
                    merged["Content-Type"] = self._content_type
            return await self._client.request(
                method,
                path,
                params=query or None,
                headers=merged,
                content=content,
            )

        return await self._orchestrator.execute(action, signal)

    async def get(
        self,
        path: str,
        *,
        params: Optional[Mapping[str, Any]] = None,
        headers: Optional[Mapping[str, str]] = None,
        signal: CancellationSignal = NEVER_CANCELLED,
    ) -> Union[httpx.Response, Cancelled]:
        """Send a GET request. See :meth:`request`."""
        return await self.request("GET", path, params=params, headers=headers, signal=signal)

    async def post(
        self,
        path: str,
        body: Any = None,
        *,
        params: Optional[Mapping[str, Any]] = None,
        headers: Optional[Mapping[str, str]] = None,
        signal: CancellationSignal = NEVER_CANCELLED,
    ) -> Union[httpx.Response, Cancelled]:
        """Send a POST request with a serialized *body*. See :meth:`request`."""
        return await self.request(
            "POST", path, body, params=params, headers=headers, signal=signal
        )

    async def put(
        self,
        path: str,
        body: Any = None,
        *,
        params: Optional[Mapping[str, Any]] = None,
        headers: Optional[Mapping[str, str]] = None,
        signal: CancellationSignal = NEVER_CANCELLED,
    ) -> Union[httpx.Response, Cancelled]:
        """Send a PUT request with a serialized *body*. See :meth:`request`."""
        return await self.request(
            "PUT", path, body, params=params, headers=headers, signal=signal
        )

    async def patch(
        self,
        path: str,
        body: Any = None,
        *,
        params: Optional[Mapping[str, Any]] = None,
        headers: Optional[Mapping[str, str]] = None,
        signal: CancellationSignal = NEVER_CANCELLED,
    ) -> Union[httpx.Response, Cancelled]:
        """Send a PATCH request with a serialized *body*. See :meth:`request`."""
        return await self.request(
            "PATCH", path, body, params=params, headers=headers, signal=signal
        )

    async def delete(
        self,
        path: str,
        *,
        params: Optional[Mapping[str, Any]] = None,
        headers: Optional[Mapping[str, str]] = None,
        signal: CancellationSignal = NEVER_CANCELLED,
    ) -> Union[httpx.Response, Cancelled]:
        """Send a DELETE request. See :meth:`request`."""
        return await self.request("DELETE", path, params=params, headers=headers, signal=signal)
