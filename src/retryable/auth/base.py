"""Abstract base class for authorization providers.

An authorization provider turns configured credentials into a bearer token.
It is the only part of the request layer that knows how tokens are obtained,
so the acquisition protocol (endpoint, payload, response parsing) can be
swapped without touching retry logic.

To implement a new strategy, subclass :class:`AuthorizationProvider`, set the
:attr:`~AuthorizationProvider.auth_type` class attribute, and implement
:meth:`~AuthorizationProvider.authorize`. Override
:meth:`~AuthorizationProvider.from_config` and
:meth:`~AuthorizationProvider.validate_config` to make the provider
buildable from a :class:`~retryable.models.AuthConfig`.

See Also:
    :mod:`retryable.auth.manager` for provider registration and dispatch.
    :mod:`retryable.auth.token_cache` for how tokens are cached and shared.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import ClassVar, Optional

import httpx

from retryable.cancellation import CancellationSignal
from retryable.models import AuthConfig


class AuthorizationProvider(ABC):
    """Obtains a fresh bearer token on demand.

    Contract for :meth:`authorize`:

    1. If the signal has already fired, return ``None`` without any network
       call.
    2. On a successful exchange, return the extracted token.
    3. On a non-success response, or when no token can be extracted, return
       ``None``. The orchestrator treats this as terminal and raises
       :class:`~retryable.exceptions.AuthenticationFailed`.
    4. Transport faults (:class:`httpx.TransportError`) propagate; the
       orchestrator retries them with backoff like any other transport fault.
    5. Any header manipulation is scoped to the authorization request itself.
    """

    auth_type: ClassVar[str] = ""
    """Unique type identifier this provider is registered under (e.g. ``"static_token"``)."""

    @abstractmethod
    async def authorize(self, signal: CancellationSignal) -> Optional[str]:
        """Acquire a token, or return ``None`` if none can be produced.

        Args:
            signal: Per-call cancellation signal. Checked before the network
                call and raced against it.

        Returns:
            The bearer token, or ``None``.

        Raises:
            OperationCancelled: If *signal* fires while the network call is
                in flight.
            httpx.TransportError: On network-level failures.
        """
        ...

    @classmethod
    def from_config(
        cls,
        auth_config: AuthConfig,
        http_client: httpx.AsyncClient,
    ) -> AuthorizationProvider:
        """Build a provider from a profile's auth section.

        The default implementation raises :class:`NotImplementedError`;
        providers that can be configured from a profile override it.

        Args:
            auth_config: The authorization section of the active profile.
            http_client: Shared transport the provider may use for its own
                network calls.
        """
        raise NotImplementedError(
            f"{cls.__name__} cannot be built from a profile"
        )

    @classmethod
    def validate_config(cls, auth_config: AuthConfig) -> list[str]:
        """Return human-readable problems with *auth_config* (empty when valid)."""
        return []
