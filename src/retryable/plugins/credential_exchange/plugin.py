"""Credential exchange authorization provider.

This module provides :class:`CredentialExchangeProvider`, which implements
the ``credential_exchange`` auth type. It POSTs
``{"username": ..., "password": ...}`` as JSON to ``authentication_uri``
and reads the bearer token out of a 2xx response with a
:data:`~retryable.auth.extractors.TokenExtractor`.

The exchange request is built per call. Any ``Authorization`` header the
shared :class:`httpx.AsyncClient` carries by default is removed from that one
request, so a stale token never rides along on the credential exchange and
concurrent calls through the same transport are unaffected.
"""

from __future__ import annotations

from typing import Optional

import httpx

from retryable.auth.base import AuthorizationProvider
from retryable.auth.extractors import (
    TokenExtractor,
    body_text_extractor,
    extractor_from_config,
)
from retryable.cancellation import CancellationSignal
from retryable.config import resolve_credential
from retryable.models import AuthConfig, Credentials
from retryable.output import get_output


class CredentialExchangeProvider(AuthorizationProvider):
    """Exchange a username/password pair for a bearer token.

    Args:
        http_client: Transport used for the exchange request.
        authentication_uri: Absolute URL, or a path relative to the
            client's ``base_url``.
        credentials: The username/password pair to send.
        extractor: Reads the token from the response. Defaults to the whole
            response body.
    """

    auth_type = "credential_exchange"

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        authentication_uri: str,
        credentials: Credentials,
        extractor: TokenExtractor = body_text_extractor,
    ) -> None:
        self._client = http_client
        self._authentication_uri = authentication_uri
        self._credentials = credentials
        self._extractor = extractor

    async def authorize(self, signal: CancellationSignal) -> Optional[str]:
        """POST the credentials and extract the token from the response.

        Returns ``None`` without a network call when *signal* has already
        fired, and ``None`` for any non-2xx response or when the extractor
        finds no token.
        """
        if signal.is_cancelled:
            return None

        output = get_output()
        request = self._client.build_request(
            "POST",
            self._authentication_uri,
            json={
                "username": self._credentials.username,
                "password": self._credentials.password.get_secret_value(),
            },
        )
        if "Authorization" in request.headers:
            del request.headers["Authorization"]

        response = await signal.guard(self._client.send(request))
        try:
            if not response.is_success:
                output.debug(
                    f"Authorization at {self._authentication_uri} failed "
                    f"with status {response.status_code}"
                )
                return None
            token = self._extractor(response)
        finally:
            await response.aclose()

        if not token:
            output.debug(
                f"Authorization at {self._authentication_uri} returned no token"
            )
            return None
        return token

    @classmethod
    def from_config(
        cls,
        auth_config: AuthConfig,
        http_client: httpx.AsyncClient,
    ) -> CredentialExchangeProvider:
        """Resolve the credential sources and build the provider.

        Raises:
            ConfigError: If a credential source cannot be resolved.
            ProviderError: If ``token_extractor`` is unknown.
        """
        assert auth_config.authentication_uri is not None
        assert auth_config.username_source is not None
        assert auth_config.password_source is not None
        credentials = Credentials(
            username=resolve_credential(auth_config.username_source),
            password=resolve_credential(auth_config.password_source),
        )
        return cls(
            http_client,
            auth_config.authentication_uri,
            credentials,
            extractor=extractor_from_config(auth_config),
        )

    @classmethod
    def validate_config(cls, auth_config: AuthConfig) -> list[str]:
        errors: list[str] = []
        if not auth_config.authentication_uri:
            errors.append("credential_exchange requires 'authentication_uri'")
        if not auth_config.username_source:
            errors.append("credential_exchange requires 'username_source'")
        if not auth_config.password_source:
            errors.append("credential_exchange requires 'password_source'")
        if auth_config.token_extractor not in ("body", "json", "header"):
            errors.append(
                f"unknown token_extractor '{auth_config.token_extractor}'"
            )
        return errors
