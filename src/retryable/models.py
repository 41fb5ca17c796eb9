"""Canonical Pydantic models shared across all retryable modules.

This is the single source of truth for data shapes in the project. The
models fall into two groups:

**Request-layer models** -- immutable values handed to the client at
construction time:
    :class:`Credentials` and :class:`RetryPolicy`.

**Configuration models** -- serialised as JSON in the user's config directory:
    :class:`AuthConfig`, :class:`RequestConfig`, :class:`GlobalConfig`, and
    :class:`Profile`.

All models use Pydantic v2. Configuration models that accept
provider-defined extensions use ``extra="allow"`` so that unknown keys are
preserved in ``model_extra``.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, SecretStr


# --- Request-layer values ---


class Credentials(BaseModel):
    """Username/password pair exchanged for a bearer token.

    Immutable for the lifetime of a client. The password is held as a
    :class:`~pydantic.SecretStr` so it never shows up in reprs or logs.
    """

    model_config = ConfigDict(frozen=True)

    username: str
    password: SecretStr


class RetryPolicy(BaseModel):
    """How many attempts a request gets and how long to cool down after a transport fault.

    ``retry_delay`` only applies after transport faults. Unauthorized
    responses are retried immediately because re-authorizing is the fix.

    Example::

        RetryPolicy(max_attempts=3, retry_delay=0.05)
    """

    model_config = ConfigDict(frozen=True)

    max_attempts: int = Field(
        default=5, ge=1, description="Physical attempts before giving up"
    )
    retry_delay: float = Field(
        default=0.2, ge=0, description="Seconds to wait after a transport fault"
    )


# --- Auth Config ---


class AuthConfig(BaseModel):
    """Authorization configuration embedded in a :class:`Profile`.

    The ``type`` field selects the provider registered with
    :class:`~retryable.auth.manager.AuthManager` (``credential_exchange``
    or ``static_token`` out of the box). The remaining fields supply
    provider-specific parameters.

    Providers may define their own fields beyond the ones declared here.
    Extra fields are preserved and accessible via ``model_extra``.

    Example::

        AuthConfig(
            type="credential_exchange",
            authentication_uri="https://api.example.com/auth",
            username_source="env:API_USER",
            password_source="env:API_PASSWORD",
            token_extractor="json",
            token_field="token",
        )
    """

    model_config = ConfigDict(extra="allow")

    type: str = Field(description="Provider type: credential_exchange, static_token")
    authentication_uri: Optional[str] = Field(
        default=None, description="Endpoint that exchanges credentials for a token"
    )
    username_source: Optional[str] = Field(
        default=None, description="Credential source for the username"
    )
    password_source: Optional[str] = Field(
        default=None, description="Credential source for the password"
    )
    token_source: Optional[str] = Field(
        default=None, description="Credential source for a pre-issued token"
    )
    token_extractor: str = Field(
        default="body", description="How to read the token: body, json, header"
    )
    token_field: Optional[str] = Field(
        default=None,
        description="JSON field or header name holding the token",
    )


class RequestConfig(BaseModel):
    """Transport settings applied to every call made through a profile."""

    timeout: float = Field(default=30.0, description="Request timeout in seconds")
    verify_ssl: bool = Field(default=True, description="Verify SSL certificates")


class GlobalConfig(BaseModel):
    """User-wide configuration persisted at ``~/.config/retryable/config.json``."""

    default_profile: Optional[str] = None
    auto_select_single_profile: bool = True


class Profile(BaseModel):
    """Per-API profile stored as JSON under the ``profiles/`` config directory.

    Bundles the base URL, authorization, transport, and retry settings
    needed to build a :class:`~retryable.client.executor.RetryableClient`.

    See Also:
        :func:`~retryable.config.load_profile`: Deserialise a profile by name.
        :func:`~retryable.config.save_profile`: Persist a profile to disk.
    """

    model_config = ConfigDict(extra="allow")

    name: str
    base_url: Optional[str] = Field(
        default=None, description="Base URL prepended to request paths"
    )
    auth: Optional[AuthConfig] = None
    request: RequestConfig = Field(default_factory=RequestConfig)
    retry: RetryPolicy = Field(default_factory=RetryPolicy)
