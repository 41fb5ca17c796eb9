"""Pluggable authorization for the request layer.

The main entry points are:

- :class:`AuthorizationProvider` -- abstract base class for token acquisition
  strategies.
- :class:`TokenCache` -- single-flight cache of the one token a client holds.
- :class:`AuthManager` -- registry that maps auth type strings to provider
  classes and builds them from a :class:`~retryable.models.AuthConfig`.
- :func:`create_default_manager` -- factory pre-loaded with the built-in
  providers.

Typical usage::

    from retryable.auth import create_default_manager

    manager = create_default_manager()
    provider = manager.create(profile.auth, http_client)
"""

from retryable.auth.base import AuthorizationProvider
from retryable.auth.extractors import (
    TokenExtractor,
    body_text_extractor,
    header_extractor,
    json_field_extractor,
)
from retryable.auth.manager import AuthManager, create_default_manager
from retryable.auth.token_cache import TokenCache

__all__ = [
    "AuthorizationProvider",
    "AuthManager",
    "TokenCache",
    "TokenExtractor",
    "body_text_extractor",
    "create_default_manager",
    "header_extractor",
    "json_field_extractor",
]
