"""Credential exchange authorization provider.

Implements the ``credential_exchange`` auth type: the configured username
and password are POSTed as JSON to an authentication endpoint and the
bearer token is read back from the response by a pluggable extractor.

See Also:
    :class:`~retryable.plugins.credential_exchange.plugin.CredentialExchangeProvider`
    :mod:`retryable.auth.extractors` for the token extraction strategies.
"""

from retryable.plugins.credential_exchange.plugin import CredentialExchangeProvider

__all__ = ["CredentialExchangeProvider"]
