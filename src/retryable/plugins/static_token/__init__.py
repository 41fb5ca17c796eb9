"""Static token authorization provider.

Implements the ``static_token`` auth type, which hands out a pre-issued
bearer token resolved from a credential source.

See Also:
    :class:`~retryable.plugins.static_token.plugin.StaticTokenProvider`
"""

from retryable.plugins.static_token.plugin import StaticTokenProvider

__all__ = ["StaticTokenProvider"]
