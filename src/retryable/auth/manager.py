"""Auth manager -- registry and factory for authorization providers.

The :class:`AuthManager` maps auth-type strings (``"credential_exchange"``,
``"static_token"``, ...) to :class:`~retryable.auth.base.AuthorizationProvider`
classes and builds the right provider for a profile via
:meth:`~AuthManager.create`.

Third-party packages can contribute providers through the
``retryable.providers`` entry-point group::

    [project.entry-points."retryable.providers"]
    my-sso = "my_package.sso:SSOProvider"

For most use cases, call :func:`create_default_manager` to get a manager
pre-loaded with every built-in provider.
"""

from __future__ import annotations

import importlib.metadata
import logging

import httpx

from retryable.auth.base import AuthorizationProvider
from retryable.exceptions import ProviderError
from retryable.models import AuthConfig

logger = logging.getLogger(__name__)

ENTRY_POINT_GROUP = "retryable.providers"
"""The entry-point group name used for provider discovery."""


class AuthManager:
    """Registry and factory for authorization providers.

    Example::

        from retryable.auth import AuthManager
        from retryable.plugins.static_token import StaticTokenProvider

        manager = AuthManager()
        manager.register(StaticTokenProvider)
        provider = manager.create(profile.auth, http_client)
    """

    def __init__(self) -> None:
        self._providers: dict[str, type[AuthorizationProvider]] = {}

    def register(self, provider_cls: type[AuthorizationProvider]) -> None:
        """Register a provider class, keyed by its ``auth_type``.

        A provider already registered for the same type is replaced.

        Raises:
            ProviderError: If the class does not declare an ``auth_type``.
        """
        if not provider_cls.auth_type:
            raise ProviderError(
                f"Provider {provider_cls.__name__} does not declare an auth_type"
            )
        self._providers[provider_cls.auth_type] = provider_cls

    def get_provider_class(self, auth_type: str) -> type[AuthorizationProvider]:
        """Look up the provider class registered for *auth_type*.

        Raises:
            ProviderError: If nothing is registered for *auth_type*.
        """
        provider_cls = self._providers.get(auth_type)
        if provider_cls is None:
            available = ", ".join(sorted(self._providers)) or "(none)"
            raise ProviderError(
                f"No authorization provider registered for type '{auth_type}'. "
                f"Available types: {available}"
            )
        return provider_cls

    def create(
        self,
        auth_config: AuthConfig,
        http_client: httpx.AsyncClient,
    ) -> AuthorizationProvider:
        """Validate *auth_config* and build the matching provider.

        Args:
            auth_config: The authorization section of the active profile.
            http_client: Transport handed to providers that make their own
                network calls.

        Raises:
            ProviderError: If the type is unknown or the config is invalid.
            ConfigError: If a credential source cannot be resolved.
        """
        provider_cls = self.get_provider_class(auth_config.type)
        problems = provider_cls.validate_config(auth_config)
        if problems:
            raise ProviderError(
                f"Invalid '{auth_config.type}' auth config: " + "; ".join(problems)
            )
        return provider_cls.from_config(auth_config, http_client)

    def discover(self) -> list[str]:
        """Register providers advertised under the ``retryable.providers`` entry points.

        Entry points that fail to load, or that do not point at an
        :class:`~retryable.auth.base.AuthorizationProvider` subclass, are
        logged and skipped.

        Returns:
            The auth types that were registered.
        """
        registered: list[str] = []
        for ep in importlib.metadata.entry_points(group=ENTRY_POINT_GROUP):
            try:
                provider_cls = ep.load()
            except Exception as exc:
                logger.warning("Failed to load provider '%s': %s", ep.name, exc)
                continue
            if not (
                isinstance(provider_cls, type)
                and issubclass(provider_cls, AuthorizationProvider)
            ):
                logger.warning(
                    "Entry point '%s' is not an AuthorizationProvider subclass, skipping",
                    ep.name,
                )
                continue
            try:
                self.register(provider_cls)
            except ProviderError as exc:
                logger.warning("Skipping provider '%s': %s", ep.name, exc)
                continue
            logger.info("Loaded provider '%s' (%s)", ep.name, provider_cls.auth_type)
            registered.append(provider_cls.auth_type)
        return registered

    def list_types(self) -> list[str]:
        """Return the identifiers of all registered auth types, sorted."""
        return sorted(self._providers)


def create_default_manager(discover: bool = False) -> AuthManager:
    """Create an :class:`AuthManager` pre-loaded with the built-in providers.

    - ``credential_exchange`` -- POST username/password, read the token back.
    - ``static_token`` -- a pre-issued token from a credential source.

    Args:
        discover: Also register third-party providers from entry points.
    """
    from retryable.plugins.credential_exchange import CredentialExchangeProvider
    from retryable.plugins.static_token import StaticTokenProvider

    manager = AuthManager()
    manager.register(CredentialExchangeProvider)
    manager.register(StaticTokenProvider)
    if discover:
        manager.discover()
    return manager
