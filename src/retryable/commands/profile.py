"""Profile commands -- create, inspect, and remove API profiles.

Provides the ``retryable profile`` sub-command group. A profile bundles the
base URL, authorization provider settings, transport settings, and retry
policy for one API and is persisted as JSON in the config directory.
"""

from __future__ import annotations

from typing import Optional

import typer
from pydantic import ValidationError

from retryable.output import error, format_response, info, print_table, success


profile_app = typer.Typer(no_args_is_help=True)


@profile_app.command("add")
def profile_add(
    name: str = typer.Argument(help="Profile name."),
    base_url: str = typer.Option(..., "--base-url", help="API base URL."),
    auth_type: str = typer.Option(
        "credential_exchange",
        "--auth-type",
        help="Authorization provider: credential_exchange or static_token.",
    ),
    authentication_uri: Optional[str] = typer.Option(
        None, "--auth-uri", help="Credential exchange endpoint (absolute or relative)."
    ),
    username_source: Optional[str] = typer.Option(
        None, "--username-source", help="Username source, e.g. env:API_USER."
    ),
    password_source: Optional[str] = typer.Option(
        None, "--password-source", help="Password source, e.g. env:API_PASSWORD."
    ),
    token_source: Optional[str] = typer.Option(
        None, "--token-source", help="Pre-issued token source (static_token)."
    ),
    token_extractor: str = typer.Option(
        "body", "--token-extractor", help="Where the token is: body, json, header."
    ),
    token_field: Optional[str] = typer.Option(
        None, "--token-field", help="JSON field or header holding the token."
    ),
    max_attempts: int = typer.Option(5, "--max-attempts", help="Attempts per request."),
    retry_delay: float = typer.Option(
        0.2, "--retry-delay", help="Seconds to wait after a transport error."
    ),
    timeout: float = typer.Option(30.0, "--timeout", help="Per-request timeout in seconds."),
    insecure: bool = typer.Option(False, "--insecure", help="Skip TLS verification."),
    force: bool = typer.Option(False, "--force", "-f", help="Overwrite an existing profile."),
) -> None:
    """Create a profile.

    The provider settings are validated against the registered providers
    before anything is written.

    Example::

        retryable profile add shop --base-url https://shop.example.com \\
            --auth-uri /auth --username-source env:SHOP_USER \\
            --password-source env:SHOP_PASSWORD --token-extractor json \\
            --token-field token
    """
    from retryable.auth import create_default_manager
    from retryable.config import profile_exists, save_profile
    from retryable.exceptions import ProviderError
    from retryable.models import AuthConfig, Profile, RequestConfig, RetryPolicy

    if profile_exists(name) and not force:
        error(f"Profile '{name}' already exists. Use --force to overwrite.")
        raise typer.Exit(code=2)

    try:
        auth = AuthConfig(
            type=auth_type,
            authentication_uri=authentication_uri,
            username_source=username_source,
            password_source=password_source,
            token_source=token_source,
            token_extractor=token_extractor,
            token_field=token_field,
        )
        profile = Profile(
            name=name,
            base_url=base_url,
            auth=auth,
            request=RequestConfig(timeout=timeout, verify_ssl=not insecure),
            retry=RetryPolicy(max_attempts=max_attempts, retry_delay=retry_delay),
        )
    except ValidationError as exc:
        error(f"Validation error: {exc}")
        raise typer.Exit(code=2) from None

    try:
        manager = create_default_manager(discover=True)
        provider_cls = manager.get_provider_class(auth_type)
    except ProviderError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None
    problems = provider_cls.validate_config(auth)
    if problems:
        for problem in problems:
            error(problem)
        raise typer.Exit(code=2)

    save_profile(profile)
    success(f"Saved profile '{name}'.")


@profile_app.command("list")
def profile_list() -> None:
    """List saved profiles."""
    from retryable.config import list_profiles, load_global_config, load_profile

    names = list_profiles()
    if not names:
        info("No profiles yet. Create one with 'retryable profile add'.")
        return

    default = load_global_config().default_profile
    rows: list[list[str]] = []
    for name in names:
        profile = load_profile(name)
        rows.append([
            name,
            profile.base_url or "",
            profile.auth.type if profile.auth else "",
            "yes" if name == default else "",
        ])
    print_table(["name", "base_url", "auth", "default"], rows, title="Profiles")


@profile_app.command("show")
def profile_show(
    name: str = typer.Argument(help="Profile name."),
) -> None:
    """Show a profile as JSON."""
    from retryable.config import load_profile
    from retryable.exceptions import ConfigError

    try:
        profile = load_profile(name)
    except ConfigError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None
    format_response(profile.model_dump(mode="json"))


@profile_app.command("use")
def profile_use(
    name: str = typer.Argument(help="Profile name."),
) -> None:
    """Make a profile the default."""
    from retryable.config import load_global_config, profile_exists, save_global_config

    if not profile_exists(name):
        error(f"Profile '{name}' not found.")
        raise typer.Exit(code=1)
    config = load_global_config()
    config.default_profile = name
    save_global_config(config)
    success(f"Default profile set to '{name}'.")


@profile_app.command("remove")
def profile_remove(
    name: str = typer.Argument(help="Profile name."),
) -> None:
    """Delete a profile."""
    from retryable.config import delete_profile, load_global_config, save_global_config
    from retryable.exceptions import ConfigError

    try:
        delete_profile(name)
    except ConfigError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    config = load_global_config()
    if config.default_profile == name:
        config.default_profile = None
        save_global_config(config)
    success(f"Removed profile '{name}'.")
