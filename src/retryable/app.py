"""Typer application and CLI entry point for retryable.

This module wires the top-level Typer application: the request commands
(``get``, ``post``, ``put``, ``patch``, ``delete``) that call an API through
:class:`~retryable.client.executor.RetryableClient`, and the ``profile``
sub-command group.

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``. :class:`~retryable.exceptions.RetryableError` instances
exit with their ``exit_code``; anything else is written to a crash log under
the data directory.
"""

from __future__ import annotations

import asyncio
import json
import sys
import traceback
from datetime import datetime
from typing import Any, Optional

import typer

from retryable import __version__
from retryable.commands.profile import profile_app
from retryable.exit_codes import EXIT_CANCELLED, EXIT_GENERIC_FAILURE, EXIT_INVALID_USAGE


app = typer.Typer(
    name="retryable",
    help="Call HTTP APIs with automatic retry and re-authorization.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)

app.add_typer(profile_app, name="profile", help="Manage API profiles.")


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"retryable {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    profile: Optional[str] = typer.Option(
        None, "--profile", "-p", help="Profile name to use."
    ),
    base_url: Optional[str] = typer.Option(
        None, "--base-url", help="Override the profile's base URL."
    ),
    json_output: bool = typer.Option(False, "--json", help="JSON output format."),
    plain_output: bool = typer.Option(False, "--plain", help="Plain text output."),
    no_color: bool = typer.Option(False, "--no-color", help="Disable color output."),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress non-essential output."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Show retry and re-authorization decisions."
    ),
) -> None:
    """Install the global output manager and stash shared options in ``ctx.obj``."""
    from retryable.output import OutputFormat, OutputManager, set_output

    fmt = OutputFormat.AUTO
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN

    set_output(OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose))

    ctx.ensure_object(dict)
    ctx.obj["profile"] = profile
    ctx.obj["base_url"] = base_url


# ------------------------------------------------------------------ #
# Request commands
# ------------------------------------------------------------------ #


def _parse_pairs(values: list[str], sep: str, what: str) -> dict[str, str]:
    """Split ``key<sep>value`` strings into a dict."""
    pairs: dict[str, str] = {}
    for item in values:
        key, found, value = item.partition(sep)
        if not found or not key.strip():
            from retryable.exceptions import InvalidUsageError

            raise InvalidUsageError(f"Invalid {what} '{item}', expected KEY{sep}VALUE")
        pairs[key.strip()] = value.strip()
    return pairs


def _parse_body(data: Optional[str]) -> Any:  # noqa: ANN401
    """Parse *data* as JSON if possible, returning the raw string on failure."""
    if data is None:
        return None
    try:
        return json.loads(data)
    except (json.JSONDecodeError, TypeError):
        return data


def _send(
    ctx: typer.Context,
    method: str,
    path: str,
    data: Optional[str],
    params: list[str],
    headers: list[str],
    timeout: Optional[float],
) -> None:
    """Resolve the profile, send the request, and print the response body."""
    from retryable.cancellation import NEVER_CANCELLED, CancellationSignal
    from retryable.client import CANCELLED, RetryableClient
    from retryable.config import resolve_profile
    from retryable.exceptions import RetryableError
    from retryable.output import error, format_response, get_output

    obj = ctx.obj or {}
    try:
        profile = resolve_profile(obj.get("profile"), obj.get("base_url"))
        query = _parse_pairs(params, "=", "parameter")
        extra_headers = _parse_pairs(headers, ":", "header")
    except RetryableError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None
    if profile is None:
        error("No profile selected. Create one with 'retryable profile add'.")
        raise typer.Exit(code=EXIT_INVALID_USAGE)

    has_body = method in ("POST", "PUT", "PATCH")

    async def _run() -> Any:
        signal = CancellationSignal(timeout=timeout) if timeout is not None else NEVER_CANCELLED
        async with RetryableClient.from_profile(profile) as client:
            if has_body:
                return await client.request(
                    method, path, _parse_body(data),
                    params=query, headers=extra_headers, signal=signal,
                )
            return await client.request(
                method, path, params=query, headers=extra_headers, signal=signal,
            )

    try:
        result = asyncio.run(_run())
    except RetryableError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    if result is CANCELLED:
        error("Request cancelled before it completed.")
        raise typer.Exit(code=EXIT_CANCELLED)

    get_output().debug(f"{method} {result.request.url} -> HTTP {result.status_code}")
    content_type = result.headers.get("content-type", "")
    if "json" in content_type:
        try:
            format_response(result.json())
        except ValueError:
            format_response(result.text)
    elif result.text:
        format_response(result.text)

    if result.status_code >= 400:
        raise typer.Exit(code=EXIT_GENERIC_FAILURE)


_PARAM_OPTION = typer.Option([], "--param", "-P", help="Query parameter KEY=VALUE.")
_HEADER_OPTION = typer.Option([], "--header", "-H", help="Request header 'Name: value'.")
_TIMEOUT_OPTION = typer.Option(
    None, "--timeout", "-t", help="Cancel the whole call after this many seconds."
)
_DATA_OPTION = typer.Option(None, "--data", "-d", help="Request body (JSON or raw text).")


@app.command("get")
def get_command(
    ctx: typer.Context,
    path: str = typer.Argument(help="Path relative to the profile's base URL."),
    param: list[str] = _PARAM_OPTION,
    header: list[str] = _HEADER_OPTION,
    timeout: Optional[float] = _TIMEOUT_OPTION,
) -> None:
    """Send a GET request."""
    _send(ctx, "GET", path, None, param, header, timeout)


@app.command("delete")
def delete_command(
    ctx: typer.Context,
    path: str = typer.Argument(help="Path relative to the profile's base URL."),
    param: list[str] = _PARAM_OPTION,
    header: list[str] = _HEADER_OPTION,
    timeout: Optional[float] = _TIMEOUT_OPTION,
) -> None:
    """Send a DELETE request."""
    _send(ctx, "DELETE", path, None, param, header, timeout)


@app.command("post")
def post_command(
    ctx: typer.Context,
    path: str = typer.Argument(help="Path relative to the profile's base URL."),
    data: Optional[str] = _DATA_OPTION,
    param: list[str] = _PARAM_OPTION,
    header: list[str] = _HEADER_OPTION,
    timeout: Optional[float] = _TIMEOUT_OPTION,
) -> None:
    """Send a POST request with a JSON body."""
    _send(ctx, "POST", path, data, param, header, timeout)


@app.command("put")
def put_command(
    ctx: typer.Context,
    path: str = typer.Argument(help="Path relative to the profile's base URL."),
    data: Optional[str] = _DATA_OPTION,
    param: list[str] = _PARAM_OPTION,
    header: list[str] = _HEADER_OPTION,
    timeout: Optional[float] = _TIMEOUT_OPTION,
) -> None:
    """Send a PUT request with a JSON body."""
    _send(ctx, "PUT", path, data, param, header, timeout)


@app.command("patch")
def patch_command(
    ctx: typer.Context,
    path: str = typer.Argument(help="Path relative to the profile's base URL."),
    data: Optional[str] = _DATA_OPTION,
    param: list[str] = _PARAM_OPTION,
    header: list[str] = _HEADER_OPTION,
    timeout: Optional[float] = _TIMEOUT_OPTION,
) -> None:
    """Send a PATCH request with a JSON body."""
    _send(ctx, "PATCH", path, data, param, header, timeout)


# ------------------------------------------------------------------ #
# Entry point
# ------------------------------------------------------------------ #


def _write_crash_log(exc: Exception) -> str:
    """Write a crash traceback to disk and return the log file path."""
    from retryable.config import get_data_dir

    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    log_path = logs_dir / f"crash-{timestamp}.log"
    log_path.write_text("".join(traceback.format_exception(exc)))
    return str(log_path)


def main() -> None:
    """CLI entry point invoked by the ``retryable`` console script.

    :class:`~retryable.exceptions.RetryableError` instances cause a clean
    exit with the error's ``exit_code``. Ctrl-C exits with 130. All other
    exceptions produce a crash log and a generic failure exit.
    """
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(EXIT_CANCELLED)
    except Exception as exc:
        from retryable.exceptions import RetryableError
        from retryable.output import error

        if isinstance(exc, RetryableError):
            error(str(exc))
            sys.exit(exc.exit_code)
        log_path = _write_crash_log(exc)
        error(f"Unexpected error: {exc}")
        error(f"Crash log written to {log_path}")
        sys.exit(EXIT_GENERIC_FAILURE)
