"""retryable -- an HTTP request layer that retries and re-authorizes transparently.

Every call goes through a retry state machine that keeps one bearer token
per client, re-authorizes immediately when the server answers 401, backs
off after transport faults, and gives up after a fixed number of attempts.
Token acquisition is delegated to a pluggable authorization provider and
every call accepts its own cancellation signal.

Typical usage::

    from retryable import RetryableClient, RetryPolicy
    from retryable.plugins.credential_exchange import CredentialExchangeProvider

    async with httpx.AsyncClient(base_url="https://api.example.com") as http:
        provider = CredentialExchangeProvider(http, "/auth", credentials)
        client = RetryableClient(http, provider, RetryPolicy(max_attempts=3))
        response = await client.get("/orders")

Modules:
    app: Typer application and CLI entry point.
    models: Pydantic models shared across the package.
    config: XDG-aware configuration and profile management.
    cancellation: Per-call cancellation signals.
    exceptions: Exception hierarchy with exit-code mapping.
    output: stdout/stderr formatting with Rich support.
"""

__version__ = "0.1.0"

from retryable.cancellation import NEVER_CANCELLED, CancellationSignal
from retryable.client import CANCELLED, Cancelled, RetryableClient, RetryOrchestrator
from retryable.exceptions import (
    AuthenticationFailed,
    RetriesExceeded,
    RetryableError,
)
from retryable.models import Credentials, RetryPolicy

__all__ = [
    "CANCELLED",
    "NEVER_CANCELLED",
    "AuthenticationFailed",
    "CancellationSignal",
    "Cancelled",
    "Credentials",
    "RetriesExceeded",
    "RetryOrchestrator",
    "RetryPolicy",
    "RetryableClient",
    "RetryableError",
    "__version__",
]
