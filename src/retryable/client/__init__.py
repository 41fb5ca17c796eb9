"""Retrying, re-authorizing HTTP client.

Classes:
    :class:`RetryableClient` -- GET/POST-style convenience layer backed by
        :class:`httpx.AsyncClient`.
    :class:`RetryOrchestrator` -- the retry / re-authorization state machine.

Outcome values:
    :data:`CANCELLED` -- returned instead of a response when the per-call
        :class:`~retryable.cancellation.CancellationSignal` fired.

Example::

    from retryable.client import CANCELLED, RetryableClient

    async with RetryableClient.from_profile(profile) as client:
        result = await client.get("/users")
        if result is CANCELLED:
            ...
"""

from retryable.client.executor import RetryableClient, json_serializer
from retryable.client.orchestrator import RequestAction, RetryOrchestrator
from retryable.client.outcome import (
    CANCELLED,
    Cancelled,
    Outcome,
    Success,
    TransportFailure,
    Unauthorized,
)

__all__ = [
    "CANCELLED",
    "Cancelled",
    "Outcome",
    "RequestAction",
    "RetryOrchestrator",
    "RetryableClient",
    "Success",
    "TransportFailure",
    "Unauthorized",
    "json_serializer",
]
