"""Classified results of a single request attempt.

Every physical attempt made by
:class:`~retryable.client.orchestrator.RetryOrchestrator` ends in exactly
one of these:

- :class:`Success` -- a response the caller should see (any status but 401).
- :class:`Unauthorized` -- a 401; the token is stale.
- :class:`TransportFailure` -- the request never produced a response.
- :class:`Cancelled` -- the per-call signal fired.

:data:`CANCELLED` is also what the orchestrator and
:class:`~retryable.client.executor.RetryableClient` return to callers whose
signal fired, so a cancelled call can be told apart from a response with
``result is CANCELLED`` or ``isinstance(result, Cancelled)``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

import httpx


@dataclass(frozen=True)
class Success:
    response: httpx.Response


@dataclass(frozen=True)
class Unauthorized:
    response: httpx.Response


@dataclass(frozen=True)
class TransportFailure:
    error: httpx.TransportError


@dataclass(frozen=True)
class Cancelled:
    """The call was cancelled before it completed. Falsy."""

    def __bool__(self) -> bool:
        return False


CANCELLED = Cancelled()

Outcome = Union[Success, Unauthorized, TransportFailure, Cancelled]
