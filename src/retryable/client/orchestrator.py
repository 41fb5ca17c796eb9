"""Retry and re-authorization state machine.

:class:`RetryOrchestrator` runs one logical request through up to
``max_attempts`` physical attempts::

    NeedToken -> Authorizing -> Executing -> Success
                                          -> Unauthorized -> NeedToken
                                          -> TransportFailure -> Backoff -> NeedToken
    (any state) -> Cancelled
    (budget spent) -> RetriesExceeded

Unauthorized responses and transport faults are handled differently. A 401
means the cached token is stale, so it is invalidated and the next attempt
re-authorizes immediately. A transport fault says nothing about the token,
so the token is kept and the next attempt waits ``retry_delay`` first.
"""

from __future__ import annotations

from typing import Awaitable, Callable, Mapping, Optional, Union

import httpx

from retryable.auth.base import AuthorizationProvider
from retryable.auth.token_cache import TokenCache
from retryable.cancellation import NEVER_CANCELLED, CancellationSignal
from retryable.client.outcome import (
    CANCELLED,
    Cancelled,
    Outcome,
    Success,
    TransportFailure,
    Unauthorized,
)
from retryable.exceptions import AuthenticationFailed, OperationCancelled, RetriesExceeded
from retryable.models import RetryPolicy
from retryable.output import get_output

RequestAction = Callable[[Mapping[str, str]], Awaitable[httpx.Response]]
"""Performs one HTTP call with the given request-scoped auth headers."""


class RetryOrchestrator:
    """Drives a :data:`RequestAction` until it succeeds, is cancelled, or gives up.

    Args:
        provider: Produces tokens on a cache miss.
        policy: Attempt budget and transport-fault backoff.
        token_cache: Cache shared by every call through one client. A fresh
            one is created when omitted.
    """

    def __init__(
        self,
        provider: AuthorizationProvider,
        policy: Optional[RetryPolicy] = None,
        token_cache: Optional[TokenCache] = None,
    ) -> None:
        self._provider = provider
        self._policy = policy or RetryPolicy()
        self._tokens = token_cache or TokenCache()

    @property
    def policy(self) -> RetryPolicy:
        return self._policy

    @property
    def token_cache(self) -> TokenCache:
        return self._tokens

    async def execute(
        self,
        action: RequestAction,
        signal: CancellationSignal = NEVER_CANCELLED,
    ) -> Union[httpx.Response, Cancelled]:
        """Run *action* with retry and re-authorization.

        Args:
            action: Called once per physical attempt with the
                ``Authorization`` header to send.
            signal: Per-call cancellation signal.

        Returns:
            The first response whose status is not 401, passed through
            unmodified, or :data:`~retryable.client.outcome.CANCELLED`.

        Raises:
            AuthenticationFailed: The provider produced no token.
            RetriesExceeded: Every attempt was unauthorized or hit a
                transport fault.
        """
        max_attempts = self._policy.max_attempts
        output = get_output()
        outcome: Optional[Outcome] = None

        for attempt in range(1, max_attempts + 1):
            if signal.is_cancelled:
                return CANCELLED

            try:
                token = await self._tokens.get_or_acquire(self._provider, signal)
            except OperationCancelled:
                return CANCELLED
            except httpx.TransportError as exc:
                outcome = TransportFailure(exc)
            else:
                if not token:
                    if signal.is_cancelled:
                        return CANCELLED
                    name = self._provider.auth_type or type(self._provider).__name__
                    raise AuthenticationFailed(
                        f"Authorization provider '{name}' did not produce a token"
                    )
                outcome = await self._attempt(action, token, signal)

            if isinstance(outcome, Success):
                return outcome.response
            if isinstance(outcome, Cancelled):
                return outcome

            if isinstance(outcome, Unauthorized):
                await outcome.response.aclose()
                await self._tokens.invalidate(token)
                output.debug(
                    f"Unauthorized (attempt {attempt}/{max_attempts}), re-authorizing"
                )
                continue

            assert isinstance(outcome, TransportFailure)
            if attempt == max_attempts:
                break
            delay = self._policy.retry_delay
            output.debug(
                f"Transport error: {outcome.error!r}, retrying in {delay}s "
                f"(attempt {attempt}/{max_attempts})"
            )
            try:
                await signal.sleep(delay)
            except OperationCancelled:
                return CANCELLED

        raise self._exhausted(max_attempts, outcome)

    async def _attempt(
        self,
        action: RequestAction,
        token: str,
        signal: CancellationSignal,
    ) -> Outcome:
        """Make one physical attempt and classify it."""
        headers = {"Authorization": f"Bearer {token}"}
        try:
            response = await signal.guard(action(headers))
        except OperationCancelled:
            return CANCELLED
        except httpx.TransportError as exc:
            return TransportFailure(exc)

        if response.status_code == httpx.codes.UNAUTHORIZED:
            return Unauthorized(response)
        return Success(response)

    @staticmethod
    def _exhausted(attempts: int, outcome: Optional[Outcome]) -> RetriesExceeded:
        if isinstance(outcome, TransportFailure):
            exc = RetriesExceeded(
                f"Request failed after {attempts} attempts: {outcome.error}",
                attempts=attempts,
                last_outcome=outcome,
            )
            exc.__cause__ = outcome.error
            return exc
        return RetriesExceeded(
            f"Request still unauthorized after {attempts} attempts",
            attempts=attempts,
            last_outcome=outcome,
        )
