"""Single-flight cache for the one bearer token a client holds.

:class:`TokenCache` owns the token exclusively. Its only mutation entry
points are :meth:`~TokenCache.get_or_acquire` and
:meth:`~TokenCache.invalidate`:

- Acquisition is single-flight. The first caller that misses the cache
  starts one authorization call as a shared task; every caller that arrives
  while it is in flight waits for that task and receives its outcome, be it
  a token, ``None``, or an exception. A new call is only started by a caller
  that arrives after the previous one has settled.
- Invalidation is compare-and-clear. A caller that got a 401 passes the
  token it sent; if another caller already replaced that token, the new one
  survives.

The cache lives in memory for the lifetime of the client and is never
persisted.
"""

from __future__ import annotations

import asyncio
from typing import Optional

from retryable.auth.base import AuthorizationProvider
from retryable.cancellation import NEVER_CANCELLED, CancellationSignal
from retryable.exceptions import OperationCancelled


class _Acquisition:
    """One in-flight authorization call and the number of callers awaiting it.

    The call runs under its own signal, which fires only once every waiter
    has given up.
    """

    def __init__(self) -> None:
        self.signal = CancellationSignal()
        self.waiters = 0
        self.task: Optional[asyncio.Task[Optional[str]]] = None


class TokenCache:
    """Holds at most one bearer token.

    Example::

        cache = TokenCache()
        token = await cache.get_or_acquire(provider, signal)
        ...
        await cache.invalidate(token)  # after a 401
    """

    def __init__(self) -> None:
        self._token: Optional[str] = None
        self._pending: Optional[_Acquisition] = None
        self._acquisitions = 0

    @property
    def token(self) -> Optional[str]:
        """The currently cached token, or ``None``."""
        return self._token

    @property
    def acquisitions(self) -> int:
        """How many times a provider was asked for a token."""
        return self._acquisitions

    @property
    def is_acquiring(self) -> bool:
        """``True`` while an authorization call is in flight."""
        return self._pending is not None

    async def get_or_acquire(
        self,
        provider: AuthorizationProvider,
        signal: CancellationSignal = NEVER_CANCELLED,
    ) -> Optional[str]:
        """Return the cached token, asking *provider* for one on a miss.

        At most one authorization call runs at a time per cache, and every
        caller waiting on it shares its result. Waiting observes *signal*;
        a caller that gives up does not abort the call for the others. The
        call itself is abandoned once no caller is left waiting for it.

        Returns:
            The token, or ``None`` if the provider could not produce one.

        Raises:
            OperationCancelled: If *signal* fires before the token arrives.
            httpx.TransportError: Propagated from the provider to every
                caller sharing the failed call.
        """
        token = self._token
        if token:
            return token
        if signal.is_cancelled:
            raise OperationCancelled("Operation cancelled")

        acquisition = self._pending
        # An abandoned call may still be unwinding; do not join it.
        if acquisition is None or acquisition.signal.is_cancelled:
            acquisition = self._start(provider)

        acquisition.waiters += 1
        try:
            return await signal.guard(asyncio.shield(acquisition.task))
        finally:
            acquisition.waiters -= 1
            if acquisition.waiters == 0 and not acquisition.task.done():
                acquisition.signal.cancel()

    def _start(self, provider: AuthorizationProvider) -> _Acquisition:
        acquisition = _Acquisition()
        self._pending = acquisition
        self._acquisitions += 1
        acquisition.task = asyncio.create_task(self._authorize(provider, acquisition))
        acquisition.task.add_done_callback(_consume_exception)
        return acquisition

    async def _authorize(
        self, provider: AuthorizationProvider, acquisition: _Acquisition
    ) -> Optional[str]:
        try:
            token = await provider.authorize(acquisition.signal)
            if token:
                self._token = token
            return token or None
        finally:
            if self._pending is acquisition:
                self._pending = None

    async def invalidate(self, token: Optional[str] = None) -> bool:
        """Clear the cached token.

        Never waits, so a caller reporting a 401 is not held up by an
        authorization call in flight.

        Args:
            token: The token the caller saw rejected. When given, the cache
                is only cleared if it still holds exactly this token. When
                ``None``, the cache is cleared unconditionally.

        Returns:
            ``True`` if a token was removed.
        """
        if self._token is None:
            return False
        if token is not None and token != self._token:
            return False
        self._token = None
        return True


def _consume_exception(task: asyncio.Task) -> None:
    # Every waiter may have left before the call failed.
    if not task.cancelled():
        task.exception()
