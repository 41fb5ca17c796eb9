"""Per-call cancellation signals.

A :class:`CancellationSignal` belongs to exactly one logical call. The
request layer checks it before every attempt and races every suspension
point (authorization, the HTTP call, the backoff sleep) against it, so a
cancelled call returns promptly instead of finishing a network round-trip.

Signals fire either explicitly via :meth:`CancellationSignal.cancel` or
implicitly once an optional deadline passes::

    signal = CancellationSignal(timeout=2.5)
    result = await client.get("/orders", signal=signal)
    if result is CANCELLED:
        ...

:data:`NEVER_CANCELLED` is the shared default for callers that do not need
cancellation. It never fires and adds no scheduling overhead.

Signals are meant to be used from the event loop thread that awaits them.
"""

from __future__ import annotations

import asyncio
import time
from typing import Any, Awaitable, Optional, TypeVar

from retryable.exceptions import OperationCancelled

T = TypeVar("T")


class CancellationSignal:
    """A one-shot, per-call cancellation flag with an optional deadline.

    Args:
        timeout: Seconds from construction after which the signal fires on
            its own. ``None`` means no deadline.
    """

    def __init__(self, timeout: Optional[float] = None) -> None:
        self._event = asyncio.Event()
        self._deadline: Optional[float] = None
        if timeout is not None:
            self._deadline = time.monotonic() + max(timeout, 0.0)

    @property
    def is_cancelled(self) -> bool:
        """``True`` once :meth:`cancel` was called or the deadline has passed."""
        if self._event.is_set():
            return True
        if self._deadline is not None and time.monotonic() >= self._deadline:
            self._event.set()
            return True
        return False

    def cancel(self) -> None:
        """Fire the signal. Idempotent."""
        self._event.set()

    async def wait(self) -> None:
        """Suspend until the signal fires."""
        if self.is_cancelled:
            return
        if self._deadline is None:
            await self._event.wait()
            return
        remaining = self._deadline - time.monotonic()
        try:
            await asyncio.wait_for(self._event.wait(), timeout=max(remaining, 0.0))
        except asyncio.TimeoutError:
            self._event.set()

    async def guard(self, awaitable: Awaitable[T]) -> T:
        """Await *awaitable* unless the signal fires first.

        The awaitable runs as a task raced against :meth:`wait`. If the
        signal wins, the task is cancelled and :class:`OperationCancelled`
        is raised. If the task finished anyway while being cancelled, its
        result is returned so that acquired resources (a lock, a response)
        are never silently dropped.

        Raises:
            OperationCancelled: If the signal fired before *awaitable*
                completed.
        """
        if self.is_cancelled:
            _close(awaitable)
            raise OperationCancelled("Operation cancelled")

        work: asyncio.Future[T] = asyncio.ensure_future(awaitable)
        waiter = asyncio.ensure_future(self.wait())
        try:
            done, _ = await asyncio.wait(
                {work, waiter}, return_when=asyncio.FIRST_COMPLETED
            )
        except asyncio.CancelledError:
            work.cancel()
            waiter.cancel()
            raise

        if work in done:
            waiter.cancel()
            return work.result()

        work.cancel()
        await asyncio.wait({work})
        if not work.cancelled():
            return work.result()
        raise OperationCancelled("Operation cancelled")

    async def sleep(self, delay: float) -> None:
        """Sleep for *delay* seconds, waking early if the signal fires.

        Raises:
            OperationCancelled: If the signal fired before or during the sleep.
        """
        if delay <= 0:
            if self.is_cancelled:
                raise OperationCancelled("Operation cancelled")
            return
        await self.guard(asyncio.sleep(delay))

    def __repr__(self) -> str:
        state = "cancelled" if self.is_cancelled else "active"
        return f"<CancellationSignal {state}>"


class _NeverCancelled(CancellationSignal):
    """Signal that never fires. Shared by every call that passes no signal."""

    def __init__(self) -> None:
        self._deadline = None

    @property
    def is_cancelled(self) -> bool:
        return False

    def cancel(self) -> None:
        raise TypeError("NEVER_CANCELLED cannot be cancelled; create a CancellationSignal")

    async def wait(self) -> None:
        await asyncio.get_running_loop().create_future()

    async def guard(self, awaitable: Awaitable[T]) -> T:
        return await awaitable

    async def sleep(self, delay: float) -> None:
        if delay > 0:
            await asyncio.sleep(delay)

    def __repr__(self) -> str:
        return "<CancellationSignal never>"


NEVER_CANCELLED: CancellationSignal = _NeverCancelled()
"""The default signal: never fires."""


def _close(awaitable: Any) -> None:
    """Close an un-awaited coroutine so it does not warn about never being awaited."""
    close = getattr(awaitable, "close", None)
    if close is not None:
        close()
