"""Cooperative cancellation for marble-sdk operations.

A single ``CancellationToken`` is threaded through every suspension point
of one logical operation: a request's retry loop, or a pagination
sequence's multi-page traversal. The token is deliberately decoupled from
asyncio task cancellation so that the transport and the delay primitive
consume the same interface.

Example:
    token = CancellationToken()
    token.cancel_after(5.0)  # callers implement timeouts as deadlines
    async for post in client.paginate_posts(cancel=token):
        ...
"""

import asyncio
import logging
import threading
from typing import Awaitable, Callable, Optional, TypeVar

from marble_sdk.core.errors.cancellation import Cancelled

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CancellationToken:
    """Triggerable, observable cancellation signal.

    Supports trigger (``cancel``), query (``cancelled``) and subscription
    (``subscribe``). Callbacks run exactly once, on the thread that calls
    ``cancel()``; a callback subscribed after cancellation runs immediately.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._cancelled = False
        self._reason: Optional[str] = None
        self._callbacks: list[Callable[[], None]] = []

    @property
    def cancelled(self) -> bool:
        """True once ``cancel()`` has been called."""
        return self._cancelled

    @property
    def reason(self) -> Optional[str]:
        return self._reason

    def cancel(self, reason: Optional[str] = None) -> None:
        """Trigger the token. Subsequent calls are no-ops."""
        with self._lock:
            if self._cancelled:
                return
            self._cancelled = True
            self._reason = reason
            callbacks, self._callbacks = self._callbacks, []

        logger.debug("Cancellation requested%s", f": {reason}" if reason else "")
        for callback in callbacks:
            callback()

    def subscribe(self, callback: Callable[[], None]) -> Callable[[], None]:
        """Register *callback* to run when the token fires.

        Returns:
            A function that removes the subscription (safe to call twice).
        """
        with self._lock:
            if not self._cancelled:
                self._callbacks.append(callback)
                registered = True
            else:
                registered = False

        if not registered:
            callback()
            return lambda: None

        def unsubscribe() -> None:
            with self._lock:
                if callback in self._callbacks:
                    self._callbacks.remove(callback)

        return unsubscribe

    def raise_if_cancelled(self) -> None:
        """Raise ``Cancelled`` if the token has fired."""
        if self._cancelled:
            raise Cancelled(self._reason)

    def cancel_after(self, seconds: float) -> asyncio.TimerHandle:
        """Schedule ``cancel()`` on the running loop after *seconds*.

        Returns:
            The timer handle; call ``.cancel()`` on it to disarm the deadline.
        """
        loop = asyncio.get_running_loop()
        return loop.call_later(
            seconds, self.cancel, f"deadline of {seconds}s exceeded"
        )

    async def guard(self, awaitable: Awaitable[T]) -> T:
        """Run *awaitable*, aborting it promptly when the token fires.

        Raises:
            Cancelled: If the token is already triggered or fires while the
                awaitable is pending. The awaitable's task is cancelled.
        """
        if self._cancelled:
            # Close a never-started coroutine so it doesn't warn
            close = getattr(awaitable, "close", None)
            if close is not None:
                close()
            raise Cancelled(self._reason)

        loop = asyncio.get_running_loop()
        task = asyncio.ensure_future(awaitable)
        unsubscribe = self.subscribe(lambda: loop.call_soon_threadsafe(task.cancel))
        try:
            return await task
        except asyncio.CancelledError:
            if self._cancelled:
                raise Cancelled(self._reason) from None
            raise
        finally:
            unsubscribe()


async def delay(ms: float, cancel: Optional[CancellationToken] = None) -> None:
    """Sleep for *ms* milliseconds unless *cancel* fires first.

    Returns immediately for ``ms <= 0``. Raises ``Cancelled`` immediately if
    the token is already triggered, and as soon as it fires during the wait
    (not after the full duration).
    """
    if ms <= 0:
        return
    if cancel is None:
        await asyncio.sleep(ms / 1000)
        return

    cancel.raise_if_cancelled()

    loop = asyncio.get_running_loop()
    waiter: asyncio.Future[None] = loop.create_future()

    def _wake() -> None:
        if not waiter.done():
            waiter.set_result(None)

    timer = loop.call_later(ms / 1000, _wake)
    unsubscribe = cancel.subscribe(lambda: loop.call_soon_threadsafe(_wake))
    try:
        await waiter
    finally:
        timer.cancel()
        unsubscribe()

    cancel.raise_if_cancelled()
