from typing import Awaitable, Callable, List, Optional, TypeVar
import asyncio
import logging

from ..errors import UploadAborted

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CancellationToken:
    """
    Caller-owned signal that aborts an in-flight transfer.

    Listeners are one-shot: they fire at most once and are dropped afterwards.
    """

    def __init__(self):
        self._cancelled = False
        self._listeners: List[Callable[[], None]] = []

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def cancel(self) -> None:
        """Fire the token. Idempotent."""
        if self._cancelled:
            return
        self._cancelled = True
        listeners, self._listeners = self._listeners, []
        for callback in listeners:
            try:
                callback()
            except Exception as e:
                logger.error(f"Error in cancellation listener: {e}")

    def add_listener(self, callback: Callable[[], None]) -> Callable[[], None]:
        """Register a one-shot listener; returns a function that removes it."""
        if self._cancelled:
            callback()
            return lambda: None
        self._listeners.append(callback)

        def remove() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return remove

    def raise_if_cancelled(self) -> None:
        if self._cancelled:
            raise UploadAborted()


async def run_cancellable(awaitable: Awaitable[T], token: Optional[CancellationToken]) -> T:
    """
    Await `awaitable`, aborting it when `token` fires.

    Raises UploadAborted if the token was already fired (the awaitable is
    never started) or fires while waiting. Cancellation of the calling task
    itself propagates unchanged.
    """
    if token is None:
        return await awaitable
    if token.cancelled:
        if asyncio.iscoroutine(awaitable):
            awaitable.close()
        raise UploadAborted()

    task = asyncio.ensure_future(awaitable)
    remove = token.add_listener(task.cancel)
    try:
        return await task
    except asyncio.CancelledError:
        if token.cancelled:
            raise UploadAborted() from None
        raise
    finally:
        remove()
