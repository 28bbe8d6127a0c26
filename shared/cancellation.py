"""
Cancellation token shared by the frame producer and the updater.

A token is a monotonic "done" signal: once it fires it stays fired and keeps
the reason it fired with (explicit cancel or deadline). Tokens form a tree;
a child fires whenever its parent does, never the other way round.

Every suspension point in the core goes through the token, so cancellation
is observed while waiting for input, for the consumer, for the pacing delay
and for the messaging endpoint, not only at loop entry.

Usage:
    token = CancellationToken.with_timeout(30.0)
    line = await token.race(reader.readline())
    await token.sleep(1.0)
"""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Awaitable, Optional, TypeVar

from domain.exceptions import DeadlineExceeded, OperationCancelled

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CancellationReason(Enum):
    """Why a token fired"""
    NONE = "none"
    CANCELLED = "cancelled"
    DEADLINE_EXCEEDED = "deadline_exceeded"


class CancellationToken:
    def __init__(self, parent: Optional[CancellationToken] = None) -> None:
        self._event = asyncio.Event()
        self._reason = CancellationReason.NONE
        self._children: list[CancellationToken] = []
        self._deadline: Optional[asyncio.TimerHandle] = None

        if parent is not None:
            parent._attach(self)

    @classmethod
    def with_timeout(
        cls,
        seconds: float,
        parent: Optional[CancellationToken] = None,
    ) -> CancellationToken:
        """Create a token that fires with DEADLINE_EXCEEDED after `seconds`.

        Must be called from a running event loop.
        """
        token = cls(parent=parent)
        if not token.is_cancelled:
            loop = asyncio.get_running_loop()
            token._deadline = loop.call_later(
                seconds, token._fire, CancellationReason.DEADLINE_EXCEEDED
            )
        return token

    @property
    def reason(self) -> CancellationReason:
        return self._reason

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        """Fire the token. Has no effect if it already fired."""
        self._fire(CancellationReason.CANCELLED)

    def error(self) -> Optional[OperationCancelled]:
        """Exception describing why the token fired, or None"""
        if self._reason is CancellationReason.DEADLINE_EXCEEDED:
            return DeadlineExceeded()
        if self._reason is CancellationReason.CANCELLED:
            return OperationCancelled()
        return None

    def raise_if_cancelled(self) -> None:
        err = self.error()
        if err is not None:
            raise err

    async def wait(self) -> None:
        """Suspend until the token fires"""
        await self._event.wait()

    async def sleep(self, seconds: float) -> None:
        """Sleep for `seconds`, raising the token's error if it fires first"""
        await self.race(asyncio.sleep(seconds))

    async def race(self, awaitable: Awaitable[T]) -> T:
        """
        Await `awaitable` unless the token fires first.

        When the token wins, the pending awaitable is cancelled and the
        token's error is raised. Exceptions raised by the awaitable itself,
        including its own cancellation, propagate unchanged.
        """
        if self.is_cancelled:
            # Close the coroutine so it does not warn about never being awaited
            if asyncio.iscoroutine(awaitable):
                awaitable.close()
            self.raise_if_cancelled()

        task = asyncio.ensure_future(awaitable)
        waiter = asyncio.ensure_future(self._event.wait())
        try:
            await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            waiter.cancel()
            if not task.done():
                task.cancel()

        if task.done() and not task.cancelled():
            return task.result()

        error = self.error()
        if error is None:
            # The awaitable was cancelled on its own; let its CancelledError out
            return await task
        try:
            await task
        except asyncio.CancelledError:
            pass
        raise error

    def _attach(self, child: CancellationToken) -> None:
        if self.is_cancelled:
            child._fire(self._reason)
        else:
            self._children.append(child)

    def _fire(self, reason: CancellationReason) -> None:
        if self._event.is_set():
            return

        self._reason = reason
        self._event.set()
        logger.debug("Cancellation token fired: %s", reason.value)

        if self._deadline is not None:
            self._deadline.cancel()
            self._deadline = None

        children, self._children = self._children, []
        for child in children:
            child._fire(reason)
