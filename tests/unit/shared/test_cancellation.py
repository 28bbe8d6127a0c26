"""Unit tests for CancellationToken."""

import asyncio

import pytest

from domain.exceptions import DeadlineExceeded, OperationCancelled
from shared.cancellation import CancellationReason, CancellationToken


class TestCancellationTokenState:
    """Tests for firing and reporting."""

    def test_new_token_is_not_cancelled(self):
        """A fresh token has no reason and no error."""
        token = CancellationToken()

        assert token.is_cancelled is False
        assert token.reason is CancellationReason.NONE
        assert token.error() is None
        token.raise_if_cancelled()

    def test_cancel_sets_reason_and_error(self):
        """cancel() fires the token with CANCELLED."""
        token = CancellationToken()
        token.cancel()

        assert token.is_cancelled is True
        assert token.reason is CancellationReason.CANCELLED
        assert isinstance(token.error(), OperationCancelled)
        assert not isinstance(token.error(), DeadlineExceeded)
        with pytest.raises(OperationCancelled):
            token.raise_if_cancelled()

    def test_cancel_is_idempotent(self):
        """Cancelling twice keeps the token fired."""
        token = CancellationToken()
        token.cancel()
        token.cancel()

        assert token.reason is CancellationReason.CANCELLED


class TestCancellationTokenPropagation:
    """Tests for parent/child tokens."""

    def test_parent_cancels_child(self):
        """A child fires with its parent's reason."""
        parent = CancellationToken()
        child = CancellationToken(parent=parent)

        parent.cancel()

        assert child.is_cancelled is True
        assert child.reason is CancellationReason.CANCELLED

    def test_child_does_not_cancel_parent(self):
        """Cancelling a child leaves the parent alone."""
        parent = CancellationToken()
        child = CancellationToken(parent=parent)

        child.cancel()

        assert child.is_cancelled is True
        assert parent.is_cancelled is False

    def test_child_of_cancelled_parent_starts_cancelled(self):
        """Attaching to an already fired parent fires the child immediately."""
        parent = CancellationToken()
        parent.cancel()

        child = CancellationToken(parent=parent)

        assert child.is_cancelled is True

    def test_grandchild_propagation(self):
        """Propagation reaches every level of the tree."""
        root = CancellationToken()
        grandchild = CancellationToken(parent=CancellationToken(parent=root))

        root.cancel()

        assert grandchild.is_cancelled is True


class TestCancellationTokenDeadline:
    """Tests for deadline tokens."""

    @pytest.mark.asyncio
    async def test_deadline_fires(self):
        """with_timeout fires with DEADLINE_EXCEEDED."""
        token = CancellationToken.with_timeout(0.01)

        await asyncio.wait_for(token.wait(), timeout=1.0)

        assert token.reason is CancellationReason.DEADLINE_EXCEEDED
        assert isinstance(token.error(), DeadlineExceeded)

    @pytest.mark.asyncio
    async def test_cancel_before_deadline_keeps_cancelled_reason(self):
        """The first reason wins; a later deadline does not overwrite it."""
        token = CancellationToken.with_timeout(0.01)
        token.cancel()

        await asyncio.sleep(0.03)

        assert token.reason is CancellationReason.CANCELLED

    @pytest.mark.asyncio
    async def test_deadline_propagates_to_child(self):
        """A child of a deadline token reports the deadline reason."""
        parent = CancellationToken.with_timeout(0.01)
        child = CancellationToken(parent=parent)

        await asyncio.wait_for(child.wait(), timeout=1.0)

        assert child.reason is CancellationReason.DEADLINE_EXCEEDED


class TestCancellationTokenRace:
    """Tests for race() and sleep()."""

    @pytest.mark.asyncio
    async def test_race_returns_result(self):
        """The awaitable's result is returned when it finishes first."""
        token = CancellationToken()

        async def work():
            return 42

        assert await token.race(work()) == 42

    @pytest.mark.asyncio
    async def test_race_propagates_awaitable_error(self):
        """Errors raised by the awaitable propagate unchanged."""
        token = CancellationToken()

        async def work():
            raise OSError("disk on fire")

        with pytest.raises(OSError, match="disk on fire"):
            await token.race(work())

    @pytest.mark.asyncio
    async def test_race_cancels_pending_awaitable(self):
        """When the token fires first, the awaitable is cancelled."""
        token = CancellationToken()
        started = asyncio.Event()
        cancelled = asyncio.Event()

        async def work():
            started.set()
            try:
                await asyncio.sleep(10)
            except asyncio.CancelledError:
                cancelled.set()
                raise

        async def fire():
            await started.wait()
            token.cancel()

        asyncio.ensure_future(fire())
        with pytest.raises(OperationCancelled):
            await asyncio.wait_for(token.race(work()), timeout=1.0)

        assert cancelled.is_set()

    @pytest.mark.asyncio
    async def test_race_on_cancelled_token_raises_immediately(self):
        """An already fired token raises without running the awaitable."""
        token = CancellationToken()
        token.cancel()
        ran = []

        async def work():
            ran.append(True)

        with pytest.raises(OperationCancelled):
            await token.race(work())

        await asyncio.sleep(0)
        assert ran == []

    @pytest.mark.asyncio
    async def test_race_reraises_cancelled_awaitable(self):
        """A cancelled awaitable surfaces CancelledError while the token is unfired."""
        token = CancellationToken()
        future = asyncio.get_running_loop().create_future()
        future.cancel()

        with pytest.raises(asyncio.CancelledError):
            await token.race(future)

        assert not token.is_cancelled

    @pytest.mark.asyncio
    async def test_sleep_interrupted_by_deadline(self):
        """sleep() raises DeadlineExceeded when the deadline comes first."""
        token = CancellationToken.with_timeout(0.01)
        loop = asyncio.get_running_loop()
        started = loop.time()

        with pytest.raises(DeadlineExceeded):
            await token.sleep(5)

        assert loop.time() - started < 1.0
