"""
Pytest configuration and shared fixtures for the test suite.
"""

import asyncio
import os
from typing import Iterable, Optional
from unittest.mock import AsyncMock, Mock

import pytest

# Keep a developer's .env from leaking into settings-driven tests
for _name in (
    "SLACK_TOKEN", "SLACK_CHANNEL", "SLACK_USERNAME", "SLACK_ICON_URL",
    "SLACK_ICON_EMOJI", "TELEGRAM_TOKEN", "TELEGRAM_CHAT_ID", "ANIMATE_BACKEND",
    "ANIMATE_DELAY", "ANIMATE_LOOP", "ANIMATE_MAX_FRAMES", "ANIMATE_TIMEOUT",
):
    os.environ.pop(_name, None)

from application.services.frame_source import FrameSequence
from domain.services.line_reader import ILineReader
from domain.services.messaging_service import IMessagingEndpoint
from domain.value_objects.message_handle import MessageHandle
from domain.value_objects.style_options import StyleOptions
from shared.cancellation import CancellationToken


# ============================================================================
# Fakes
# ============================================================================

class ListLineReader(ILineReader):
    """Line reader serving a fixed list of lines, optionally failing at the end."""

    def __init__(self, lines: Iterable[str], error: Optional[Exception] = None):
        self.lines = list(lines)
        self.error = error
        self.reads = 0

    async def readline(self) -> Optional[str]:
        await asyncio.sleep(0)
        if self.reads < len(self.lines):
            line = self.lines[self.reads]
            self.reads += 1
            return line
        if self.error is not None:
            raise self.error
        return None


class BlockingLineReader(ILineReader):
    """Line reader that never returns, like an idle pipe."""

    async def readline(self) -> Optional[str]:
        await asyncio.Event().wait()


class RecordingEndpoint(IMessagingEndpoint):
    """Messaging endpoint that records every call with its start time."""

    def __init__(
        self,
        post_error: Optional[Exception] = None,
        edit_errors: Optional[dict] = None,
    ):
        self.post_error = post_error
        self.edit_errors = edit_errors or {}
        self.calls: list[tuple] = []
        self.call_times: list[float] = []
        self.closed = False
        self.handle = MessageHandle(channel="C024BE91L", message_id="1503435956.000247")

    async def create_message(self, destination: str, text: str, style: StyleOptions) -> MessageHandle:
        self.calls.append(("create", destination, text, style))
        self.call_times.append(asyncio.get_running_loop().time())
        if self.post_error is not None:
            raise self.post_error
        return self.handle

    async def edit_message(self, handle: MessageHandle, text: str, style: StyleOptions) -> None:
        self.calls.append(("edit", handle, text, style))
        self.call_times.append(asyncio.get_running_loop().time())
        error = self.edit_errors.get(text)
        if error is not None:
            raise error

    async def close(self) -> None:
        self.closed = True


async def closed_sequence(frames: Iterable[str]) -> FrameSequence:
    """Build a frame sequence fed by a background task, then closed."""
    sequence = FrameSequence()
    token = CancellationToken()

    async def feed():
        try:
            for frame in frames:
                await sequence.send(frame, token)
        finally:
            sequence.close()

    asyncio.ensure_future(feed())
    return sequence


async def collect(sequence: FrameSequence, limit: int = 10_000) -> list[str]:
    """Read frames until the sequence closes or `limit` frames were seen."""
    result = []
    while len(result) < limit:
        frame = await sequence.receive()
        if frame is None:
            break
        result.append(frame)
    return result


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture
def token() -> CancellationToken:
    """Create a fresh cancellation token."""
    return CancellationToken()


@pytest.fixture
def endpoint() -> RecordingEndpoint:
    """Create a recording messaging endpoint."""
    return RecordingEndpoint()


@pytest.fixture
def style() -> StyleOptions:
    """Create style overrides."""
    return StyleOptions(display_name="Animation Funtime", icon_emoji=":cat:")


@pytest.fixture
def mock_bot() -> Mock:
    """Create a mock Telegram bot."""
    bot = Mock()
    bot.send_message = AsyncMock()
    bot.edit_message_text = AsyncMock()
    bot.session = Mock()
    bot.session.close = AsyncMock()
    return bot
