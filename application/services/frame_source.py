"""
Frame sources for the animation pipeline.

A frame source runs as its own asyncio task and turns input lines into an
ordered FrameSequence consumed by exactly one reader:

- LineFrameSource streams one frame per input line and closes at end of input
- LoopingFrameSource drains the whole input first, then replays it forever

Both hand frames over through a queue of capacity one, so at most one frame
is ever in flight, and both stop promptly when their cancellation token fires.
The reason a sequence closed is exposed separately through `error`.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Optional

from domain.exceptions import MaxFramesExceeded, OperationCancelled
from domain.services.line_reader import ILineReader
from shared.cancellation import CancellationToken

logger = logging.getLogger(__name__)

# Frame limit used for looping input when none is configured
DEFAULT_MAX_FRAMES = 4096


class FrameSequence:
    """
    Single-producer single-consumer handoff of frames.

    `close()` is the only end-of-data signal. A frame already queued when the
    producer closes is still delivered; after the reader has seen the end,
    the sequence never emits again.
    """

    def __init__(self):
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=1)
        self._closed = asyncio.Event()
        self._exhausted = False

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    async def send(self, frame: str, token: CancellationToken) -> None:
        """Block until the frame is accepted, or raise if the token fires first"""
        if self.closed:
            raise RuntimeError("send on closed frame sequence")
        await token.race(self._queue.put(frame))

    def close(self) -> None:
        self._closed.set()

    async def receive(self) -> Optional[str]:
        """Next frame, or None once the sequence is closed and drained"""
        if self._exhausted:
            return None

        while True:
            if not self._queue.empty():
                return self._queue.get_nowait()
            if self.closed:
                self._exhausted = True
                return None

            getter = asyncio.ensure_future(self._queue.get())
            closer = asyncio.ensure_future(self._closed.wait())
            try:
                await asyncio.wait({getter, closer}, return_when=asyncio.FIRST_COMPLETED)
            finally:
                closer.cancel()
                if not getter.done():
                    getter.cancel()

            if getter.done() and not getter.cancelled():
                return getter.result()

    def __aiter__(self):
        return self

    async def __anext__(self) -> str:
        frame = await self.receive()
        if frame is None:
            raise StopAsyncIteration
        return frame


class FrameSource(ABC):
    """Base class running a frame producer as a background task"""

    def __init__(self, reader: ILineReader, token: CancellationToken):
        self.reader = reader
        self.token = token
        self._frames = FrameSequence()
        self._error: Optional[BaseException] = None
        self._task: Optional[asyncio.Task] = None

    @property
    def frames(self) -> FrameSequence:
        return self._frames

    @property
    def error(self) -> Optional[BaseException]:
        """
        Why the frame sequence closed.

        None after a natural end of input, otherwise the read error, the
        frame limit error or the cancellation error. Only meaningful once
        `frames` has closed.
        """
        return self._error

    def start(self) -> "FrameSource":
        if self._task is not None:
            raise RuntimeError(f"{type(self).__name__} already started")
        self._task = asyncio.create_task(self._run())
        return self

    async def wait_closed(self) -> None:
        """Wait for the producer task to finish"""
        if self._task is not None:
            await self._task

    async def _run(self) -> None:
        try:
            await self._produce()
        except OperationCancelled as e:
            logger.debug(f"{type(self).__name__}: stopped by cancellation ({e})")
            self._error = e
        except Exception as e:
            logger.warning(f"{type(self).__name__}: closing after error: {e}")
            self._error = e
        finally:
            self._frames.close()

    @abstractmethod
    async def _produce(self) -> None:
        """Emit frames until input or cancellation ends the sequence"""
        pass


class LineFrameSource(FrameSource):
    """Emits one frame per input line, in order, then closes."""

    async def _produce(self) -> None:
        count = 0
        while True:
            line = await self.token.race(self.reader.readline())
            if line is None:
                logger.debug(f"LineFrameSource: input exhausted after {count} frames")
                return
            await self._frames.send(line, self.token)
            count += 1


class LoopingFrameSource(FrameSource):
    """
    Reads the whole input into memory, then loops over it until cancelled.

    Nothing is emitted until the input reached its end. If the input has more
    lines than `max_frames` the source closes with MaxFramesExceeded before
    emitting anything; `max_frames=0` disables the check. An empty input
    never emits and only ends on cancellation.
    """

    def __init__(
        self,
        reader: ILineReader,
        token: CancellationToken,
        max_frames: int = DEFAULT_MAX_FRAMES,
    ):
        super().__init__(reader, token)
        if max_frames < 0:
            raise ValueError("max_frames cannot be negative")
        self.max_frames = max_frames
        self._buffer: tuple[str, ...] = ()

    @property
    def buffer(self) -> tuple[str, ...]:
        return self._buffer

    async def _produce(self) -> None:
        await self._drain()
        await self._replay()

    async def _drain(self) -> None:
        lines: list[str] = []
        while True:
            self.token.raise_if_cancelled()
            line = await self.token.race(self.reader.readline())
            if line is None:
                break
            if self.max_frames > 0 and len(lines) >= self.max_frames:
                raise MaxFramesExceeded(self.max_frames)
            lines.append(line)

        self._buffer = tuple(lines)
        logger.info(f"LoopingFrameSource: buffered {len(self._buffer)} frames")

    async def _replay(self) -> None:
        if not self._buffer:
            await self.token.wait()
            self.token.raise_if_cancelled()

        while True:
            for frame in self._buffer:
                await self._frames.send(frame, self.token)
