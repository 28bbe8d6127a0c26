"""
Line-oriented async reader over blocking streams.

Standard input (and most file objects) only offer blocking reads, so lines
are read by a daemon worker thread, one line per request. The event loop
stays free to observe cancellation while a read is pending; an abandoned
read finishes in the worker and its line is discarded.

The worker is a daemon thread rather than an executor thread (to_thread):
asyncio.run and interpreter exit join executor threads, so a read blocked
on an idle pipe (`tail -f | chatnimate`) would hang shutdown after Ctrl-C.
"""

import asyncio
import logging
import queue
import threading
from typing import IO, Optional, Union

from domain.services.line_reader import ILineReader

logger = logging.getLogger(__name__)


class StreamLineReader(ILineReader):
    """Reads one line at a time from a text or binary stream.

    Lines are returned without their line ending (``\\n``, ``\\r\\n`` or a
    dangling ``\\r`` on the last line). ``None`` signals end of data. Read
    errors propagate to the caller. Bytes that do not decode are replaced with
    U+FFFD by default, so a stray byte never ends the input early.
    """

    def __init__(self, stream: IO, encoding: str = "utf-8", errors: str = "replace"):
        self.stream = stream
        self.encoding = encoding
        self.errors = errors
        self._eof = False
        self._requests: queue.Queue = queue.Queue()
        self._worker: Optional[threading.Thread] = None

    async def readline(self) -> Optional[str]:
        if self._eof:
            return None

        loop = asyncio.get_running_loop()
        future = loop.create_future()
        self._ensure_worker()
        self._requests.put((loop, future))

        raw: Union[str, bytes] = await future
        if not raw:
            self._eof = True
            logger.debug("Reached end of input stream")
            return None

        if isinstance(raw, bytes):
            raw = raw.decode(self.encoding, self.errors)
        return _strip_newline(raw)

    def _ensure_worker(self) -> None:
        if self._worker is None:
            self._worker = threading.Thread(
                target=self._read_forever,
                name="stream-line-reader",
                daemon=True,
            )
            self._worker.start()

    def _read_forever(self) -> None:
        while True:
            loop, future = self._requests.get()
            try:
                raw = self.stream.readline()
            except Exception as e:
                delivered = _deliver(loop, future.set_exception, future, e)
            else:
                delivered = _deliver(loop, future.set_result, future, raw)
            if not delivered:
                return


def _deliver(loop: asyncio.AbstractEventLoop, setter, future: asyncio.Future, value) -> bool:
    """Hand a read result to the event loop; False once the loop is gone"""
    def _set():
        if not future.done():
            setter(value)

    try:
        loop.call_soon_threadsafe(_set)
    except RuntimeError:
        # Event loop closed while we were blocked on the stream
        return False
    return True


def _strip_newline(line: str) -> str:
    if line.endswith("\n"):
        line = line[:-1]
    if line.endswith("\r"):
        line = line[:-1]
    return line
