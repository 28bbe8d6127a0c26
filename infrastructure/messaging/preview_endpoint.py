import logging
import sys
from typing import IO, Optional

from domain.services.messaging_service import IMessagingEndpoint
from domain.value_objects.message_handle import MessageHandle
from domain.value_objects.style_options import StyleOptions

logger = logging.getLogger(__name__)

# Erase the whole line, then return the cursor to column 0
CLEAR_LINE = "\033[2K\r"


class PreviewEndpoint(IMessagingEndpoint):
    """Renders the animation on a terminal line instead of posting it"""

    HANDLE = MessageHandle(channel="preview", message_id="1")

    def __init__(self, stream: Optional[IO[str]] = None):
        self.stream = stream or sys.stdout
        self._drawn = False

    async def create_message(self, destination: str, text: str, style: StyleOptions) -> MessageHandle:
        logger.debug(f"Previewing animation for {destination} on terminal")
        self._draw(text)
        return self.HANDLE

    async def edit_message(self, handle: MessageHandle, text: str, style: StyleOptions) -> None:
        self._draw(text)

    async def close(self) -> None:
        if not self._drawn:
            return
        # Leave the last frame visible and move to a fresh line
        self.stream.write("\n")
        self.stream.flush()

    def _draw(self, text: str) -> None:
        self.stream.write(f"{CLEAR_LINE}{text}")
        self._drawn = True
        self.stream.flush()
