"""
Animation service - runs one animation from an input stream to a message.

Wires a frame source (streaming or looping) to an Updater and makes sure
the producer task never outlives the run.
"""

import logging
from typing import Optional

from application.services.frame_source import (
    DEFAULT_MAX_FRAMES,
    FrameSource,
    LineFrameSource,
    LoopingFrameSource,
)
from application.services.updater import Updater, UpdaterOptions
from domain.exceptions import OperationCancelled
from domain.services.line_reader import ILineReader
from domain.services.messaging_service import IMessagingEndpoint
from shared.cancellation import CancellationToken
from shared.logging.correlation import generate_correlation_id, set_correlation_id

logger = logging.getLogger(__name__)


class AnimationService:
    """Application service animating one message per `animate` call"""

    def __init__(
        self,
        endpoint: IMessagingEndpoint,
        loop: bool = False,
        max_frames: int = DEFAULT_MAX_FRAMES,
        options: Optional[UpdaterOptions] = None,
    ):
        self.endpoint = endpoint
        self.loop = loop
        self.max_frames = max_frames
        self.options = options or UpdaterOptions()

    def create_source(self, reader: ILineReader, token: CancellationToken) -> FrameSource:
        if self.loop:
            return LoopingFrameSource(reader, token, max_frames=self.max_frames)
        return LineFrameSource(reader, token)

    async def animate(
        self,
        reader: ILineReader,
        destination: str,
        token: CancellationToken,
    ) -> None:
        """
        Animate `destination` with the lines of `reader`.

        Raises:
            OperationCancelled: the token fired (DeadlineExceeded for deadlines)
            InitialPostError: the first frame could not be posted
            MaxFramesExceeded: looping input was longer than `max_frames`
            Exception: the input stream failed while reading
        """
        set_correlation_id(generate_correlation_id("run-"))
        logger.info(
            f"Starting animation: destination={destination}, loop={self.loop}, "
            f"min_delay={self.options.min_delay}s"
        )

        source_token = CancellationToken(parent=token)
        source = self.create_source(reader, source_token).start()
        try:
            await Updater(self.endpoint, self.options).run(token, destination, source.frames)
        finally:
            source_token.cancel()
            await source.wait_closed()

        # The updater only sees a closed sequence; tell read failures apart here
        error = source.error
        if isinstance(error, OperationCancelled):
            token.raise_if_cancelled()
        elif error is not None:
            logger.error(f"Frame source failed: {error}")
            raise error

        logger.info("Animation finished")
