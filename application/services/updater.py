"""
Updater: delivers frames to a single remote message.

The first frame is posted as a new message; every later frame edits that
same message. Runs as a two-state machine:

    NoMessage --(post ok)--> Tracking(handle) --(edit, ok or not)--> Tracking ...

A failed post ends the run with InitialPostError. A failed edit is only
reported to the `on_update` observer and the run carries on with the same
handle. Posts and edits are issued strictly one after another.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Callable, Optional, Union

from application.services.frame_source import FrameSequence
from domain.entities.update import UpdateOutcome
from domain.exceptions import InitialPostError, OperationCancelled
from domain.services.messaging_service import IMessagingEndpoint
from domain.value_objects.message_handle import MessageHandle
from domain.value_objects.style_options import StyleOptions
from shared.cancellation import CancellationToken

logger = logging.getLogger(__name__)

UpdateObserver = Callable[[UpdateOutcome], None]


@dataclass(frozen=True)
class NoMessage:
    """Nothing posted yet"""
    pass


@dataclass(frozen=True)
class Tracking:
    """Message posted; every further frame edits it"""
    handle: MessageHandle


UpdaterState = Union[NoMessage, Tracking]


@dataclass
class UpdaterOptions:
    """Optional configuration for Updater.run"""
    min_delay: float = 0.0  # minimum seconds between the start of two deliveries
    on_update: Optional[UpdateObserver] = None  # called synchronously after every edit
    style: StyleOptions = field(default_factory=StyleOptions)

    def __post_init__(self):
        if self.min_delay < 0:
            raise ValueError("min_delay cannot be negative")


class Updater:
    """
    Posts and updates the animated message through a messaging endpoint.

    Usage:
        updater = Updater(endpoint, UpdaterOptions(min_delay=1.0, on_update=log_update))
        await updater.run(token, "#general", source.frames)

    `run` returns once the frame sequence closes. It raises the token's
    error when cancelled and InitialPostError when the first frame cannot
    be posted. It does not look at why the sequence closed; ask the frame
    source for that.
    """

    def __init__(self, endpoint: IMessagingEndpoint, options: Optional[UpdaterOptions] = None):
        self.endpoint = endpoint
        self.options = options or UpdaterOptions()
        self.state: UpdaterState = NoMessage()

    async def run(
        self,
        token: CancellationToken,
        destination: str,
        frames: FrameSequence,
    ) -> None:
        self.state = NoMessage()
        loop = asyncio.get_running_loop()
        last_started: Optional[float] = None

        while True:
            frame = await token.race(frames.receive())
            if frame is None:
                # Closing and cancelling can land in the same tick; cancellation wins
                token.raise_if_cancelled()
                logger.info(f"Frame sequence closed, updater done ({destination})")
                return

            # Already cancelled: stop before doing any work
            token.raise_if_cancelled()

            if self.options.min_delay > 0 and last_started is not None:
                remaining = self.options.min_delay - (loop.time() - last_started)
                if remaining > 0:
                    await token.sleep(remaining)

            last_started = loop.time()
            if isinstance(self.state, NoMessage):
                self.state = Tracking(await self._post(token, destination, frame))
            else:
                outcome = await self._update(token, self.state.handle, frame)
                if self.options.on_update is not None:
                    self.options.on_update(outcome)

    async def _post(self, token: CancellationToken, destination: str, frame: str) -> MessageHandle:
        try:
            handle = await token.race(
                self.endpoint.create_message(destination, frame, self.options.style)
            )
        except OperationCancelled:
            raise
        except Exception as e:
            logger.error(f"Could not post initial frame to {destination}: {e}")
            raise InitialPostError(destination, e) from e

        logger.info(f"Posted initial frame as {handle}")
        return handle

    async def _update(self, token: CancellationToken, handle: MessageHandle, frame: str) -> UpdateOutcome:
        error: Optional[Exception] = None
        try:
            await token.race(self.endpoint.edit_message(handle, frame, self.options.style))
        except OperationCancelled:
            raise
        except Exception as e:
            logger.debug(f"Update of {handle} failed: {e}")
            error = e

        return UpdateOutcome(
            destination=handle.channel,
            message_id=handle.message_id,
            frame=frame,
            error=error,
        )
