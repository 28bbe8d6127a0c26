from abc import ABC, abstractmethod

from domain.value_objects.message_handle import MessageHandle
from domain.value_objects.style_options import StyleOptions


class IMessagingEndpoint(ABC):
    """
    Interface for a remote messaging surface that can post and edit messages.

    Both calls are awaited one at a time by the updater and are expected to
    be individually atomic. Implementations must not retry on their own
    behalf unless that is their documented policy; the core never retries.
    """

    @abstractmethod
    async def create_message(
        self,
        destination: str,
        text: str,
        style: StyleOptions,
    ) -> MessageHandle:
        """Post a new message and return its handle"""
        pass

    @abstractmethod
    async def edit_message(
        self,
        handle: MessageHandle,
        text: str,
        style: StyleOptions,
    ) -> None:
        """Replace the text of an existing message"""
        pass

    async def close(self) -> None:
        """Release transport resources"""
        return None
