"""
Telegram messaging endpoint built on aiogram.

Telegram bots cannot change their display name or avatar per message, so
style overrides are accepted but ignored (with one warning per endpoint).
Editing a message to the text it already has is rejected by Telegram with
"message is not modified"; for an animation that just means two identical
frames in a row, so it counts as a successful edit.
"""

import logging
from typing import Union

from aiogram import Bot
from aiogram.exceptions import TelegramAPIError, TelegramBadRequest

from domain.exceptions import MessagingError
from domain.services.messaging_service import IMessagingEndpoint
from domain.value_objects.message_handle import MessageHandle
from domain.value_objects.style_options import StyleOptions

logger = logging.getLogger(__name__)


def parse_chat_id(destination: str) -> Union[int, str]:
    """Numeric chat ids go to Telegram as int, @usernames as str"""
    try:
        return int(destination)
    except ValueError:
        return destination


class TelegramEndpoint(IMessagingEndpoint):
    """Messaging endpoint backed by a Telegram bot"""

    def __init__(self, bot: Bot):
        self.bot = bot
        self._style_warned = False

    @classmethod
    def from_token(cls, token: str) -> "TelegramEndpoint":
        return cls(Bot(token=token))

    async def create_message(self, destination: str, text: str, style: StyleOptions) -> MessageHandle:
        self._check_style(style)
        try:
            message = await self.bot.send_message(
                chat_id=parse_chat_id(destination),
                text=text,
                parse_mode=None,
            )
        except TelegramAPIError as e:
            raise MessagingError(f"sendMessage failed: {e}") from e
        return MessageHandle(channel=str(message.chat.id), message_id=str(message.message_id))

    async def edit_message(self, handle: MessageHandle, text: str, style: StyleOptions) -> None:
        self._check_style(style)
        try:
            await self.bot.edit_message_text(
                text=text,
                chat_id=parse_chat_id(handle.channel),
                message_id=int(handle.message_id),
                parse_mode=None,
            )
        except TelegramBadRequest as e:
            if "message is not modified" in str(e).lower():
                logger.debug(f"Message {handle}: text unchanged, skipping")
                return
            raise MessagingError(f"editMessageText failed: {e}") from e
        except TelegramAPIError as e:
            raise MessagingError(f"editMessageText failed: {e}") from e

    async def close(self) -> None:
        await self.bot.session.close()

    def _check_style(self, style: StyleOptions) -> None:
        if not style.is_default() and not self._style_warned:
            logger.warning("Telegram does not support sender name or icon overrides, ignoring them")
            self._style_warned = True
