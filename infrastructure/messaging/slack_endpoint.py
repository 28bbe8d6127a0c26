"""
Slack Web API messaging endpoint.

Posts with chat.postMessage and edits with chat.update. The channel can be
an encoded ID or a name; the handle returned by the first post always
carries the encoded ID Slack answered with.

The token needs the chat:write scope, plus chat:write.customize when
username or icon overrides are used.
"""

import logging
from typing import Any, Optional

import httpx

from domain.exceptions import MessagingError, SlackApiError
from domain.services.messaging_service import IMessagingEndpoint
from domain.value_objects.message_handle import MessageHandle
from domain.value_objects.style_options import StyleOptions

logger = logging.getLogger(__name__)

SLACK_API_URL = "https://slack.com/api"


def escape_text(text: str) -> str:
    """Escape the control characters Slack reserves in message text"""
    return text.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")


def style_fields(style: StyleOptions) -> dict[str, str]:
    fields: dict[str, str] = {}
    if style.display_name:
        fields["username"] = style.display_name
    if style.icon_emoji:
        fields["icon_emoji"] = style.icon_emoji
    if style.icon_url:
        fields["icon_url"] = style.icon_url
    return fields


class SlackEndpoint(IMessagingEndpoint):
    """Messaging endpoint backed by the Slack Web API over httpx"""

    def __init__(
        self,
        token: str,
        api_url: str = SLACK_API_URL,
        timeout: float = 30.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        if not token:
            raise ValueError("Slack token is required")
        self.api_url = api_url.rstrip("/")
        self._token = token
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def create_message(self, destination: str, text: str, style: StyleOptions) -> MessageHandle:
        data = await self._call("chat.postMessage", {
            "channel": destination,
            "text": escape_text(text),
            **style_fields(style),
        })
        return MessageHandle(channel=data["channel"], message_id=data["ts"])

    async def edit_message(self, handle: MessageHandle, text: str, style: StyleOptions) -> None:
        await self._call("chat.update", {
            "channel": handle.channel,
            "ts": handle.message_id,
            "text": escape_text(text),
            **style_fields(style),
        })

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def _call(self, method: str, payload: dict[str, Any]) -> dict[str, Any]:
        try:
            resp = await self._client.post(
                f"{self.api_url}/{method}",
                json=payload,
                headers={
                    "Authorization": f"Bearer {self._token}",
                    "Content-Type": "application/json; charset=utf-8",
                },
            )
            resp.raise_for_status()
        except httpx.HTTPStatusError as exc:
            logger.error("Slack API error: %s %s", exc.response.status_code, exc.response.text[:200])
            raise MessagingError(f"{method} returned HTTP {exc.response.status_code}") from exc
        except httpx.RequestError as exc:
            logger.error("Slack connection error: %s", exc)
            raise MessagingError(f"cannot connect to Slack: {exc}") from exc

        data = resp.json()
        if not data.get("ok"):
            raise SlackApiError(method, data.get("error", "unknown_error"))

        warning = data.get("warning")
        if warning:
            logger.debug("Slack %s warning: %s", method, warning)
        return data
