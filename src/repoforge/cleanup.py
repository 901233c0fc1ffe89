"""Operator reset: delete message history in the workflow channels."""

from __future__ import annotations

import structlog
from slack_sdk.errors import SlackApiError
from slack_sdk.web.async_client import AsyncWebClient

log = structlog.get_logger()


async def clear_channel(client: AsyncWebClient, channel: str) -> int:
    """Delete every message the bot can see in a channel. Returns the number deleted."""
    deleted = 0
    cursor: str | None = None
    while True:
        history = await client.conversations_history(channel=channel, cursor=cursor, limit=200)
        for message in history.get("messages", []):
            try:
                await client.chat_delete(channel=channel, ts=message["ts"])
                deleted += 1
            except SlackApiError as e:
                log.warning(
                    "message_delete_failed",
                    channel=channel,
                    ts=message["ts"],
                    error=e.response.get("error"),
                )
        cursor = (history.get("response_metadata") or {}).get("next_cursor")
        if not cursor:
            break
    log.info("channel_cleared", channel=channel, deleted=deleted)
    return deleted


async def clear_channels(client: AsyncWebClient, channels: list[str]) -> dict[str, int]:
    return {channel: await clear_channel(client, channel) for channel in channels}
