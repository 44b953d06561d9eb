"""Slack Web API wrapper used by the digest pipeline."""

from __future__ import annotations

import logging
from typing import Any

from slack_sdk import WebClient
from slack_sdk.errors import SlackApiError
from slack_sdk.http_retry.builtin_handlers import RateLimitErrorRetryHandler

from models import DayWindow, SlackChannel, SlackMessage, SlackUser

logger = logging.getLogger(__name__)

CHANNEL_TYPES = "public_channel,private_channel"
PAGE_LIMIT = 1000
USERS_PAGE_LIMIT = 200


class PlatformError(Exception):
    """A Slack call failed or answered with ``ok: false``."""

    def __init__(self, method: str, error: str) -> None:
        super().__init__(f"Slack API error ({method}): {error}")
        self.method = method
        self.error = error


def _error_string(exc: SlackApiError) -> str:
    if exc.response is not None:
        try:
            error = exc.response.get("error")
        except AttributeError:
            error = None
        if error:
            return str(error)
    return str(exc)


def _next_cursor(result: Any) -> str | None:
    metadata = result.get("response_metadata") or {}
    if isinstance(metadata, dict):
        return metadata.get("next_cursor") or None
    return None


class SlackClient:
    """Thin wrapper around slack_sdk.WebClient returning domain models."""

    def __init__(self, token: str, web_client: WebClient | None = None) -> None:
        if web_client is None:
            if not token:
                raise RuntimeError("SLACK_BOT_TOKEN is not configured")
            web_client = WebClient(token=token)
            web_client.retry_handlers.append(
                RateLimitErrorRetryHandler(max_retry_count=3)
            )
        self._client = web_client

    # ------------------------------------------------------------------
    def test_auth(self) -> bool:
        """Tests authentication with Slack API."""
        try:
            resp = self._client.auth_test()
            logger.info(
                f"Slack auth OK: user={resp.get('user')} team={resp.get('team')}"
            )
            return True
        except SlackApiError as e:
            logger.error(f"Slack auth failed: {_error_string(e)}")
            return False

    # ------------------------------------------------------------------
    def list_member_channels(self) -> list[SlackChannel]:
        """Return the public and private channels the bot is a member of."""
        channels: list[SlackChannel] = []
        cursor: str | None = None
        while True:
            try:
                result = self._client.conversations_list(
                    types=CHANNEL_TYPES, limit=PAGE_LIMIT, cursor=cursor
                )
            except SlackApiError as e:
                raise PlatformError("conversations.list", _error_string(e)) from e
            except Exception as e:
                raise PlatformError("conversations.list", str(e)) from e

            for raw in result.get("channels", []):
                if not isinstance(raw, dict) or not raw.get("is_member"):
                    continue
                channels.append(
                    SlackChannel(
                        id=raw.get("id") or "",
                        name=raw.get("name") or "",
                        is_member=True,
                    )
                )

            cursor = _next_cursor(result)
            if not cursor:
                break

        logger.debug(f"Bot is a member of {len(channels)} channels")
        return channels

    def list_users(self) -> list[SlackUser]:
        """Fetch the whole workspace user directory."""
        users: list[SlackUser] = []
        cursor: str | None = None
        while True:
            try:
                result = self._client.users_list(limit=USERS_PAGE_LIMIT, cursor=cursor)
            except SlackApiError as e:
                raise PlatformError("users.list", _error_string(e)) from e
            except Exception as e:
                raise PlatformError("users.list", str(e)) from e

            for member in result.get("members", []):
                if isinstance(member, dict) and member.get("id"):
                    users.append(
                        SlackUser(id=member["id"], name=member.get("name") or "")
                    )

            cursor = _next_cursor(result)
            if not cursor:
                break

        logger.debug(f"Fetched {len(users)} users")
        return users

    def list_messages(self, channel_id: str, window: DayWindow) -> list[SlackMessage]:
        """Fetch messages posted inside ``window``, oldest first."""
        messages: list[SlackMessage] = []
        cursor: str | None = None
        while True:
            try:
                result = self._client.conversations_history(
                    channel=channel_id,
                    oldest=window.oldest_ts,
                    latest=window.latest_ts,
                    inclusive=True,
                    limit=PAGE_LIMIT,
                    cursor=cursor,
                )
            except SlackApiError as e:
                raise PlatformError("conversations.history", _error_string(e)) from e
            except Exception as e:
                raise PlatformError("conversations.history", str(e)) from e

            for raw in result.get("messages", []):
                ts_val = raw.get("ts") if isinstance(raw, dict) else None
                if ts_val is None:
                    # Skip malformed message
                    continue
                messages.append(
                    SlackMessage(
                        user_id=raw.get("user") or "",
                        text=raw.get("text") or "",
                        ts=ts_val,
                    )
                )

            if not result.get("has_more"):
                break
            cursor = _next_cursor(result)
            if not cursor:
                break

        messages.sort(key=lambda m: m.timestamp)
        return messages

    def post_message(self, channel_id: str, text: str) -> bool:
        """Post ``text`` to a channel. Failures are logged, never raised."""
        try:
            result = self._client.chat_postMessage(channel=channel_id, text=text)
        except SlackApiError as e:
            logger.error(
                f"Slack API error (chat.postMessage) for {channel_id}: "
                f"{_error_string(e)}"
            )
            return False
        except Exception as e:
            logger.error(f"Error sending message to {channel_id}: {e}")
            return False

        if not result.get("ok", False):
            logger.error(
                f"Slack API error (chat.postMessage) for {channel_id}: "
                f"{result.get('error')}"
            )
            return False
        return True
