"""Shared fakes for the chat platform and completion provider."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import pytest

from completion.base import CompletionError
from models import DayWindow, SlackChannel, SlackMessage, SlackUser
from slack_client.client import PlatformError


class FakePlatform:
    """In-memory stand-in for SlackClient that records posts."""

    def __init__(
        self,
        channels: list[SlackChannel] | None = None,
        users: list[SlackUser] | None = None,
        messages: dict[str, list[SlackMessage]] | None = None,
    ) -> None:
        self.channels = channels or []
        self.users = users or []
        self.messages = messages or {}
        self.channel_error: PlatformError | None = None
        self.user_error: PlatformError | None = None
        self.history_errors: dict[str, PlatformError] = {}
        self.failing_posts: set[str] = set()
        self.posted: list[tuple[str, str]] = []
        self.windows: list[DayWindow] = []

    def list_member_channels(self) -> list[SlackChannel]:
        if self.channel_error:
            raise self.channel_error
        return list(self.channels)

    def list_users(self) -> list[SlackUser]:
        if self.user_error:
            raise self.user_error
        return list(self.users)

    def list_messages(self, channel_id: str, window: DayWindow) -> list[SlackMessage]:
        self.windows.append(window)
        if channel_id in self.history_errors:
            raise self.history_errors[channel_id]
        return list(self.messages.get(channel_id, []))

    def post_message(self, channel_id: str, text: str) -> bool:
        if channel_id in self.failing_posts:
            return False
        self.posted.append((channel_id, text))
        return True


class FakeProvider:
    """Returns a canned reply, or raises when given an exception."""

    name = "fake"

    def __init__(self, reply: str | Exception = "") -> None:
        self.reply = reply
        self.prompts: list[str] = []

    def complete(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if isinstance(self.reply, Exception):
            raise self.reply
        return self.reply


@pytest.fixture
def make_platform() -> Callable[..., FakePlatform]:
    return FakePlatform


@pytest.fixture
def make_provider() -> Callable[..., FakeProvider]:
    return FakeProvider


@pytest.fixture
def completion_error() -> CompletionError:
    return CompletionError("connection refused", provider="fake")


@pytest.fixture
def platform_error() -> Callable[[str, str], PlatformError]:
    return PlatformError


@pytest.fixture
def msg() -> Callable[..., SlackMessage]:
    def _make(user: str, text: str, ts: Any) -> SlackMessage:
        return SlackMessage(user_id=user, text=text, ts=ts)

    return _make
