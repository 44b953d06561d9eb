"""
Daily digest pipeline.

For every channel the bot belongs to: fetch today's messages, attach display
names, compose a digest and post it back. Failures while listing channels (and,
unless tolerated, users) abort the run; anything that goes wrong inside a single
channel is logged and the run moves on to the next one.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from datetime import date, datetime
from typing import Protocol

from digest.composer import DigestComposer
from digest.enricher import enrich_messages
from models import (
    ChannelOutcome,
    ChannelStatus,
    DayWindow,
    PipelineRunResult,
    SlackChannel,
    SlackMessage,
    SlackUser,
)
from slack_client.client import PlatformError

logger = logging.getLogger(__name__)


class ChatPlatformClient(Protocol):
    def list_member_channels(self) -> list[SlackChannel]: ...

    def list_users(self) -> list[SlackUser]: ...

    def list_messages(
        self, channel_id: str, window: DayWindow
    ) -> list[SlackMessage]: ...

    def post_message(self, channel_id: str, text: str) -> bool: ...


class PipelineRunner:
    """Runs one pass of the digest job over all member channels."""

    def __init__(
        self,
        platform: ChatPlatformClient,
        composer: DigestComposer,
        *,
        clock: Callable[[], date] = date.today,
        tolerate_missing_users: bool = False,
    ) -> None:
        self.platform = platform
        self.composer = composer
        self.clock = clock
        self.tolerate_missing_users = tolerate_missing_users

    def run(self) -> PipelineRunResult:
        result = PipelineRunResult()

        try:
            channels = self.platform.list_member_channels()
        except PlatformError as e:
            logger.error(f"Could not list channels, aborting run: {e}")
            result.fatal_error = str(e)
            result.finished_at = datetime.now()
            return result

        try:
            users = self.platform.list_users()
        except PlatformError as e:
            if not self.tolerate_missing_users:
                logger.error(f"Could not list users, aborting run: {e}")
                result.fatal_error = str(e)
                result.finished_at = datetime.now()
                return result
            logger.warning(f"Could not list users, continuing without names: {e}")
            users = []

        window = DayWindow.for_date(self.clock())
        logger.info(f"Processing {len(channels)} channels")

        for channel in channels:
            result.channels.append(self._process_channel(channel, users, window))

        result.finished_at = datetime.now()
        return result

    def _process_channel(
        self,
        channel: SlackChannel,
        users: Sequence[SlackUser],
        window: DayWindow,
    ) -> ChannelOutcome:
        if not channel.id:
            logger.info(f"Skipping channel without an id (name={channel.name!r})")
            return ChannelOutcome(
                channel_id="", channel_name=channel.name, status=ChannelStatus.SKIPPED
            )

        label = f"#{channel.name}" if channel.name else channel.id
        try:
            messages = self.platform.list_messages(channel.id, window)
            if not messages:
                logger.debug(f"No messages today in {label}")
                return ChannelOutcome(
                    channel_id=channel.id,
                    channel_name=channel.name,
                    status=ChannelStatus.EMPTY,
                )

            enriched = enrich_messages(messages, users)
            digest = self.composer.compose(enriched)
            sent = self.platform.post_message(channel.id, digest.body)
        except PlatformError as e:
            logger.error(f"Failed to process {label}: {e}")
            return ChannelOutcome(
                channel_id=channel.id,
                channel_name=channel.name,
                status=ChannelStatus.FAILED,
                error=e.error,
            )
        except Exception as e:
            logger.exception(f"Unexpected error processing {label}")
            return ChannelOutcome(
                channel_id=channel.id,
                channel_name=channel.name,
                status=ChannelStatus.FAILED,
                error=str(e),
            )

        if not sent:
            logger.warning(f"Digest for {label} was not delivered")
            return ChannelOutcome(
                channel_id=channel.id,
                channel_name=channel.name,
                status=ChannelStatus.FAILED,
                message_count=len(messages),
                digest_source=digest.source,
                error="delivery failed",
            )

        logger.info(
            f"Posted {digest.source.value} digest of {len(messages)} messages "
            f"to {label}"
        )
        return ChannelOutcome(
            channel_id=channel.id,
            channel_name=channel.name,
            status=ChannelStatus.POSTED,
            message_count=len(messages),
            digest_source=digest.source,
        )
