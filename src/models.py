"""Domain models used across the daily digest bot.

These models provide strict typing and validation for data exchanged between layers.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import date, datetime, timedelta
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator

DIGEST_HEADING = "*Daily Summary*"
RECENT_MESSAGE_LIMIT = 3


def format_clock(timestamp: float) -> str:
    """Render a Unix timestamp as local ``HH:MM:SS``."""
    return datetime.fromtimestamp(timestamp).strftime("%H:%M:%S")


class SlackChannel(BaseModel):
    """Represents a Slack channel the bot can see."""

    model_config = ConfigDict(frozen=True)

    id: str = Field("", description="Conversation ID, e.g., C123456")
    name: str = Field("", description="Human readable name")
    is_member: bool = Field(False, description="Whether the bot has joined")


class SlackUser(BaseModel):
    """Represents a Slack user profile."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Slack user ID, e.g., U123456")
    name: str = Field(..., description="Display or real name of the user.")


class SlackMessage(BaseModel):
    """Represents a single Slack message."""

    model_config = ConfigDict(frozen=True)

    user_id: str = Field("", description="User ID of the sender")
    text: str = Field("", description="Raw text content")
    ts: str = Field(..., description="Slack message timestamp, kept verbatim")

    @field_validator("ts", mode="before")
    @classmethod
    def _ensure_numeric_ts(cls, v: object) -> str:
        """Accept any value that parses as a float, store it as the original string."""
        text = str(v).strip()
        float(text)
        return text

    @property
    def timestamp(self) -> float:
        """Unix epoch seconds."""
        return float(self.ts)

    @property
    def datetime(self) -> datetime:
        """Return local datetime for convenience."""
        return datetime.fromtimestamp(self.timestamp)


class EnrichedMessage(SlackMessage):
    """A message with its author's display name attached when known."""

    display_name: str | None = Field(None, description="Resolved author name")

    @property
    def author(self) -> str:
        return self.display_name or self.user_id


class DayWindow(BaseModel):
    """Closed ``[oldest, latest]`` range of Unix seconds covering one local day."""

    model_config = ConfigDict(frozen=True)

    oldest: float
    latest: float

    @classmethod
    def for_date(cls, day: date) -> DayWindow:
        start = datetime(day.year, day.month, day.day)
        end = start + timedelta(days=1) - timedelta(seconds=1)
        return cls(oldest=start.timestamp(), latest=end.timestamp())

    @property
    def oldest_ts(self) -> str:
        return f"{self.oldest:.6f}"

    @property
    def latest_ts(self) -> str:
        return f"{self.latest:.6f}"

    def contains(self, timestamp: float) -> bool:
        return self.oldest <= timestamp <= self.latest


class DigestSource(str, Enum):
    AI = "ai"
    FALLBACK = "fallback"


class Digest(BaseModel):
    """Text posted to a channel summarizing the day."""

    model_config = ConfigDict(frozen=True)

    body: str = Field(..., min_length=1)
    source: DigestSource

    @classmethod
    def from_completion(cls, text: str) -> Digest:
        """Wrap model output with the digest heading."""
        return cls(body=f"{DIGEST_HEADING}\n\n{text.strip()}", source=DigestSource.AI)

    @classmethod
    def fallback(cls, messages: Sequence[SlackMessage]) -> Digest:
        """Build the statistical digest used when no model output is available.

        Recent messages are the newest three by timestamp. ``sorted`` is stable
        under ``reverse=True``, so equal timestamps keep their original order.
        Authors are rendered as raw ``<@user_id>`` mentions.
        """
        user_count = len({m.user_id for m in messages})
        lines = [
            DIGEST_HEADING,
            f"Total messages today: {len(messages)}",
            f"Active users: {user_count}",
            "",
        ]

        recent = sorted(messages, key=lambda m: m.timestamp, reverse=True)
        recent = recent[:RECENT_MESSAGE_LIMIT]
        if recent:
            lines.append("*Recent messages:*")
            for message in recent:
                lines.append(
                    f"• [{format_clock(message.timestamp)}] "
                    f"<@{message.user_id}>: {message.text}"
                )

        return cls(body="\n".join(lines), source=DigestSource.FALLBACK)


class ChannelStatus(str, Enum):
    POSTED = "posted"
    EMPTY = "empty"
    SKIPPED = "skipped"
    FAILED = "failed"


class ChannelOutcome(BaseModel):
    """What happened to one channel during a run."""

    channel_id: str
    channel_name: str = ""
    status: ChannelStatus
    message_count: int = 0
    digest_source: DigestSource | None = None
    error: str | None = None


class PipelineRunResult(BaseModel):
    """Per-run outcome used for logging only; never persisted."""

    started_at: datetime = Field(default_factory=datetime.now)
    finished_at: datetime | None = None
    channels: list[ChannelOutcome] = Field(default_factory=list)
    fatal_error: str | None = None

    @property
    def ok(self) -> bool:
        return self.fatal_error is None

    @property
    def posted_count(self) -> int:
        return sum(1 for c in self.channels if c.status is ChannelStatus.POSTED)

    @property
    def failed_count(self) -> int:
        return sum(1 for c in self.channels if c.status is ChannelStatus.FAILED)

    @property
    def message_count(self) -> int:
        return sum(c.message_count for c in self.channels)

    def summary(self) -> str:
        if not self.ok:
            return f"Run failed: {self.fatal_error}"
        return (
            f"Processed {len(self.channels)} channels: {self.posted_count} posted, "
            f"{self.failed_count} failed, {self.message_count} messages"
        )
