"""Turn a day's messages into the digest text posted back to the channel."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from completion.base import CompletionError, CompletionProvider
from models import Digest, EnrichedMessage, format_clock

logger = logging.getLogger(__name__)

PROMPT_TEMPLATE = """\
Below are today's messages from a Slack channel. Write a summary of these messages.
Keep the summary concise, cover the main topics and points that were discussed, and
format it using Slack markup (mrkdwn).

{transcript}"""


def build_transcript(messages: Sequence[EnrichedMessage]) -> str:
    """One line per message, oldest first, in local time."""
    ordered = sorted(messages, key=lambda m: m.timestamp)
    return "\n".join(
        f"[{format_clock(m.timestamp)}] User {m.author}: {m.text}" for m in ordered
    )


def build_prompt(messages: Sequence[EnrichedMessage]) -> str:
    return PROMPT_TEMPLATE.format(transcript=build_transcript(messages))


class DigestComposer:
    """Builds a digest with the configured provider, falling back to plain stats.

    ``compose`` never raises: provider errors and blank output both produce the
    deterministic digest. The provider is called at most once per digest.
    """

    def __init__(self, provider: CompletionProvider) -> None:
        self.provider = provider

    def compose(self, messages: Sequence[EnrichedMessage]) -> Digest:
        if not messages:
            return Digest.fallback(messages)

        prompt = build_prompt(messages)
        try:
            text = self.provider.complete(prompt)
        except CompletionError as e:
            logger.warning(f"Completion failed, using fallback digest: {e}")
            return Digest.fallback(messages)
        except Exception:
            logger.exception("Unexpected error from completion provider")
            return Digest.fallback(messages)

        if not text or not text.strip():
            logger.info("Completion was empty, using fallback digest")
            return Digest.fallback(messages)

        return Digest.from_completion(text)
