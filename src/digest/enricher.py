"""Attach display names to messages using the workspace user directory."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence

from models import EnrichedMessage, SlackMessage, SlackUser

logger = logging.getLogger(__name__)


def index_users(users: Iterable[SlackUser]) -> dict[str, str]:
    """Map user ID to name. The first entry wins on duplicate IDs."""
    user_map: dict[str, str] = {}
    for user in users:
        user_map.setdefault(user.id, user.name)
    return user_map


def enrich_messages(
    messages: Sequence[SlackMessage], users: Iterable[SlackUser]
) -> list[EnrichedMessage]:
    """Return copies of ``messages`` with ``display_name`` filled in where known."""
    user_map = index_users(users)
    enriched: list[EnrichedMessage] = []
    unresolved: set[str] = set()

    for message in messages:
        display_name = user_map.get(message.user_id)
        if display_name is None:
            unresolved.add(message.user_id)
        enriched.append(
            EnrichedMessage(
                **message.model_dump(exclude={"display_name"}),
                display_name=display_name,
            )
        )

    if unresolved:
        logger.debug(f"No display name for users: {', '.join(sorted(unresolved))}")
    return enriched
