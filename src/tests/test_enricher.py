"""Tests for attaching display names to messages."""

from digest.enricher import enrich_messages, index_users
from models import SlackMessage, SlackUser


def test_known_user_gets_display_name() -> None:
    messages = [SlackMessage(user_id="U1", text="hi", ts="1000.0")]
    users = [SlackUser(id="U1", name="alice"), SlackUser(id="U2", name="bob")]

    enriched = enrich_messages(messages, users)

    assert len(enriched) == 1
    assert enriched[0].display_name == "alice"
    assert enriched[0].author == "alice"


def test_unknown_user_leaves_display_name_unset() -> None:
    """Unresolved authors are not an error and keep every other field."""
    original = SlackMessage(user_id="U404", text="who am i", ts="1712345678.000200")

    (enriched,) = enrich_messages([original], [SlackUser(id="U1", name="alice")])

    assert enriched.display_name is None
    assert enriched.author == "U404"
    assert enriched.user_id == original.user_id
    assert enriched.text == original.text
    assert enriched.ts == original.ts


def test_order_and_length_preserved() -> None:
    messages = [
        SlackMessage(user_id="U2", text="b", ts="2000.0"),
        SlackMessage(user_id="U1", text="a", ts="1000.0"),
        SlackMessage(user_id="U3", text="c", ts="3000.0"),
    ]
    users = [SlackUser(id="U1", name="alice"), SlackUser(id="U2", name="bob")]

    enriched = enrich_messages(messages, users)

    assert [m.text for m in enriched] == ["b", "a", "c"]
    assert [m.display_name for m in enriched] == ["bob", "alice", None]


def test_empty_directory() -> None:
    messages = [SlackMessage(user_id="U1", text="hi", ts="1000.0")]
    assert enrich_messages(messages, [])[0].display_name is None


def test_index_users_first_entry_wins() -> None:
    users = [SlackUser(id="U1", name="alice"), SlackUser(id="U1", name="imposter")]
    assert index_users(users) == {"U1": "alice"}
