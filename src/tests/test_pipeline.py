"""End-to-end tests for the digest pipeline against in-memory fakes."""

from datetime import date
from unittest.mock import MagicMock
from urllib.error import URLError

from digest.composer import DigestComposer
from digest.pipeline import PipelineRunner
from models import ChannelStatus, DayWindow, DigestSource, SlackChannel, SlackUser
from slack_client.client import SlackClient

TODAY = date(2024, 3, 5)


def _runner(platform, provider, **kwargs) -> PipelineRunner:
    return PipelineRunner(
        platform, DigestComposer(provider), clock=lambda: TODAY, **kwargs
    )


def _single_channel_platform(make_platform, msg):
    return make_platform(
        channels=[SlackChannel(id="C1", name="general", is_member=True)],
        users=[SlackUser(id="U1", name="alice")],
        messages={"C1": [msg("U1", "hi", "1000.0")]},
    )


def test_ai_digest_posted(make_platform, make_provider, msg) -> None:
    platform = _single_channel_platform(make_platform, msg)
    provider = make_provider("Topic X discussed.")

    result = _runner(platform, provider).run()

    assert result.ok
    assert len(platform.posted) == 1
    channel_id, text = platform.posted[0]
    assert channel_id == "C1"
    assert text.startswith("*Daily Summary*\n\nTopic X discussed.")
    assert "User alice: hi" in provider.prompts[0]
    assert result.channels[0].status is ChannelStatus.POSTED
    assert result.channels[0].digest_source is DigestSource.AI
    assert result.channels[0].message_count == 1


def test_provider_failure_posts_fallback(
    make_platform, make_provider, msg, completion_error
) -> None:
    platform = _single_channel_platform(make_platform, msg)

    result = _runner(platform, make_provider(completion_error)).run()

    assert result.ok
    [(_, text)] = platform.posted
    assert "Total messages today: 1" in text
    assert "Active users: 1" in text
    assert result.channels[0].digest_source is DigestSource.FALLBACK


def test_channel_listing_failure_is_fatal(
    make_platform, make_provider, msg, platform_error
) -> None:
    platform = _single_channel_platform(make_platform, msg)
    platform.channel_error = platform_error("conversations.list", "invalid_auth")

    result = _runner(platform, make_provider("unused")).run()

    assert not result.ok
    assert "invalid_auth" in result.fatal_error
    assert result.channels == []
    assert platform.posted == []
    assert result.finished_at is not None


def test_only_channels_with_messages_get_a_post(
    make_platform, make_provider, msg
) -> None:
    platform = make_platform(
        channels=[
            SlackChannel(id="C1", name="busy", is_member=True),
            SlackChannel(id="C2", name="quiet", is_member=True),
        ],
        users=[SlackUser(id="U1", name="alice")],
        messages={"C1": [msg("U1", "hi", "1000.0")], "C2": []},
    )

    result = _runner(platform, make_provider("summary")).run()

    assert [c for c, _ in platform.posted] == ["C1"]
    assert [c.status for c in result.channels] == [
        ChannelStatus.POSTED,
        ChannelStatus.EMPTY,
    ]


def test_history_failure_does_not_stop_other_channels(
    make_platform, make_provider, msg, platform_error
) -> None:
    platform = make_platform(
        channels=[
            SlackChannel(id="C1", name="broken", is_member=True),
            SlackChannel(id="C2", name="fine", is_member=True),
        ],
        messages={"C2": [msg("U9", "still here", "1000.0")]},
    )
    platform.history_errors["C1"] = platform_error(
        "conversations.history", "not_in_channel"
    )

    result = _runner(platform, make_provider("summary")).run()

    assert result.ok
    assert [c for c, _ in platform.posted] == ["C2"]
    assert result.channels[0].status is ChannelStatus.FAILED
    assert result.channels[0].error == "not_in_channel"
    assert result.failed_count == 1
    assert result.posted_count == 1


def test_delivery_failure_is_recorded(make_platform, make_provider, msg) -> None:
    platform = _single_channel_platform(make_platform, msg)
    platform.failing_posts.add("C1")

    result = _runner(platform, make_provider("summary")).run()

    assert result.ok
    assert result.channels[0].status is ChannelStatus.FAILED
    assert result.channels[0].message_count == 1


def test_channel_without_id_is_skipped(make_platform, make_provider, msg) -> None:
    platform = make_platform(
        channels=[
            SlackChannel(id="", name="ghost", is_member=True),
            SlackChannel(id="C1", name="general", is_member=True),
        ],
        messages={"C1": [msg("U1", "hi", "1000.0")]},
    )

    result = _runner(platform, make_provider("summary")).run()

    assert [c for c, _ in platform.posted] == ["C1"]
    assert result.channels[0].status is ChannelStatus.SKIPPED
    assert len(platform.windows) == 1


def test_user_listing_failure_is_fatal_by_default(
    make_platform, make_provider, msg, platform_error
) -> None:
    platform = _single_channel_platform(make_platform, msg)
    platform.user_error = platform_error("users.list", "ratelimited")

    result = _runner(platform, make_provider("summary")).run()

    assert not result.ok
    assert platform.posted == []


def test_user_listing_failure_can_be_tolerated(
    make_platform, make_provider, msg, platform_error
) -> None:
    platform = _single_channel_platform(make_platform, msg)
    platform.user_error = platform_error("users.list", "ratelimited")
    provider = make_provider("summary")

    result = _runner(platform, provider, tolerate_missing_users=True).run()

    assert result.ok
    assert len(platform.posted) == 1
    assert "User U1: hi" in provider.prompts[0]


def test_messages_requested_for_today(make_platform, make_provider, msg) -> None:
    platform = _single_channel_platform(make_platform, msg)

    _runner(platform, make_provider("summary")).run()

    assert platform.windows == [DayWindow.for_date(TODAY)]


def test_summary_line(make_platform, make_provider, msg) -> None:
    platform = _single_channel_platform(make_platform, msg)

    result = _runner(platform, make_provider("summary")).run()

    assert result.summary() == (
        "Processed 1 channels: 1 posted, 0 failed, 1 messages"
    )


def test_user_transport_failure_degrades_when_tolerated(make_provider) -> None:
    web = MagicMock()
    web.conversations_list.return_value = {
        "ok": True,
        "channels": [{"id": "C1", "name": "general", "is_member": True}],
    }
    web.users_list.side_effect = URLError("connection refused")
    web.conversations_history.return_value = {
        "ok": True,
        "messages": [{"user": "U1", "text": "hi", "ts": "1000.0"}],
        "has_more": False,
    }
    web.chat_postMessage.return_value = {"ok": True}
    provider = make_provider("summary")

    result = _runner(
        SlackClient(token="", web_client=web), provider, tolerate_missing_users=True
    ).run()

    assert result.ok
    assert result.posted_count == 1
    assert "User U1: hi" in provider.prompts[0]
