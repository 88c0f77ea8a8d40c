from datetime import UTC, datetime

import pytest

from activity_ledger.api.schemas.events import ChatMessage
from activity_ledger.api.schemas.ingestion import PendingMessageRecord
from activity_ledger.core.exceptions import MalformedEvent
from activity_ledger.normalizers.chat import (
    eod_activity,
    group_messages_by_day,
    is_valid_eod_message,
    message_id_from_ts,
    pending_messages_from_chat,
)


def chat(**overrides) -> dict:
    message = {
        "type": "message",
        "user": "U123",
        "text": "Finished the ledger migration",
        "ts": "1715342400.123456",
    }
    message.update(overrides)
    return message


class TestEodFilter:
    """Tests for which chat messages qualify as daily updates."""

    def test_plain_message_qualifies(self) -> None:
        assert is_valid_eod_message(ChatMessage(**chat()))

    @pytest.mark.parametrize(
        "overrides",
        [
            {"subtype": "channel_join"},
            {"bot_id": "B1"},
            {"user": None},
            {"type": "reaction_added"},
            {"text": "  +1   "},
            {"text": "12345"},
            {"text": None},
        ],
    )
    def test_non_updates_rejected(self, overrides: dict) -> None:
        assert not is_valid_eod_message(ChatMessage(**chat(**overrides)))

    def test_threshold_is_configurable(self) -> None:
        message = ChatMessage(**chat(text="done!!"))
        assert is_valid_eod_message(message)
        assert not is_valid_eod_message(message, min_length=10)


class TestStaging:
    """Tests for turning chat messages into staged records."""

    def test_id_and_timestamp_from_ts(self) -> None:
        batch = pending_messages_from_chat([chat()])

        staged = batch.messages[0]
        assert staged.id == 1715342400123
        assert staged.timestamp == datetime(2024, 5, 10, 12, 0, 0, 123456, tzinfo=UTC)
        assert staged.author_alias == "U123"

    def test_text_is_trimmed(self) -> None:
        batch = pending_messages_from_chat([chat(text="  shipped the release  ")])
        assert batch.messages[0].text == "shipped the release"

    def test_counts_discarded_and_malformed(self) -> None:
        batch = pending_messages_from_chat(
            [chat(), chat(text="ok"), chat(ts="not-a-ts"), {"type": "message"}]
        )
        assert len(batch.messages) == 1
        assert batch.discarded == 1
        assert len(batch.malformed) == 2

    def test_invalid_ts_raises(self) -> None:
        with pytest.raises(MalformedEvent):
            message_id_from_ts("yesterday")

    @pytest.mark.parametrize("ts", ["NaN", "Infinity"])
    def test_non_finite_ts_raises(self, ts: str) -> None:
        with pytest.raises(MalformedEvent):
            message_id_from_ts(ts)

    def test_unrepresentable_ts_drops_only_that_message(self) -> None:
        batch = pending_messages_from_chat([chat(), chat(ts="NaN"), chat(ts="1e20")])

        assert [m.id for m in batch.messages] == [1715342400123]
        assert [e.event_id for e in batch.malformed] == ["NaN", "1e20"]


class TestEodActivity:
    """Tests for building daily update activities."""

    def test_groups_by_utc_day(self) -> None:
        messages = [
            PendingMessageRecord(
                id=1,
                author_alias="U1",
                timestamp=datetime(2024, 5, 10, 23, 30, tzinfo=UTC),
                text="late",
            ),
            PendingMessageRecord(
                id=2,
                author_alias="U1",
                timestamp=datetime(2024, 5, 11, 0, 30, tzinfo=UTC),
                text="early",
            ),
        ]
        by_day = group_messages_by_day(messages)
        assert list(by_day) == ["2024-05-10", "2024-05-11"]

    def test_eod_activity(self) -> None:
        activity = eod_activity(
            contributor="alice",
            day="2024-05-10",
            texts=["a", "b"],
            occurred_at=datetime(2024, 5, 10, 9, 0, tzinfo=UTC),
        )
        assert activity.slug == "eod_update_2024-05-10_alice"
        assert activity.activity_definition == "eod_update"
        assert activity.text == "a\n\nb"
        assert activity.meta.platform == "slack"
        assert activity.meta.date == "2024-05-10"
