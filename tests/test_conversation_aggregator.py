import logging
import random

import pytest

from fakes import at, make_message
from rental_messages.exceptions import MalformedMessageError
from rental_messages.services.conversation_aggregator import (
    counterpart_of,
    group_into_conversations,
    mark_conversation_read,
    sort_by_recency,
)


@pytest.fixture
def scenario_messages():
    return [
        make_message("u1", "u2", created_at=1, is_read=True, listing_id="L1"),
        make_message("u2", "u1", created_at=3, is_read=False, listing_id="L1"),
        make_message("u3", "u1", created_at=2, is_read=False, listing_id="L2"),
    ]


def _by_counterpart(conversations):
    return {c["counterpart_id"]: c for c in conversations}


def test_groups_messages_per_counterpart(scenario_messages):
    conversations = _by_counterpart(group_into_conversations(scenario_messages, "u1"))

    assert set(conversations) == {"u2", "u3"}
    assert len(conversations["u2"]["messages"]) == 2
    assert conversations["u2"]["unread_count"] == 1
    assert conversations["u2"]["last_message"]["created_at"] == 3
    assert conversations["u2"]["listing_id"] == "L1"
    assert len(conversations["u3"]["messages"]) == 1
    assert conversations["u3"]["unread_count"] == 1
    assert conversations["u3"]["last_message"]["created_at"] == 2
    assert conversations["u3"]["listing_id"] == "L2"


def test_mark_read_only_affects_that_counterpart(scenario_messages):
    updated = mark_conversation_read(scenario_messages, "u1", "u2")
    conversations = _by_counterpart(group_into_conversations(scenario_messages, "u1"))

    assert updated == 1
    assert conversations["u2"]["unread_count"] == 0
    assert conversations["u3"]["unread_count"] == 1


def test_mark_read_is_idempotent(scenario_messages):
    assert mark_conversation_read(scenario_messages, "u1", "u3") == 1
    assert mark_conversation_read(scenario_messages, "u1", "u3") == 0


def test_mark_read_ignores_messages_sent_by_user(scenario_messages):
    # u1 -> u2 is outgoing; u2 reading it happens from u2's side
    assert mark_conversation_read(scenario_messages, "u2", "u1") == 0


def test_empty_input_yields_no_conversations():
    assert group_into_conversations([], "anyone") == []


def test_sent_messages_do_not_count_as_unread():
    messages = [make_message("me", "them", created_at=at(i), is_read=False) for i in range(3)]
    (conversation,) = group_into_conversations(messages, "me")
    assert conversation["unread_count"] == 0


def test_invariants_hold_for_shuffled_input():
    rng = random.Random(7)
    users = ["a", "b", "c", "d"]
    messages = []
    for i in range(60):
        other = rng.choice(users)
        if rng.random() < 0.5:
            messages.append(make_message("me", other, created_at=at(rng.randint(0, 20)), is_read=rng.random() < 0.5))
        else:
            messages.append(make_message(other, "me", created_at=at(rng.randint(0, 20)), is_read=rng.random() < 0.5))
    rng.shuffle(messages)

    conversations = group_into_conversations(messages, "me")

    assert sum(len(c["messages"]) for c in conversations) == len(messages)
    seen_ids = [m["_id"] for c in conversations for m in c["messages"]]
    assert sorted(seen_ids) == sorted(m["_id"] for m in messages)
    for c in conversations:
        times = [m["created_at"] for m in c["messages"]]
        assert times == sorted(times)
        assert c["last_message"]["created_at"] == max(times)
        assert c["unread_count"] == sum(1 for m in c["messages"] if m["recipient_id"] == "me" and not m["is_read"])
        assert all(c["counterpart_id"] in (m["sender_id"], m["recipient_id"]) for m in c["messages"])


def test_sort_is_stable_for_equal_timestamps():
    first = make_message("u2", "u1", created_at=at(5), content="first")
    second = make_message("u1", "u2", created_at=at(5), content="second")
    earlier = make_message("u2", "u1", created_at=at(1), content="earlier")

    (conversation,) = group_into_conversations([first, second, earlier], "u1")

    assert [m["content"] for m in conversation["messages"]] == ["earlier", "first", "second"]
    # a tie does not replace the running last message
    assert conversation["last_message"] is first


def test_missing_timestamp_sorts_first_and_never_wins_last_message():
    undated = make_message("u2", "u1", created_at=None, content="undated")
    dated = make_message("u2", "u1", created_at=at(0), content="dated")

    (conversation,) = group_into_conversations([dated, undated], "u1")

    assert [m["content"] for m in conversation["messages"]] == ["undated", "dated"]
    assert conversation["last_message"] is dated


def test_undated_message_alone_is_last_message():
    undated = make_message("u2", "u1", created_at=None)
    (conversation,) = group_into_conversations([undated], "u1")
    assert conversation["last_message"] is undated


def test_foreign_message_is_skipped_with_warning(caplog):
    messages = [
        make_message("u2", "u1", created_at=at(0)),
        make_message("u2", "u3", created_at=at(1), _id="stray"),
    ]
    with caplog.at_level(logging.WARNING):
        conversations = group_into_conversations(messages, "u1")

    assert len(conversations) == 1
    assert len(conversations[0]["messages"]) == 1
    assert "stray" in caplog.text


def test_foreign_message_raises_in_strict_mode():
    messages = [make_message("u2", "u3", created_at=at(1), _id="stray")]
    with pytest.raises(MalformedMessageError) as exc_info:
        group_into_conversations(messages, "u1", strict=True)
    assert exc_info.value.details == {"message_id": "stray", "user_id": "u1"}


def test_counterpart_of_self_message_is_self():
    assert counterpart_of(make_message("u1", "u1"), "u1") == "u1"


def test_sort_by_recency_puts_latest_first(scenario_messages):
    conversations = sort_by_recency(group_into_conversations(scenario_messages, "u1"))
    assert [c["counterpart_id"] for c in conversations] == ["u2", "u3"]

    scenario_messages.append(make_message("u3", "u1", created_at=9))
    conversations = sort_by_recency(group_into_conversations(scenario_messages, "u1"))
    assert [c["counterpart_id"] for c in conversations] == ["u3", "u2"]


def test_grouping_does_not_mutate_input(scenario_messages):
    snapshot = [dict(m) for m in scenario_messages]
    group_into_conversations(list(reversed(scenario_messages)), "u1")
    assert scenario_messages == snapshot


def test_message_missing_a_participant_is_malformed():
    incomplete = {"_id": "x", "sender_id": "u1", "content": "?", "is_read": False, "created_at": at(0)}
    with pytest.raises(MalformedMessageError):
        counterpart_of(incomplete, "u1")
    assert group_into_conversations([incomplete], "u1") == []
