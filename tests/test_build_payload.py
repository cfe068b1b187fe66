from __future__ import annotations

from zoneinfo import ZoneInfo

from conftest import FIXED_NOW_MS, GROUP_ID, make_message
from triprelay.application.use_cases.build_payload import PayloadBuilder
from triprelay.domain.entities.batch import Batch
from triprelay.domain.entities.group_state import default_group_state
from triprelay.domain.entities.member_state import default_member_state


def _builder(include_chat_id: bool = False) -> PayloadBuilder:
    return PayloadBuilder(timezone=ZoneInfo("Asia/Kolkata"), include_chat_id=include_chat_id, clock=lambda: FIXED_NOW_MS)


def test_payload_shape(group_chat):
    batch = Batch(
        chat_id=GROUP_ID,
        messages=(make_message("goa?", sender_name="Krishna"), make_message("yes!", sender_name=None)),
    )
    group = default_group_state(FIXED_NOW_MS)
    members = [default_member_state("919573838939@c.us", "Krishna", FIXED_NOW_MS)]

    payload = _builder().build(batch, group, members, group_chat)

    assert payload["messages"] == [
        {"message": "goa?", "senderName": "Krishna"},
        {"message": "yes!", "senderName": None},
    ]
    assert payload["group"] == group
    assert payload["members"] == members
    assert payload["meta"] == {
        "groupName": "Goa Trip",
        "groupId": GROUP_ID,
        "timestamp": FIXED_NOW_MS,
        "dateStr": "09-10-2025",
    }


def test_chat_id_is_optional(group_chat):
    batch = Batch(chat_id=GROUP_ID, messages=(make_message("hi"),))

    payload = _builder(include_chat_id=True).build(batch, {}, [], group_chat)

    assert payload["messages"] == [{"message": "hi", "senderName": "Asha", "chatId": GROUP_ID}]


def test_payload_does_not_share_state_objects(group_chat):
    group = default_group_state(FIXED_NOW_MS)
    members = [default_member_state("m1", "A", FIXED_NOW_MS)]
    batch = Batch(chat_id=GROUP_ID, messages=(make_message("hi"),))

    payload = _builder().build(batch, group, members, group_chat)
    payload["group"]["consensus"]["status"] = "agreed"
    payload["group"]["notes"].append("changed")
    payload["members"][0]["preferences"]["activities"].append("surfing")

    assert group["consensus"]["status"] == "unknown"
    assert group["notes"] == []
    assert members[0]["preferences"]["activities"] == []


def test_missing_state_becomes_empty(group_chat):
    batch = Batch(chat_id=GROUP_ID, messages=(make_message("hi"),))

    payload = _builder().build(batch, None, None, group_chat, now_ms=0)

    assert payload["group"] == {}
    assert payload["members"] == []
    assert payload["meta"]["dateStr"] == "01-01-1970"
