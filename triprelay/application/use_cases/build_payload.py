from __future__ import annotations

import json
from collections.abc import Callable, Sequence
from typing import Any
from zoneinfo import ZoneInfo

from triprelay.application.utils.date_format import format_date_ddmmyyyy, now_ms
from triprelay.domain.entities.batch import Batch
from triprelay.domain.entities.chat import ChatInfo
from triprelay.domain.entities.group_state import GroupState
from triprelay.domain.entities.member_state import MemberState
from triprelay.domain.entities.message import ChatMessage


class PayloadBuilder:
    def __init__(
        self,
        timezone: ZoneInfo,
        include_chat_id: bool = False,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self._timezone = timezone
        self._include_chat_id = include_chat_id
        self._clock = clock

    def build(
        self,
        batch: Batch,
        group_state: GroupState | dict[str, Any] | None,
        members: Sequence[MemberState] | None,
        chat: ChatInfo,
        now_ms: int | None = None,
    ) -> dict[str, Any]:
        """Assemble the orchestrator request body for one batch.

        State is cloned through a JSON round trip, so the payload shares no
        mutable objects with the caller's state.
        """
        timestamp = now_ms if now_ms is not None else self._clock()
        return {
            "messages": [self._message_entry(message) for message in batch.messages],
            "group": _clone(group_state or {}),
            "members": _clone(list(members or [])),
            "meta": {
                "groupName": chat.name,
                "groupId": chat.id,
                "timestamp": timestamp,
                "dateStr": format_date_ddmmyyyy(timestamp, self._timezone),
            },
        }

    def _message_entry(self, message: ChatMessage) -> dict[str, Any]:
        entry: dict[str, Any] = {"message": message.text, "senderName": message.sender_name}
        if self._include_chat_id:
            entry["chatId"] = message.chat_id
        return entry


def _clone(value: Any) -> Any:
    return json.loads(json.dumps(value))
