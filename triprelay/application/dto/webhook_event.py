from __future__ import annotations

import time
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from triprelay.application.utils.message_rules import is_group_chat_id
from triprelay.domain.entities.message import ChatMessage


class InboundMessageDTO(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str | None = None
    chat_id: str | None = Field(default=None, alias="chatId")
    sender_id: str | None = Field(default=None, alias="senderId")
    sender_name: str | None = Field(default=None, alias="senderName")
    body: str | None = None
    timestamp: int | None = None
    is_group: bool | None = Field(default=None, alias="isGroup")
    from_me: bool = Field(default=False, alias="fromMe")


class ChatWebhookEventDTO(BaseModel):
    messages: list[InboundMessageDTO] = Field(default_factory=list)

    @classmethod
    def from_payload(cls, payload: Any) -> "ChatWebhookEventDTO":
        """Accept {"messages": [...]}, a bare list, or a single message object."""
        if isinstance(payload, list):
            return cls.model_validate({"messages": payload})
        if isinstance(payload, dict) and "messages" not in payload:
            return cls.model_validate({"messages": [payload]})
        return cls.model_validate(payload)

    def extract_messages(self) -> list[ChatMessage]:
        messages: list[ChatMessage] = []
        for msg in self.messages:
            if msg.from_me:
                continue
            if not (msg.chat_id and msg.body):
                continue

            is_group = msg.is_group if msg.is_group is not None else is_group_chat_id(msg.chat_id)
            messages.append(
                ChatMessage(
                    id=str(msg.id or ""),
                    chat_id=str(msg.chat_id),
                    sender_id=str(msg.sender_id or msg.chat_id),
                    sender_name=msg.sender_name or None,
                    text=str(msg.body),
                    timestamp=int(msg.timestamp if msg.timestamp is not None else time.time()),
                    is_group=is_group,
                )
            )
        return messages
