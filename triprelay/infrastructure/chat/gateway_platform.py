from __future__ import annotations

import logging
from typing import Any

from triprelay.application.exceptions import ChatPlatformError
from triprelay.application.ports.chat_platform import ChatPlatformPort
from triprelay.domain.entities.chat import ChatInfo, Participant
from triprelay.infrastructure.chat.gateway_client import ChatGatewayClient


class GatewayChatPlatform(ChatPlatformPort):
    def __init__(self, client: ChatGatewayClient, self_id: str | None = None) -> None:
        self._client = client
        self._self_id = self_id
        self._logger = logging.getLogger(__name__)

    @property
    def self_id(self) -> str | None:
        return self._self_id

    async def start_session(self, headless: bool) -> None:
        data = await self._client.start_session(headless=headless)
        reported = data.get("selfId")
        if reported and not self._self_id:
            self._self_id = str(reported)
        self._logger.info("Chat session started", extra={"event": "session_started", "reason": self._self_id})

    async def get_chat(self, chat_id: str) -> ChatInfo:
        data = await self._client.get_chat(chat_id)
        if not data.get("id"):
            raise ChatPlatformError(f"Chat not found: {chat_id}")
        return chat_info_from_dict(data)

    async def send_text(self, chat_id: str, text: str) -> None:
        await self._client.send_text(chat_id=chat_id, text=text)

    async def aclose(self) -> None:
        await self._client.aclose()


def chat_info_from_dict(data: dict[str, Any]) -> ChatInfo:
    participants = []
    for raw in data.get("participants") or []:
        if not isinstance(raw, dict) or not raw.get("id"):
            continue
        participants.append(
            Participant(
                id=str(raw["id"]),
                username=raw.get("username") or None,
                is_me=bool(raw.get("isMe", False)),
            )
        )
    return ChatInfo(
        id=str(data["id"]),
        name=str(data.get("name") or data["id"]),
        is_group=bool(data.get("isGroup", True)),
        participants=tuple(participants),
    )
