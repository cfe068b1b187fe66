from __future__ import annotations

import logging

from triprelay.application.exceptions import ChatPlatformError
from triprelay.application.ports.chat_platform import ChatPlatformPort
from triprelay.domain.entities.chat import ChatInfo, Participant


class MockChatPlatform(ChatPlatformPort):
    """In-memory chat platform: chats are registered up front, sends are recorded."""

    def __init__(self, self_id: str | None = "bot@c.us") -> None:
        self._self_id = self_id
        self._chats: dict[str, ChatInfo] = {}
        self.sent: list[tuple[str, str]] = []
        self._logger = logging.getLogger(__name__)

    @property
    def self_id(self) -> str | None:
        return self._self_id

    def add_chat(self, chat: ChatInfo) -> None:
        self._chats[chat.id] = chat

    def ensure_participant(self, chat_id: str, member_id: str, username: str | None = None) -> None:
        """Register a chat on first sight and add senders as they appear."""
        chat = self._chats.get(chat_id) or ChatInfo(id=chat_id, name=chat_id, is_group=True)
        if any(p.id == member_id for p in chat.participants):
            self._chats[chat_id] = chat
            return
        participants = chat.participants + (Participant(id=member_id, username=username),)
        self._chats[chat_id] = ChatInfo(id=chat.id, name=chat.name, is_group=chat.is_group, participants=participants)

    async def start_session(self, headless: bool) -> None:
        self._logger.info("Mock chat session started", extra={"event": "session_started"})

    async def get_chat(self, chat_id: str) -> ChatInfo:
        chat = self._chats.get(chat_id)
        if chat is None:
            raise ChatPlatformError(f"Chat not found: {chat_id}")
        return chat

    async def send_text(self, chat_id: str, text: str) -> None:
        self.sent.append((chat_id, text))
        self._logger.info("Mock send to chat", extra={"chat_id": chat_id, "reason": text})
