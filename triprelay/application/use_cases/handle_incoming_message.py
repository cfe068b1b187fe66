from __future__ import annotations

import dataclasses
import logging
from collections import deque

from triprelay.application.use_cases.message_batcher import MessageBatcher
from triprelay.application.utils.identity import resolve_display_name
from triprelay.domain.entities.message import ChatMessage

MAX_SEEN_MESSAGE_IDS = 2000


class HandleIncomingMessageUseCase:
    def __init__(
        self,
        batcher: MessageBatcher,
        name_overrides: dict[str, str] | None = None,
        self_id: str | None = None,
    ) -> None:
        self._batcher = batcher
        self._name_overrides = dict(name_overrides or {})
        self._self_id = self_id
        self._seen: set[str] = set()
        self._seen_order: deque[str] = deque()
        self._logger = logging.getLogger(__name__)

    def handle(self, message: ChatMessage) -> bool:
        """Queue a message for batching. Returns True if it was buffered."""
        if self._remember(message.id):
            self._logger.info("Duplicate message ignored", extra={"event": "duplicate_ignored", "chat_id": message.chat_id})
            return False

        if self._self_id and message.sender_id == self._self_id:
            return False

        if not message.text.strip():
            return False

        name = resolve_display_name(message.sender_id, message.sender_name, self._name_overrides)
        if name != message.sender_name:
            message = dataclasses.replace(message, sender_name=name)

        self._logger.info(
            "Message received",
            extra={"event": "message_received", "chat_id": message.chat_id},
        )
        return self._batcher.add(message)

    def _remember(self, message_id: str) -> bool:
        """Record a message id; True if it was already seen."""
        if not message_id:
            return False
        if message_id in self._seen:
            return True
        self._seen.add(message_id)
        self._seen_order.append(message_id)
        while len(self._seen_order) > MAX_SEEN_MESSAGE_IDS:
            self._seen.discard(self._seen_order.popleft())
        return False
