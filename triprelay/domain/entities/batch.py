from __future__ import annotations

from dataclasses import dataclass, field

from triprelay.domain.entities.message import ChatMessage


@dataclass(frozen=True)
class Batch:
    chat_id: str  # reply target
    messages: tuple[ChatMessage, ...] = field(default_factory=tuple)

    def __len__(self) -> int:
        return len(self.messages)
