from dataclasses import dataclass


@dataclass(frozen=True)
class ChatMessage:
    id: str
    chat_id: str
    sender_id: str
    sender_name: str | None
    text: str
    timestamp: int
    is_group: bool
