from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class Participant:
    id: str
    username: str | None = None
    is_me: bool = False


@dataclass(frozen=True)
class ChatInfo:
    id: str
    name: str
    is_group: bool = True
    participants: tuple[Participant, ...] = field(default_factory=tuple)
