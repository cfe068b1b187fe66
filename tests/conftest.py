"""
Shared fixtures: a manually driven timer for the batcher, in-memory stores and a mock chat.
"""

from __future__ import annotations

import asyncio
import itertools

import pytest

from triprelay.application.services.state_store import StateStore
from triprelay.core.config import settings
from triprelay.domain.entities.chat import ChatInfo, Participant
from triprelay.domain.entities.message import ChatMessage
from triprelay.infrastructure.chat.mock_platform import MockChatPlatform
from triprelay.infrastructure.store.memory_store import MemoryRecordStore
from triprelay.wiring.dependencies import reset_container

GROUP_ID = "120363025@g.us"
FIXED_NOW_MS = 1_760_000_000_000  # 09-10-2025 in Asia/Kolkata


class ManualTimer:
    """Replacement for asyncio.sleep: every sleep blocks until fire() is called."""

    def __init__(self) -> None:
        self.requested: list[float] = []
        self._waiters: list[asyncio.Future[None]] = []

    async def sleep(self, seconds: float) -> None:
        self.requested.append(seconds)
        future: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        self._waiters.append(future)
        await future

    @property
    def armed(self) -> int:
        return sum(1 for f in self._waiters if not f.done())

    async def settle(self) -> None:
        for _ in range(10):
            await asyncio.sleep(0)

    async def fire(self) -> None:
        """Expire every armed timer and let the woken tasks run."""
        await self.settle()
        waiters, self._waiters = self._waiters, []
        for future in waiters:
            if not future.done():
                future.set_result(None)
        await self.settle()


_ids = itertools.count(1)


def make_message(
    text: str,
    chat_id: str = GROUP_ID,
    sender_id: str = "919000000001@c.us",
    sender_name: str | None = "Asha",
    is_group: bool = True,
) -> ChatMessage:
    return ChatMessage(
        id=f"msg-{next(_ids)}",
        chat_id=chat_id,
        sender_id=sender_id,
        sender_name=sender_name,
        text=text,
        timestamp=1_760_000_000,
        is_group=is_group,
    )


@pytest.fixture
def timer() -> ManualTimer:
    return ManualTimer()


@pytest.fixture
def records() -> MemoryRecordStore:
    return MemoryRecordStore()


@pytest.fixture
def state_store(records: MemoryRecordStore) -> StateStore:
    return StateStore(
        records=records,
        name_overrides={"919573838939@c.us": "Krishna"},
        clock=lambda: FIXED_NOW_MS,
    )


@pytest.fixture
def group_chat() -> ChatInfo:
    return ChatInfo(
        id=GROUP_ID,
        name="Goa Trip",
        is_group=True,
        participants=(
            Participant(id="918965012692@c.us", username="tripbot", is_me=True),
            Participant(id="919573838939@c.us", username="krish"),
            Participant(id="917013614596@c.us", username="vamshi"),
        ),
    )


@pytest.fixture
def platform(group_chat: ChatInfo) -> MockChatPlatform:
    mock = MockChatPlatform(self_id="918965012692@c.us")
    mock.add_chat(group_chat)
    return mock


@pytest.fixture
def container(monkeypatch, tmp_path):
    """Point the real wiring at in-memory, offline collaborators."""
    monkeypatch.setattr(settings, "ENV", "test")
    monkeypatch.setattr(settings, "CHAT_GATEWAY_URL", None)
    monkeypatch.setattr(settings, "STORE_PROVIDER", "memory")
    monkeypatch.setattr(settings, "ORCHESTRATOR_PROVIDER", "mock")
    monkeypatch.setattr(settings, "BATCH_WINDOW_MS", 60_000)
    monkeypatch.setattr(settings, "BATCH_SCOPE", "chat")
    monkeypatch.setattr(settings, "DATA_DIR", str(tmp_path))
    reset_container()
    yield
    reset_container()
