from __future__ import annotations

import asyncio
import contextlib
import functools
import logging
from collections.abc import Awaitable, Callable
from enum import Enum

from triprelay.domain.entities.batch import Batch
from triprelay.domain.entities.message import ChatMessage

BatchHandler = Callable[[Batch], Awaitable[None]]
SleepFn = Callable[[float], Awaitable[None]]

GLOBAL_SESSION_KEY = "*"


class BatchScope(str, Enum):
    chat = "chat"  # one window per chat, replies go back to that chat
    global_ = "global"  # one window for every chat, replies go to the last group seen


class BatchSession:
    """Fixed-window buffer for one key.

    Idle until the first message arrives; that message starts the window timer.
    Later messages only append, they never push the deadline back. When the
    window closes the buffer is handed off and cleared, and the session stays
    busy until the handler returns, so cycles never overlap. Messages that
    arrive during a cycle open the next window as soon as it finishes.
    """

    def __init__(
        self,
        key: str,
        window_seconds: float,
        on_expiry: Callable[[list[ChatMessage]], Awaitable[None]],
        on_idle: Callable[[str], None] | None = None,
        sleep: SleepFn = asyncio.sleep,
    ) -> None:
        self.key = key
        self._window_seconds = window_seconds
        self._on_expiry = on_expiry
        self._on_idle = on_idle
        self._sleep = sleep
        self._buffer: list[ChatMessage] = []
        self._timer: asyncio.Task[None] | None = None
        self._logger = logging.getLogger(__name__)

    @property
    def is_collecting(self) -> bool:
        return self._timer is not None

    @property
    def pending(self) -> int:
        return len(self._buffer)

    def add(self, message: ChatMessage) -> None:
        self._buffer.append(message)
        if self._timer is None:
            self._timer = asyncio.create_task(self._run_windows(), name=f"batch-window:{self.key}")
            self._logger.debug("Batch window opened", extra={"event": "window_opened", "chat_id": self.key})

    async def wait(self) -> None:
        """Wait until the session is idle again."""
        while self._timer is not None:
            await asyncio.wait({self._timer})

    async def cancel(self) -> int:
        """Stop the timer and drop buffered messages. Returns how many were dropped."""
        dropped = len(self._buffer)
        timer = self._timer
        if timer is not None:
            timer.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await timer
        self._buffer.clear()
        return dropped

    async def _run_windows(self) -> None:
        try:
            while True:
                await self._sleep(self._window_seconds)
                messages = self._buffer[:]
                self._buffer.clear()
                if messages:
                    await self._dispatch(messages)
                else:
                    self._logger.info("Empty batch skipped", extra={"event": "empty_batch_skipped", "chat_id": self.key})
                if not self._buffer:
                    return
        finally:
            self._timer = None
            if self._on_idle is not None:
                self._on_idle(self.key)

    async def _dispatch(self, messages: list[ChatMessage]) -> None:
        try:
            await self._on_expiry(messages)
        except Exception as e:
            self._logger.exception(
                "Batch cycle failed",
                extra={"event": "batch_failed", "chat_id": self.key, "message_count": len(messages), "error": str(e)},
            )


class MessageBatcher:
    """Registry of batch sessions, keyed by chat (or a single shared key in global scope)."""

    def __init__(
        self,
        on_batch: BatchHandler,
        window_ms: int = 10000,
        scope: BatchScope | str = BatchScope.chat,
        sleep: SleepFn = asyncio.sleep,
    ) -> None:
        self._on_batch = on_batch
        self._window_seconds = max(0, window_ms) / 1000.0
        self._scope = BatchScope(scope)
        self._sleep = sleep
        self._sessions: dict[str, BatchSession] = {}
        self._last_group_chat_id: str | None = None
        self._logger = logging.getLogger(__name__)

    @property
    def scope(self) -> BatchScope:
        return self._scope

    @property
    def last_group_chat_id(self) -> str | None:
        return self._last_group_chat_id

    def add(self, message: ChatMessage) -> bool:
        """Buffer a message. Returns False when the message is not batched."""
        if self._scope is BatchScope.global_:
            if message.is_group:
                self._last_group_chat_id = message.chat_id
            key = GLOBAL_SESSION_KEY
        else:
            if not message.is_group:
                self._logger.info(
                    "Direct message ignored",
                    extra={"event": "direct_message_ignored", "chat_id": message.chat_id},
                )
                return False
            key = message.chat_id

        session = self._sessions.get(key)
        if session is None:
            session = BatchSession(
                key=key,
                window_seconds=self._window_seconds,
                on_expiry=functools.partial(self._expire, key),
                on_idle=self._discard_if_idle,
                sleep=self._sleep,
            )
            self._sessions[key] = session
        session.add(message)
        return True

    def pending(self, key: str) -> int:
        session = self._sessions.get(self._session_key(key))
        return session.pending if session else 0

    def is_collecting(self, key: str) -> bool:
        session = self._sessions.get(self._session_key(key))
        return bool(session and session.is_collecting)

    def active_sessions(self) -> list[str]:
        return [key for key, session in self._sessions.items() if session.is_collecting]

    async def join(self) -> None:
        """Wait for every open window and in-flight cycle to finish."""
        while self._sessions:
            await asyncio.gather(*(session.wait() for session in list(self._sessions.values())))
            if not any(session.is_collecting for session in self._sessions.values()):
                break

    async def aclose(self) -> None:
        for key, session in list(self._sessions.items()):
            dropped = await session.cancel()
            if dropped:
                self._logger.warning(
                    "Buffered messages dropped on shutdown",
                    extra={"event": "batch_dropped", "chat_id": key, "message_count": dropped},
                )
        self._sessions.clear()

    def _session_key(self, key: str) -> str:
        return GLOBAL_SESSION_KEY if self._scope is BatchScope.global_ else key

    def _discard_if_idle(self, key: str) -> None:
        session = self._sessions.get(key)
        if session is not None and not session.is_collecting and not session.pending:
            del self._sessions[key]

    async def _expire(self, key: str, messages: list[ChatMessage]) -> None:
        target = key if self._scope is BatchScope.chat else self._last_group_chat_id
        if target is None:
            self._logger.warning(
                "No group chat to reply to; batch skipped",
                extra={"event": "batch_without_target", "message_count": len(messages)},
            )
            return
        self._logger.info(
            "Batch window closed",
            extra={"event": "window_closed", "chat_id": target, "message_count": len(messages)},
        )
        await self._on_batch(Batch(chat_id=target, messages=tuple(messages)))
