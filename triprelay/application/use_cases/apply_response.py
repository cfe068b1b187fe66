from __future__ import annotations

import asyncio
import logging
import random
from collections.abc import Awaitable, Callable

from triprelay.application.ports.chat_platform import ChatPlatformPort
from triprelay.application.services.state_store import StateStore
from triprelay.application.utils.message_rules import is_skip_response, reply_text
from triprelay.domain.entities.envelope import ResponseEnvelope


class ApplyResponseUseCase:
    def __init__(
        self,
        store: StateStore,
        platform: ChatPlatformPort,
        reply_enabled: bool = True,
        reply_delay_ms: tuple[int, int] = (0, 0),
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._store = store
        self._platform = platform
        self._reply_enabled = reply_enabled
        self._reply_delay_ms = reply_delay_ms
        self._sleep = sleep
        self._logger = logging.getLogger(__name__)

    async def apply(self, envelope: ResponseEnvelope, chat_id: str) -> bool:
        """Persist returned state, then post the reply. Returns True if a reply was sent.

        The two effects are independent: a failed save does not stop the
        reply and a failed reply does not undo the save.
        """
        if envelope.updated is not None:
            try:
                self._store.apply_updates(chat_id, envelope.updated)
            except Exception as e:
                self._logger.exception(
                    "Failed to persist updated states",
                    extra={"event": "state_save_failed", "group_id": chat_id, "error": str(e)},
                )

        if is_skip_response(envelope.response):
            self._logger.info("Orchestrator said skip", extra={"event": "reply_skipped", "chat_id": chat_id, "reason": "skip"})
            return False

        text = reply_text(envelope.response)
        if text is None:
            self._logger.info(
                "No reply text in response",
                extra={"event": "reply_skipped", "chat_id": chat_id, "reason": "empty"},
            )
            return False

        if not self._reply_enabled:
            self._logger.info("WOULD_SEND_REPLY", extra={"chat_id": chat_id, "text": text})
            self._logger.info("REPLY_ENABLED=false -> skipping send")
            return False

        await self._human_delay()
        try:
            await self._platform.send_text(chat_id, text)
        except Exception as e:
            self._logger.error(
                "Failed to send reply",
                extra={"event": "reply_failed", "chat_id": chat_id, "error": str(e)},
            )
            return False

        self._logger.info("Reply sent", extra={"event": "reply_sent", "chat_id": chat_id})
        return True

    async def _human_delay(self) -> None:
        low, high = self._reply_delay_ms
        if high <= 0:
            return
        low = max(0, min(low, high))
        await self._sleep(random.randint(low, high) / 1000.0)
