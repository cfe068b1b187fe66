from __future__ import annotations

import logging

from triprelay.application.exceptions import ChatPlatformError
from triprelay.application.ports.chat_platform import ChatPlatformPort
from triprelay.application.ports.orchestrator import OrchestratorPort
from triprelay.application.services.state_store import StateStore
from triprelay.application.use_cases.apply_response import ApplyResponseUseCase
from triprelay.application.use_cases.build_payload import PayloadBuilder
from triprelay.domain.entities.batch import Batch


class ProcessBatchUseCase:
    """One batch cycle: load state, build payload, call orchestrator, apply the answer."""

    def __init__(
        self,
        store: StateStore,
        platform: ChatPlatformPort,
        builder: PayloadBuilder,
        orchestrator: OrchestratorPort,
        apply_response: ApplyResponseUseCase,
    ) -> None:
        self._store = store
        self._platform = platform
        self._builder = builder
        self._orchestrator = orchestrator
        self._apply_response = apply_response
        self._logger = logging.getLogger(__name__)

    async def execute(self, batch: Batch) -> None:
        if not batch.messages:
            self._logger.info("Empty batch skipped", extra={"event": "empty_batch_skipped", "chat_id": batch.chat_id})
            return

        try:
            chat = await self._platform.get_chat(batch.chat_id)
        except ChatPlatformError as e:
            self._logger.error(
                "Could not look up chat; batch skipped",
                extra={"event": "chat_lookup_failed", "chat_id": batch.chat_id, "error": str(e)},
            )
            return

        group_state = self._store.load_group(chat.id)
        members = self._store.load_members(chat.id, chat.participants, self_id=self._platform.self_id)

        payload = self._builder.build(batch, group_state, members, chat)

        envelope = await self._orchestrator.send(payload)
        if envelope is None:
            self._logger.warning(
                "No data from orchestrator; skipping send",
                extra={"event": "orchestrator_no_data", "chat_id": chat.id, "message_count": len(batch.messages)},
            )
            return

        await self._apply_response.apply(envelope, chat.id)
