from __future__ import annotations

import logging
from typing import Any

from triprelay.application.ports.orchestrator import OrchestratorPort
from triprelay.domain.entities.envelope import ResponseEnvelope


class MockOrchestrator(OrchestratorPort):
    """Offline stand-in: stays silent unless someone addresses the bot."""

    def __init__(self, trigger_words: tuple[str, ...] = ("@bot", "trip bot")) -> None:
        self._trigger_words = trigger_words
        self._logger = logging.getLogger(__name__)
        self.requests: list[dict[str, Any]] = []

    async def send(self, payload: dict[str, Any]) -> ResponseEnvelope | None:
        self.requests.append(payload)
        messages = payload.get("messages") or []
        texts = [str(m.get("message") or "") for m in messages]
        self._logger.info("Mock orchestrator received batch", extra={"message_count": len(messages)})

        if not any(word in text.lower() for text in texts for word in self._trigger_words):
            return ResponseEnvelope(response="skip")

        senders = sorted({m.get("senderName") for m in messages if m.get("senderName")})
        who = ", ".join(senders) if senders else "everyone"
        return ResponseEnvelope(response=f"Noted {len(messages)} message(s) from {who}.")
