from abc import ABC, abstractmethod
from typing import Any

from triprelay.domain.entities.envelope import ResponseEnvelope


class OrchestratorPort(ABC):
    @abstractmethod
    async def send(self, payload: dict[str, Any]) -> ResponseEnvelope | None:
        """
        Deliver one batch payload and return the decoded response.

        Requirements:
        - Exactly one attempt per call; no retries
        - Never raises for transport problems: network errors, timeouts,
          non-2xx statuses and bodies that do not decode to an envelope
          all return None

        Returns:
            ResponseEnvelope, or None meaning "skip this cycle entirely"
        """
        raise NotImplementedError

    async def aclose(self) -> None:
        return None
