from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class StateUpdate:
    group: dict[str, Any] | None = None
    members: list[Any] | None = None  # entries without an "id" are ignored


@dataclass(frozen=True)
class ResponseEnvelope:
    response: Any = None
    updated: StateUpdate | None = None
