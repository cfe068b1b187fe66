from __future__ import annotations

import copy
from typing import Any

from triprelay.application.ports.record_store import RecordStorePort


class MemoryRecordStore(RecordStorePort):
    def __init__(self) -> None:
        self._records: dict[str, dict[str, dict[str, Any]]] = {}

    def load(self, scope: str, name: str) -> dict[str, Any] | None:
        document = self._records.get(scope, {}).get(name)
        return copy.deepcopy(document) if document is not None else None

    def save(self, scope: str, name: str, document: dict[str, Any]) -> None:
        self._records.setdefault(scope, {})[name] = copy.deepcopy(document)

    def names(self, scope: str) -> list[str]:
        return sorted(self._records.get(scope, {}))
