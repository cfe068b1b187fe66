from __future__ import annotations

import json
import logging
import threading
import time
from pathlib import Path
from typing import Any

from triprelay.application.exceptions import RecordCorruptError, StorageError
from triprelay.application.ports.record_store import RecordStorePort


class JsonRecordStore(RecordStorePort):
    """One pretty-printed JSON file per record under <data_dir>/groups/<scope>/<name>.json."""

    def __init__(self, data_dir: str = "./data") -> None:
        self._root = Path(data_dir) / "groups"
        self._root.mkdir(parents=True, exist_ok=True)
        self._locks: dict[Path, threading.Lock] = {}
        self._lock_lock = threading.Lock()  # Lock for managing locks dict
        self._logger = logging.getLogger(__name__)

    def _get_lock(self, path: Path) -> threading.Lock:
        """Get or create a lock for a record file."""
        with self._lock_lock:
            if path not in self._locks:
                self._locks[path] = threading.Lock()
            return self._locks[path]

    def _scope_dir(self, scope: str) -> Path:
        segments = [segment for segment in scope.split("/") if segment]
        if any(segment in {".", ".."} for segment in segments):
            raise StorageError(f"Invalid scope: {scope!r}")
        return self._root.joinpath(*segments)

    def _get_file_path(self, scope: str, name: str) -> Path:
        return self._scope_dir(scope) / f"{name}.json"

    def load(self, scope: str, name: str) -> dict[str, Any] | None:
        file_path = self._get_file_path(scope, name)
        with self._get_lock(file_path):
            if not file_path.exists():
                return None
            try:
                with open(file_path, "r", encoding="utf-8") as f:
                    data = json.load(f)
            except (json.JSONDecodeError, UnicodeDecodeError) as e:
                self._quarantine(file_path)
                raise RecordCorruptError(f"{file_path}: {e}") from e
            except OSError as e:
                raise StorageError(f"{file_path}: {e}") from e

            if not isinstance(data, dict):
                self._quarantine(file_path)
                raise RecordCorruptError(f"{file_path}: expected a JSON object, got {type(data).__name__}")
            return data

    def save(self, scope: str, name: str, document: dict[str, Any]) -> None:
        """Write the record to a temp file, then rename it over the old one."""
        file_path = self._get_file_path(scope, name)
        temp_path = file_path.with_suffix(".json.tmp")

        with self._get_lock(file_path):
            try:
                file_path.parent.mkdir(parents=True, exist_ok=True)
                with open(temp_path, "w", encoding="utf-8") as f:
                    json.dump(document, f, indent=2, ensure_ascii=False)
                temp_path.replace(file_path)
            except (OSError, TypeError, ValueError) as e:
                if temp_path.exists():
                    try:
                        temp_path.unlink()
                    except OSError:
                        self._logger.warning("Could not remove temp file", extra={"error": str(temp_path)})
                raise StorageError(f"{file_path}: {e}") from e

    def names(self, scope: str) -> list[str]:
        scope_dir = self._scope_dir(scope)
        if not scope_dir.is_dir():
            return []
        return sorted(path.stem for path in scope_dir.glob("*.json"))

    def _quarantine(self, file_path: Path) -> None:
        """Move an unreadable record aside so the next save does not destroy it."""
        target = file_path.with_name(f"{file_path.name}.corrupt-{int(time.time())}")
        try:
            file_path.replace(target)
            self._logger.warning(
                "Corrupt record moved aside",
                extra={"event": "record_quarantined", "reason": target.name},
            )
        except OSError as e:
            self._logger.warning("Could not quarantine corrupt record", extra={"error": str(e)})
