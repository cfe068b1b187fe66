from abc import ABC, abstractmethod
from typing import Any


class RecordStorePort(ABC):
    """Key-value persistence for JSON documents grouped into scopes.

    A scope is a "/"-separated path of already sanitized segments, e.g.
    "<group>" or "<group>/members". Names are sanitized record keys.
    """

    @abstractmethod
    def load(self, scope: str, name: str) -> dict[str, Any] | None:
        """
        Return the stored document, or None if it does not exist.

        Raises:
            RecordCorruptError: the record exists but is not a JSON object
            StorageError: the record could not be read
        """
        raise NotImplementedError

    @abstractmethod
    def save(self, scope: str, name: str, document: dict[str, Any]) -> None:
        """
        Replace the document. A concurrent load observes either the old or the
        new document, never a partial one.

        Raises:
            StorageError: the record could not be written
        """
        raise NotImplementedError

    @abstractmethod
    def names(self, scope: str) -> list[str]:
        """Return the record names stored in a scope, sorted."""
        raise NotImplementedError
