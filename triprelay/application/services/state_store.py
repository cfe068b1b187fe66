from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from typing import Any

from triprelay.application.exceptions import StorageError
from triprelay.application.ports.record_store import RecordStorePort
from triprelay.application.utils.date_format import now_ms
from triprelay.application.utils.identity import resolve_display_name, sanitize_identifier
from triprelay.domain.entities.chat import Participant
from triprelay.domain.entities.envelope import StateUpdate
from triprelay.domain.entities.group_state import GroupState, default_group_state
from triprelay.domain.entities.member_state import MemberState, default_member_state

GROUP_RECORD = "group"


class StateStore:
    """Durable group and member state, one isolated scope per group.

    Storage failures never propagate: reads fall back to defaults and writes
    are skipped, each logged with an ``event`` extra.
    """

    def __init__(
        self,
        records: RecordStorePort,
        name_overrides: dict[str, str] | None = None,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self._records = records
        self._name_overrides = dict(name_overrides or {})
        self._clock = clock
        self._logger = logging.getLogger(__name__)

    def load_group(self, group_id: str) -> GroupState:
        scope = _group_scope(group_id)
        existing = self._load(scope, GROUP_RECORD, group_id)
        if existing is not None:
            return existing  # type: ignore[return-value]

        state = default_group_state(self._clock())
        self.save_group(group_id, state)
        self._logger.info("Group state created", extra={"event": "group_created", "group_id": group_id})
        return state

    def load_members(
        self,
        group_id: str,
        participants: Iterable[Participant],
        self_id: str | None = None,
    ) -> list[MemberState]:
        members: list[MemberState] = []
        for participant in participants:
            if participant.is_me or (self_id and participant.id == self_id):
                continue

            existing = self._load(_members_scope(group_id), sanitize_identifier(participant.id), group_id)
            if existing is not None:
                members.append(existing)  # type: ignore[arg-type]
                continue

            name = resolve_display_name(participant.id, participant.username, self._name_overrides)
            state = default_member_state(participant.id, name, self._clock())
            self.save_member(group_id, state)
            members.append(state)
        return members

    def list_members(self, group_id: str) -> list[MemberState]:
        scope = _members_scope(group_id)
        try:
            names = self._records.names(scope)
        except StorageError as e:
            self._logger.error(
                "Failed to list members",
                extra={"event": "state_load_failed", "group_id": group_id, "error": str(e)},
            )
            return []

        members: list[MemberState] = []
        for name in names:
            document = self._load(scope, name, group_id)
            if document is not None:
                members.append(document)  # type: ignore[arg-type]
        return members

    def save_group(self, group_id: str, state: GroupState | dict[str, Any]) -> bool:
        return self._save(_group_scope(group_id), GROUP_RECORD, dict(state), group_id)

    def save_member(self, group_id: str, state: MemberState | dict[str, Any]) -> bool:
        member_id = state.get("id")
        if member_id is None:
            self._logger.warning(
                "Member state without id not saved",
                extra={"event": "member_update_skipped", "group_id": group_id, "reason": "missing_id"},
            )
            return False
        return self._save(_members_scope(group_id), sanitize_identifier(str(member_id)), dict(state), group_id)

    def apply_updates(self, group_id: str, updated: StateUpdate | None) -> None:
        if updated is None:
            return

        if updated.group is not None:
            if isinstance(updated.group, dict):
                self.save_group(group_id, updated.group)
            else:
                self._logger.warning(
                    "Group update ignored",
                    extra={"event": "group_update_skipped", "group_id": group_id, "reason": "not_an_object"},
                )

        for entry in updated.members or []:
            if not isinstance(entry, dict) or entry.get("id") is None:
                self._logger.warning(
                    "Member update ignored",
                    extra={"event": "member_update_skipped", "group_id": group_id, "reason": "missing_id"},
                )
                continue
            self.save_member(group_id, entry)

    def _load(self, scope: str, name: str, group_id: str) -> dict[str, Any] | None:
        try:
            return self._records.load(scope, name)
        except StorageError as e:
            self._logger.error(
                "Failed to load state",
                extra={"event": "state_load_failed", "group_id": group_id, "reason": name, "error": str(e)},
            )
            return None

    def _save(self, scope: str, name: str, document: dict[str, Any], group_id: str) -> bool:
        try:
            self._records.save(scope, name, document)
            return True
        except StorageError as e:
            self._logger.error(
                "Failed to save state",
                extra={"event": "state_save_failed", "group_id": group_id, "reason": name, "error": str(e)},
            )
            return False


def _group_scope(group_id: str) -> str:
    return sanitize_identifier(group_id)


def _members_scope(group_id: str) -> str:
    return f"{sanitize_identifier(group_id)}/members"
