from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends

from triprelay.application.services.state_store import StateStore
from triprelay.wiring.dependencies import get_state_store


router = APIRouter()


@router.get("/groups/{group_id}/state")
def get_group_state(group_id: str, store: StateStore = Depends(get_state_store)) -> dict[str, Any]:
    """Stored group and member records. Creates the default group record on first access."""
    return {
        "groupId": group_id,
        "group": store.load_group(group_id),
        "members": store.list_members(group_id),
    }
