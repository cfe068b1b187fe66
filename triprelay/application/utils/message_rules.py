from __future__ import annotations

from typing import Any

SKIP_SENTINEL = "skip"


def is_skip_response(response: Any) -> bool:
    """True only when the whole response, trimmed, is the skip sentinel."""
    return isinstance(response, str) and response.strip().lower() == SKIP_SENTINEL


def reply_text(response: Any) -> str | None:
    """Return the text to post for an orchestrator response, or None for no reply."""
    if not isinstance(response, str):
        return None
    if is_skip_response(response):
        return None
    if not response.strip():
        return None
    return response


def is_group_chat_id(chat_id: str) -> bool:
    return chat_id.endswith("@g.us")
