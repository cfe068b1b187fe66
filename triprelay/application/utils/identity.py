from __future__ import annotations

import re

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9_.-]")


def sanitize_identifier(raw: str) -> str:
    """Map a platform identifier to a key usable as a file name.

    Different raw ids may map to the same key ("a@b" and "a/b"); such ids
    share a single record and the last write wins.
    """
    return _UNSAFE_CHARS.sub("_", str(raw))


def resolve_display_name(
    member_id: str,
    reported_name: str | None,
    overrides: dict[str, str] | None = None,
) -> str | None:
    if overrides and overrides.get(member_id):
        return overrides[member_id]
    if reported_name and reported_name.strip():
        return reported_name.strip()
    return None
