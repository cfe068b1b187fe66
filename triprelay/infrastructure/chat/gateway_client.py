from __future__ import annotations

import logging
from typing import Any
from urllib.parse import quote

import httpx

from triprelay.application.exceptions import ChatPlatformError


class ChatGatewayClient:
    """Thin HTTP client for the chat gateway that owns the platform session."""

    def __init__(
        self,
        base_url: str,
        token: str | None = None,
        timeout_ms: int = 10000,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        self._client = client or httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers=headers,
            timeout=timeout_ms / 1000.0,
        )
        self._logger = logging.getLogger(__name__)

    async def start_session(self, headless: bool) -> dict[str, Any]:
        return await self._request("POST", "/session", json={"headless": headless})

    async def get_chat(self, chat_id: str) -> dict[str, Any]:
        return await self._request("GET", f"/chats/{quote(chat_id, safe='')}")

    async def send_text(self, chat_id: str, text: str) -> None:
        await self._request("POST", f"/chats/{quote(chat_id, safe='')}/messages", json={"text": text})

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, path: str, json: dict[str, Any] | None = None) -> dict[str, Any]:
        try:
            resp = await self._client.request(method, path, json=json)
        except httpx.HTTPError as e:
            raise ChatPlatformError(f"{method} {path}: {e}") from e

        if resp.status_code >= 400:
            try:
                error_json = resp.json()
                error_message = error_json.get("error") if isinstance(error_json, dict) else resp.text
            except ValueError:
                error_message = resp.text

            self._logger.error(
                "Chat gateway request failed",
                extra={"status": resp.status_code, "error": error_message, "reason": f"{method} {path}"},
            )
            raise ChatPlatformError(f"{method} {path}: HTTP {resp.status_code}")

        if not resp.content:
            return {}
        try:
            data = resp.json()
        except ValueError as e:
            raise ChatPlatformError(f"{method} {path}: invalid JSON response") from e
        return data if isinstance(data, dict) else {}
