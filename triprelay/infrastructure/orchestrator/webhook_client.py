from __future__ import annotations

import json
import logging
from typing import Any

import httpx

from triprelay.application.ports.orchestrator import OrchestratorPort
from triprelay.domain.entities.envelope import ResponseEnvelope, StateUpdate

logger = logging.getLogger(__name__)


class OrchestratorContractError(ValueError):
    """Raised internally when a response body is not a usable envelope."""
    pass


class OrchestratorWebhookClient(OrchestratorPort):
    """
    POSTs batch payloads to the orchestrator webhook (an n8n workflow in the
    reference deployment).

    Contract guarantees:
    - one request per send(), bounded by timeout_ms
    - returns None for network errors, timeouts, non-2xx statuses and bodies
      that are not an envelope; never raises for those
    - accepts the envelope bare, wrapped as {"output": {...}}, inside a
      one-element list, or JSON-encoded as a string at any of those levels
    """

    def __init__(
        self,
        webhook_url: str,
        timeout_ms: int = 20000,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._webhook_url = webhook_url
        self._client = client or httpx.AsyncClient(timeout=timeout_ms / 1000.0)
        self._owns_client = client is None
        self._timeout = httpx.Timeout(timeout_ms / 1000.0)
        self._logger = logging.getLogger(__name__)

    async def send(self, payload: dict[str, Any]) -> ResponseEnvelope | None:
        self._logger.info(
            "Sending batch to orchestrator",
            extra={
                "event": "orchestrator_request",
                "group_id": (payload.get("meta") or {}).get("groupId"),
                "message_count": len(payload.get("messages") or []),
            },
        )
        try:
            resp = await self._client.post(
                self._webhook_url,
                json=payload,
                timeout=self._timeout,
                headers={"Content-Type": "application/json"},
            )
        except httpx.TimeoutException as e:
            self._logger.error(
                "Orchestrator request timed out",
                extra={"event": "orchestrator_failed", "reason": "timeout", "error": str(e)},
            )
            return None
        except httpx.HTTPError as e:
            self._logger.error(
                "Orchestrator request failed",
                extra={"event": "orchestrator_failed", "reason": "network", "error": str(e)},
            )
            return None

        if resp.status_code < 200 or resp.status_code >= 300:
            self._logger.error(
                "Orchestrator returned an error status",
                extra={
                    "event": "orchestrator_failed",
                    "reason": "http_status",
                    "status": resp.status_code,
                    "error": resp.text[:500],
                },
            )
            return None

        try:
            envelope = parse_envelope(_decode_body(resp))
        except OrchestratorContractError as e:
            self._logger.error(
                "Orchestrator response not understood",
                extra={"event": "orchestrator_failed", "reason": "bad_body", "status": resp.status_code, "error": str(e)},
            )
            return None

        self._logger.info(
            "Orchestrator responded",
            extra={"event": "orchestrator_response", "status": resp.status_code},
        )
        return envelope

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()


def _decode_body(resp: httpx.Response) -> Any:
    text = resp.text
    if not text.strip():
        raise OrchestratorContractError("empty body")
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        # A plain-text body is treated like a JSON-encoded string body.
        return text


def parse_envelope(data: Any) -> ResponseEnvelope:
    """Normalise a decoded response body into a ResponseEnvelope.

    Only a body that does not resolve to an object is rejected. A malformed
    `updated` section (or part of it) is dropped and logged; the reply and
    the remaining valid parts are kept.
    """
    data = _parse_if_string(data)
    if isinstance(data, list):
        if not data:
            raise OrchestratorContractError("empty list body")
        data = _parse_if_string(data[0])

    if isinstance(data, dict) and "output" in data and "response" not in data:
        data = _parse_if_string(data["output"])

    if not isinstance(data, dict):
        raise OrchestratorContractError(f"expected a JSON object, got {type(data).__name__}")

    return ResponseEnvelope(response=data.get("response"), updated=_parse_updated(data.get("updated")))


def _parse_updated(raw: Any) -> StateUpdate | None:
    if raw is None:
        return None
    try:
        raw = _parse_if_string(raw)
    except OrchestratorContractError as e:
        logger.warning("State update ignored", extra={"event": "state_update_skipped", "reason": "not_json", "error": str(e)})
        return None
    if not isinstance(raw, dict):
        logger.warning(
            "State update ignored",
            extra={"event": "state_update_skipped", "reason": "not_an_object", "error": type(raw).__name__},
        )
        return None

    group = raw.get("group")
    if group is not None and not isinstance(group, dict):
        logger.warning(
            "Group update ignored",
            extra={"event": "group_update_skipped", "reason": "not_an_object", "error": type(group).__name__},
        )
        group = None

    members = raw.get("members")
    if members is not None and not isinstance(members, list):
        logger.warning(
            "Member updates ignored",
            extra={"event": "member_update_skipped", "reason": "not_a_list", "error": type(members).__name__},
        )
        members = None

    if group is None and members is None:
        return None
    return StateUpdate(group=group, members=members)


def _parse_if_string(value: Any) -> Any:
    if not isinstance(value, str):
        return value
    try:
        return json.loads(value)
    except json.JSONDecodeError as e:
        raise OrchestratorContractError(f"string body is not JSON: {e}") from e
