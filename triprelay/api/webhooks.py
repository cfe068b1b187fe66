from __future__ import annotations

import json
import logging

from fastapi import APIRouter, Depends, Request, Response
from pydantic import ValidationError

from triprelay.application.dto.webhook_event import ChatWebhookEventDTO
from triprelay.application.use_cases.handle_incoming_message import HandleIncomingMessageUseCase
from triprelay.wiring.dependencies import get_handle_incoming_message_use_case


router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/webhooks/chat")
async def chat_webhook(
    request: Request,
    use_case: HandleIncomingMessageUseCase = Depends(get_handle_incoming_message_use_case),
) -> Response:
    body = await request.body()
    try:
        payload = json.loads(body.decode("utf-8")) if body else {}
    except (UnicodeDecodeError, json.JSONDecodeError):
        logger.exception("Failed to parse webhook body")
        return Response(status_code=400)

    try:
        event = ChatWebhookEventDTO.from_payload(payload)
    except ValidationError as e:
        logger.warning("Webhook body rejected", extra={"event": "webhook_rejected", "error": str(e)})
        return Response(status_code=422)

    messages = event.extract_messages()
    logger.info("Webhook received", extra={"message_count": len(messages)})

    for message in messages:
        try:
            use_case.handle(message)
        except Exception as e:
            logger.exception("Error handling incoming message", extra={"chat_id": message.chat_id, "error": str(e)})

    return Response(status_code=200)
