from functools import lru_cache
import logging
from zoneinfo import ZoneInfo

from triprelay.application.ports.chat_platform import ChatPlatformPort
from triprelay.application.ports.orchestrator import OrchestratorPort
from triprelay.application.ports.record_store import RecordStorePort
from triprelay.application.services.state_store import StateStore
from triprelay.application.use_cases.apply_response import ApplyResponseUseCase
from triprelay.application.use_cases.build_payload import PayloadBuilder
from triprelay.application.use_cases.handle_incoming_message import HandleIncomingMessageUseCase
from triprelay.application.use_cases.message_batcher import MessageBatcher
from triprelay.application.use_cases.process_batch import ProcessBatchUseCase
from triprelay.core.config import settings
from triprelay.infrastructure.chat.gateway_client import ChatGatewayClient
from triprelay.infrastructure.chat.gateway_platform import GatewayChatPlatform
from triprelay.infrastructure.chat.mock_platform import MockChatPlatform
from triprelay.infrastructure.orchestrator.mock_orchestrator import MockOrchestrator
from triprelay.infrastructure.orchestrator.webhook_client import OrchestratorWebhookClient
from triprelay.infrastructure.store.json_store import JsonRecordStore
from triprelay.infrastructure.store.memory_store import MemoryRecordStore


@lru_cache
def get_record_store() -> RecordStorePort:
    if settings.STORE_PROVIDER.lower() == "memory":
        return MemoryRecordStore()
    return JsonRecordStore(data_dir=settings.DATA_DIR)


@lru_cache
def get_state_store() -> StateStore:
    return StateStore(records=get_record_store(), name_overrides=settings.MEMBER_NAME_OVERRIDES)


@lru_cache
def get_chat_platform() -> ChatPlatformPort:
    logger = logging.getLogger(__name__)
    logger.info("CHAT_GATEWAY_URL present=%s", bool(settings.CHAT_GATEWAY_URL))
    logger.info("ENV=%s", settings.ENV)

    if not settings.CHAT_GATEWAY_URL:
        if settings.ENV.lower() in {"dev", "local", "test"}:
            logger.info("Using MockChatPlatform (gateway URL missing, ENV=dev/local)")
            return MockChatPlatform(self_id=settings.SELF_ID)
        raise ValueError("CHAT_GATEWAY_URL is required to read chats and send replies.")

    logger.info("Using GatewayChatPlatform")
    client = ChatGatewayClient(
        base_url=settings.CHAT_GATEWAY_URL,
        token=settings.CHAT_GATEWAY_TOKEN,
        timeout_ms=settings.CHAT_GATEWAY_TIMEOUT_MS,
    )
    return GatewayChatPlatform(client=client, self_id=settings.SELF_ID)


@lru_cache
def get_orchestrator() -> OrchestratorPort:
    if settings.ORCHESTRATOR_PROVIDER.lower() == "mock":
        return MockOrchestrator()
    return OrchestratorWebhookClient(
        webhook_url=settings.ORCHESTRATOR_WEBHOOK_URL,
        timeout_ms=settings.ORCHESTRATOR_TIMEOUT_MS,
    )


def get_process_batch_use_case() -> ProcessBatchUseCase:
    store = get_state_store()
    platform = get_chat_platform()
    return ProcessBatchUseCase(
        store=store,
        platform=platform,
        builder=PayloadBuilder(
            timezone=ZoneInfo(settings.TIMEZONE),
            include_chat_id=settings.INCLUDE_CHAT_ID,
        ),
        orchestrator=get_orchestrator(),
        apply_response=ApplyResponseUseCase(
            store=store,
            platform=platform,
            reply_enabled=settings.REPLY_ENABLED,
            reply_delay_ms=(settings.REPLY_DELAY_MIN_MS, settings.REPLY_DELAY_MAX_MS),
        ),
    )


@lru_cache
def get_message_batcher() -> MessageBatcher:
    process_batch = get_process_batch_use_case()
    return MessageBatcher(
        on_batch=process_batch.execute,
        window_ms=settings.BATCH_WINDOW_MS,
        scope=settings.BATCH_SCOPE,
    )


@lru_cache
def get_handle_incoming_message_use_case() -> HandleIncomingMessageUseCase:
    return HandleIncomingMessageUseCase(
        batcher=get_message_batcher(),
        name_overrides=settings.MEMBER_NAME_OVERRIDES,
        self_id=settings.SELF_ID,
    )


def reset_container() -> None:
    for factory in (
        get_record_store,
        get_state_store,
        get_chat_platform,
        get_orchestrator,
        get_message_batcher,
        get_handle_incoming_message_use_case,
    ):
        factory.cache_clear()
