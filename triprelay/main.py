import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from triprelay.api.groups import router as groups_router
from triprelay.api.webhooks import router as webhooks_router
from triprelay.application.exceptions import ChatPlatformError
from triprelay.core.config import settings
from triprelay.wiring.dependencies import get_chat_platform, get_message_batcher, get_orchestrator


class ContextFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        extras = []
        for key in ("event", "chat_id", "group_id", "message_count", "status", "reason", "error", "text"):
            value = getattr(record, key, None)
            if value not in (None, ""):
                extras.append(f"{key}={value}")
        base = super().format(record)
        if extras:
            return f"{base} | " + " ".join(extras)
        return base


handler = logging.StreamHandler()
handler.setFormatter(ContextFormatter("%(asctime)s %(levelname)s:%(name)s:%(message)s"))

root = logging.getLogger()
root.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))
root.handlers.clear()
root.addHandler(handler)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    platform = get_chat_platform()
    try:
        await platform.start_session(headless=settings.HEADLESS)
    except ChatPlatformError as e:
        logger.error("Chat session could not be started", extra={"event": "session_failed", "error": str(e)})
    yield
    logger.info("Shutting down")
    await get_message_batcher().aclose()
    await get_orchestrator().aclose()
    await platform.aclose()


app = FastAPI(title="Trip Relay", version="1.0.0", lifespan=lifespan)

app.include_router(webhooks_router, tags=["webhooks"])
app.include_router(groups_router, tags=["groups"])


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}
