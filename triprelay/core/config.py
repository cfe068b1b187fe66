from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    ORCHESTRATOR_PROVIDER: str = "webhook"  # "webhook" | "mock"
    ORCHESTRATOR_WEBHOOK_URL: str = "http://localhost:5678/webhook/send-messages"
    ORCHESTRATOR_TIMEOUT_MS: int = 20000

    BATCH_WINDOW_MS: int = 10000
    BATCH_SCOPE: str = "chat"  # "chat" | "global"
    INCLUDE_CHAT_ID: bool = False

    CHAT_GATEWAY_URL: str | None = None
    CHAT_GATEWAY_TOKEN: str | None = None
    CHAT_GATEWAY_TIMEOUT_MS: int = 10000
    HEADLESS: bool = True
    SELF_ID: str | None = None

    # Known member id -> display name, wins over platform-reported names.
    MEMBER_NAME_OVERRIDES: dict[str, str] = {}

    STORE_PROVIDER: str = "json"  # "json" | "memory"
    DATA_DIR: str = "./data"
    TIMEZONE: str = "Asia/Kolkata"

    REPLY_ENABLED: bool = True
    REPLY_DELAY_MIN_MS: int = 0
    REPLY_DELAY_MAX_MS: int = 0

    ENV: str = "dev"
    LOG_LEVEL: str = "INFO"


settings = Settings()
