"""
Configuration settings for Neural Mail.

All settings are loaded from environment variables with sensible defaults.
Use .env file for local development.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_INFERENCE_URL = "http://localhost:11434/api/generate"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # === Application ===
    APP_NAME: str = "Neural Mail"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    ENVIRONMENT: str = "development"

    # === Local API ===
    API_HOST: str = "127.0.0.1"
    API_PORT: int = 8000

    # === Inference endpoint ===
    OLLAMA_URL: str = DEFAULT_INFERENCE_URL
    OLLAMA_MODEL: str = "llama3.1:latest"
    OLLAMA_TIMEOUT: float = 60.0  # seconds, per attempt
    INFERENCE_MAX_ATTEMPTS: int = 3
    INFERENCE_BACKOFF_STEP: float = 0.5  # seconds, multiplied by attempt index

    # === Assistant ===
    CHAT_CONTEXT_WINDOW: int = 32768  # num_ctx for inbox-wide chat
    CHAT_CONTEXT_MESSAGES: int = 100

    # === Categorization ===
    CATEGORIZE_BATCH_SIZE: int = 20
    CATEGORIZE_BODY_CHARS: int = 200

    # === Storage ===
    DATABASE_PATH: str = "neural-mail.db"

    # === Background runtime ===
    WORKER_THREADS: int = 4

    # === Mail sources & transports ===
    MOCK_MAILBOX_SIZE: int = 24
    MOCK_MAILBOX_SEED: int = 7
    DEV_MOCK_SEND: bool = True  # Route outbound mail to a log-only transport
    KEYRING_SERVICE: str = "neural-mail"

    # === Monitoring ===
    PROMETHEUS_ENABLED: bool = True


def resolve_inference_endpoint() -> str:
    """
    Resolve the inference endpoint from current configuration.

    Settings are re-read on every call so an updated OLLAMA_URL takes
    effect on the next request without a restart.
    """
    return Settings().OLLAMA_URL or DEFAULT_INFERENCE_URL


# Global settings instance
settings = Settings()
