from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_PATH = Path(__file__).resolve().parent.parent / ".env.local"

DEFAULT_WATCH_FILE = "~/.order_watch.toml"


class Settings(BaseSettings):
    # Environment settings
    environment: str = "development"
    LOG_LEVEL: str = "INFO"

    # Hot-reloadable watch file (subscribers, targets, intervals)
    ORDER_WATCH_CONFIG: str = DEFAULT_WATCH_FILE

    # Notification transport
    NOTIFIER_BACKEND: Literal["stdout", "smtp"] = "stdout"
    SMTP_HOST: str = "localhost"
    SMTP_PORT: int = 25
    SMTP_TIMEOUT_SECONDS: float = 30.0

    # =================================================================
    # FETCH SETTINGS
    # =================================================================
    FETCH_TIMEOUT_SECONDS: float = 30.0
    FETCH_MAX_RETRIES: int = 3
    FETCH_BACKOFF_FACTOR: float = 2.0
    FETCH_MAX_CONCURRENCY: int = 10

    model_config = SettingsConfigDict(
        env_file=str(ENV_PATH),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    def watch_file_path(self) -> Path:
        """
        Resolve the watch file location.

        Raises:
            RuntimeError: If the path uses ``~`` and no home directory can be determined
        """
        return Path(self.ORDER_WATCH_CONFIG).expanduser()

    def get_fetch_config(self) -> dict:
        """Get HTTP fetch configuration for the order status client."""
        return {
            "timeout": self.FETCH_TIMEOUT_SECONDS,
            "max_retries": self.FETCH_MAX_RETRIES,
            "backoff_factor": self.FETCH_BACKOFF_FACTOR,
        }


settings = Settings()
