from functools import lru_cache
from typing import Literal

from pydantic import Field, computed_field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing_extensions import Self


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_ignore_empty=True,
        extra="ignore",
    )

    PROJECT_NAME: str = "Gold Factory Workflow"
    ENVIRONMENT: Literal["local", "staging", "production"] = "local"

    # Tracking store
    DATABASE_URL: str = "sqlite:///./goldflow.db"
    DATABASE_ECHO: bool = False
    TRANSACTION_RETRY_ATTEMPTS: int = Field(default=1, ge=0, le=1)

    # Observability
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: Literal["json", "console"] = "json"
    ENABLE_METRICS: bool = True

    # Workflow tuning
    WEIGHT_VARIANCE_ALERT_THRESHOLD: float = Field(default=5.0, gt=0)
    MAX_WORKER_WORKLOAD: int = Field(default=5, gt=0)
    AUTO_SUBMIT_ON_COMPLETION: bool = True
    DEFAULT_PURITY: float = Field(default=22.0, ge=1, le=24)

    # Notifications
    NOTIFICATION_HISTORY_SIZE: int = Field(default=50, gt=0)
    REDIS_URL: str | None = None
    REDIS_NOTIFICATION_KEY: str = "goldflow:notifications"

    @computed_field  # type: ignore[prop-decorator]
    @property
    def is_sqlite(self) -> bool:
        return self.DATABASE_URL.startswith("sqlite")

    @model_validator(mode="after")
    def _check_log_level(self) -> Self:
        level = self.LOG_LEVEL.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unsupported LOG_LEVEL: {self.LOG_LEVEL}")
        self.LOG_LEVEL = level
        return self


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide settings instance."""
    return Settings()


settings = get_settings()
