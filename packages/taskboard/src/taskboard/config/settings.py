"""Configuration settings for the process task board."""

from functools import lru_cache
from typing import Literal

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class FlatSettings(BaseSettings):
    """Flat settings read from environment variables or a .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Remote task store
    store_api_url: str = Field(
        default="http://localhost:8000", validation_alias="TASKBOARD_STORE_URL"
    )
    store_api_token: SecretStr = Field(..., validation_alias="TASKBOARD_STORE_TOKEN")
    store_timeout: float = Field(default=30.0, validation_alias="TASKBOARD_STORE_TIMEOUT")
    store_max_retries: int = Field(default=3, validation_alias="TASKBOARD_STORE_MAX_RETRIES")

    # Board ordering
    order_gap: float = Field(default=1000.0, gt=0, validation_alias="TASKBOARD_ORDER_GAP")
    min_order_spacing: float = Field(
        default=1e-6, gt=0, validation_alias="TASKBOARD_MIN_ORDER_SPACING"
    )
    rollback_on_failure: bool = Field(
        default=True, validation_alias="TASKBOARD_ROLLBACK_ON_FAILURE"
    )

    # Timeline geometry (pixels)
    day_width: int = Field(default=40, gt=0, validation_alias="TASKBOARD_DAY_WIDTH")
    row_height: int = Field(default=32, gt=0, validation_alias="TASKBOARD_ROW_HEIGHT")
    label_width: int = Field(default=200, ge=0, validation_alias="TASKBOARD_LABEL_WIDTH")

    # Timeline view window (days)
    view_padding_before_days: int = Field(
        default=2, ge=0, validation_alias="TASKBOARD_VIEW_PADDING_BEFORE"
    )
    view_padding_after_days: int = Field(
        default=5, ge=0, validation_alias="TASKBOARD_VIEW_PADDING_AFTER"
    )
    empty_view_days: int = Field(default=30, ge=1, validation_alias="TASKBOARD_EMPTY_VIEW_DAYS")

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO", validation_alias="LOG_LEVEL"
    )
    log_format: Literal["json", "console"] = Field(
        default="console", validation_alias="LOG_FORMAT"
    )


@lru_cache
def get_settings() -> FlatSettings:
    """Get cached settings instance."""
    return FlatSettings()
