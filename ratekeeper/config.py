from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_MESSAGE = "Too many requests, please try again later."


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", env_prefix="RATEKEEPER_", extra="ignore")

    chat_window_ms: int = Field(default=60_000, gt=0)
    chat_max_requests: int = Field(default=20, gt=0)
    chat_message: str = "Too many chat requests, please slow down."
    stream_window_ms: int = Field(default=60_000, gt=0)
    stream_max_requests: int = Field(default=10, gt=0)
    stream_message: str = "Too many streaming requests, please slow down."
    recommendations_window_ms: int = Field(default=60_000, gt=0)
    recommendations_max_requests: int = Field(default=30, gt=0)
    recommendations_message: str = "Too many recommendation requests, please slow down."
    public_window_ms: int = Field(default=60_000, gt=0)
    public_max_requests: int = Field(default=100, gt=0)
    public_message: str = DEFAULT_MESSAGE

    max_keys_per_limiter: int = Field(default=10_000, gt=0)
    limiter_algorithm: Literal["fixed", "sliding"] = "fixed"
    strict_operations: bool = False
    sweep_probability: float = Field(default=0.01, ge=0.0, le=1.0)
    cleanup_interval_seconds: int = Field(default=300, ge=1)

    admin_username: str = Field(default="admin", min_length=1)
    admin_password: str | None = Field(default=None, min_length=8)
    service_token: str | None = Field(default=None, min_length=16)
    log_level: str = "INFO"


@lru_cache
def get_settings() -> Settings:
    return Settings()
