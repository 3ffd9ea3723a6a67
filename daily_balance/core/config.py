from functools import lru_cache
from typing import Literal

from pydantic import BaseModel, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


WeekStart = Literal["monday", "sunday"]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_name: str = "daily-balance"

    # Remote balance store ("memory" keeps entries in-process for local development)
    balance_store: Literal["http", "memory"] = "http"
    balance_api_url: str = "http://localhost:4000"
    balance_api_token: str | None = None
    balance_api_timeout: float = 10.0

    # Autosave
    autosave_delay_ms: int = 2000

    # Calendar
    week_start: WeekStart = "monday"
    timezone: str = "America/Santiago"

    # Whole currency units; 0 means exact equality
    balance_tolerance: int = 0

    default_actor_id: int | None = None

    @field_validator("week_start", mode="before")
    @classmethod
    def normalize_week_start(cls, v: str | None) -> str:
        """Normalize week start to lowercase, defaulting empty to 'monday'."""
        if v is None or v == "":
            return "monday"
        return v.lower()

    @field_validator("balance_api_token", mode="before")
    @classmethod
    def empty_token_is_none(cls, v: str | None) -> str | None:
        if v is None or v == "":
            return None
        return v

    @property
    def autosave_delay(self) -> float:
        """Debounce window in seconds."""
        return self.autosave_delay_ms / 1000


class AppConfig(BaseModel):
    version: str = "0.1.0"
    description: str = "Daily balance entry API with debounced autosave for the clinic intranet."


@lru_cache
def get_settings() -> Settings:
    return Settings()
