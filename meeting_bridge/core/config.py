from functools import lru_cache
from typing import Annotated

from pydantic import field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

ALLOWED_ENV_FIELD_NAMES = frozenset(
    {
        "app_name",
        "app_env",
        "app_version",
        "api_prefix",
        "allowed_origins",
        "webhook_url",
        "open_in_new_tab",
        "service_name",
        "webhook_timeout_seconds",
        "default_timezone",
        "host_api_store",
        "mattermost_url",
        "mattermost_bot_token",
        "mattermost_api_timeout_seconds",
    },
)

DEFAULT_WEBHOOK_TIMEOUT_SECONDS = 120.0
DEFAULT_MATTERMOST_API_TIMEOUT_SECONDS = 10.0


class Settings(BaseSettings):
    app_name: str = "Meeting Bridge"
    app_env: str = "development"
    app_version: str = "0.1.0"
    api_prefix: str = "/api"
    allowed_origins: Annotated[list[str], NoDecode] = [
        "http://localhost:8065",
        "http://127.0.0.1:8065",
    ]
    webhook_url: str = ""
    open_in_new_tab: bool = True
    service_name: str = ""
    webhook_timeout_seconds: float = DEFAULT_WEBHOOK_TIMEOUT_SECONDS
    default_timezone: str = "Europe/Moscow"
    host_api_store: str = "memory"
    mattermost_url: str = "http://localhost:8065"
    mattermost_bot_token: str = ""
    mattermost_api_timeout_seconds: float = DEFAULT_MATTERMOST_API_TIMEOUT_SECONDS

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        def _filter_allowed_env_fields(source):
            return {
                field_name: raw_value
                for field_name, raw_value in source().items()
                if field_name in ALLOWED_ENV_FIELD_NAMES
            }

        return (
            init_settings,
            lambda: _filter_allowed_env_fields(env_settings),
            lambda: _filter_allowed_env_fields(dotenv_settings),
            file_secret_settings,
        )

    @field_validator("allowed_origins", mode="before")
    @classmethod
    def parse_allowed_origins(cls, value: str | list[str]) -> list[str]:
        if isinstance(value, str):
            return [origin.strip() for origin in value.split(",") if origin.strip()]
        return value

    @field_validator("webhook_url", "mattermost_url", "service_name", mode="before")
    @classmethod
    def strip_text_values(cls, value: str | None) -> str:
        return (value or "").strip()

    @field_validator("host_api_store", mode="before")
    @classmethod
    def normalize_host_api_store(cls, value: str) -> str:
        return value.strip().lower()

    @field_validator("default_timezone", mode="before")
    @classmethod
    def normalize_default_timezone(cls, value: str | None) -> str:
        cleaned = (value or "").strip()
        return cleaned or "Europe/Moscow"

    @field_validator("webhook_timeout_seconds", mode="before")
    @classmethod
    def normalize_webhook_timeout(cls, value: float | str) -> float:
        parsed_value = float(value)
        if parsed_value <= 0:
            return DEFAULT_WEBHOOK_TIMEOUT_SECONDS
        return parsed_value

    @field_validator("mattermost_api_timeout_seconds", mode="before")
    @classmethod
    def normalize_mattermost_timeout(cls, value: float | str) -> float:
        parsed_value = float(value)
        if parsed_value <= 0:
            return DEFAULT_MATTERMOST_API_TIMEOUT_SECONDS
        return parsed_value


@lru_cache
def get_settings() -> Settings:
    return Settings()
