from __future__ import annotations

from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _split_csv(raw: str) -> list[str]:
    return [item.strip() for item in (raw or "").split(",") if item.strip()]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="TELETRADER_", env_file=".env", extra="ignore")

    telegram_token: str
    allowed_usernames: str

    deriv_app_id: str
    deriv_api_token: str
    deriv_endpoint: str = "wss://ws.binaryws.com/websockets/v3"
    deriv_symbols: str = "R_10,R_25,R_50,R_75,R_100"
    deriv_currency: str = "USD"
    trade_duration: int = 5
    trade_duration_unit: str = "t"

    openai_api_key: str = ""
    openai_model: str = "gpt-4.1-mini"
    openai_max_output_tokens: int = 600
    openai_temperature: float = 0.3

    callback_secret: str = ""
    typing_interval_sec: float = 4.0
    keepalive_interval_sec: int = 30
    log_level: str = "INFO"
    debug: bool = False

    @field_validator("telegram_token", "deriv_api_token")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be empty")
        return value.strip()

    @field_validator("allowed_usernames")
    @classmethod
    def _has_usernames(cls, value: str) -> str:
        if not _split_csv(value):
            raise ValueError("at least one username is required")
        return value

    @field_validator("deriv_app_id")
    @classmethod
    def _numeric_app_id(cls, value: str) -> str:
        value = value.strip()
        if not value.isdigit():
            raise ValueError("deriv app id must be numeric")
        return value

    def allowed_usernames_list(self) -> list[str]:
        return _split_csv(self.allowed_usernames)

    def deriv_symbols_list(self) -> list[str]:
        return _split_csv(self.deriv_symbols)


@lru_cache
def get_settings() -> Settings:
    return Settings()
