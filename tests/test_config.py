from __future__ import annotations

import pytest
from pydantic import ValidationError

from teletrader.core.config import Settings


def _settings(**overrides) -> Settings:
    fields = {
        "telegram_token": "123:abc",
        "allowed_usernames": "alice, @Bob ,",
        "deriv_app_id": "1089",
        "deriv_api_token": "secret",
    }
    fields.update(overrides)
    return Settings(_env_file=None, **fields)


def test_defaults() -> None:
    settings = _settings()
    assert settings.allowed_usernames_list() == ["alice", "@Bob"]
    assert settings.deriv_symbols_list() == ["R_10", "R_25", "R_50", "R_75", "R_100"]
    assert settings.deriv_endpoint == "wss://ws.binaryws.com/websockets/v3"
    assert settings.callback_secret == ""
    assert settings.trade_duration_unit == "t"


def test_env_prefix(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TELETRADER_DERIV_SYMBOLS", "R_50,frxEURUSD")
    monkeypatch.setenv("TELETRADER_KEEPALIVE_INTERVAL_SEC", "45")
    settings = _settings()
    assert settings.deriv_symbols_list() == ["R_50", "frxEURUSD"]
    assert settings.keepalive_interval_sec == 45


@pytest.mark.parametrize(
    "overrides",
    [
        {"telegram_token": "  "},
        {"deriv_api_token": ""},
        {"allowed_usernames": " , "},
        {"deriv_app_id": "app-1089"},
    ],
)
def test_invalid_settings_are_rejected(overrides: dict) -> None:
    with pytest.raises(ValidationError):
        _settings(**overrides)
