from __future__ import annotations

from decimal import Decimal

import pytest

from checkout_engine.config import ConfigError, EngineConfig, load_config

_ENV_KEYS = (
    "CHECKOUT_ENV",
    "CHECKOUT_TAX_RATE",
    "CHECKOUT_TAX_ENABLED",
    "CHECKOUT_SEARCH_LIMIT",
    "CHECKOUT_AUTO_STAGE_MIN_LENGTH",
    "CHECKOUT_INVOICE_START",
    "CHECKOUT_DUE_DAYS",
    "CHECKOUT_CURRENCY",
    "CHECKOUT_TELEMETRY_ENABLED",
    "CHECKOUT_TELEMETRY_FILE",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    # setenv first so values loaded from .env files are undone after the test
    for key in _ENV_KEYS:
        monkeypatch.setenv(key, "")
        monkeypatch.delenv(key)


def test_defaults_match_engine_config() -> None:
    assert load_config() == EngineConfig()


def test_values_are_read_from_environment(monkeypatch) -> None:
    monkeypatch.setenv("CHECKOUT_ENV", " Prod ")
    monkeypatch.setenv("CHECKOUT_TAX_RATE", "8.5")
    monkeypatch.setenv("CHECKOUT_TAX_ENABLED", "off")
    monkeypatch.setenv("CHECKOUT_INVOICE_START", "1000")
    monkeypatch.setenv("CHECKOUT_TELEMETRY_ENABLED", "true")
    monkeypatch.setenv("CHECKOUT_TELEMETRY_FILE", "logs/till-2.jsonl")

    config = load_config()

    assert config.normalized_env == "prod"
    assert config.tax_rate == Decimal("8.5")
    assert config.tax_enabled is False
    assert config.invoice_start == 1000
    assert config.telemetry_enabled is True
    assert config.telemetry_file == "logs/till-2.jsonl"


def test_env_file_is_loaded(tmp_path) -> None:
    env_file = tmp_path / "checkout.env"
    env_file.write_text("CHECKOUT_DUE_DAYS=45\nCHECKOUT_CURRENCY=LKR\n", encoding="utf-8")

    config = load_config(str(env_file))

    assert config.due_days == 45
    assert config.currency == "LKR"


@pytest.mark.parametrize(
    ("key", "value"),
    [
        ("CHECKOUT_TAX_RATE", "abc"),
        ("CHECKOUT_TAX_RATE", "120"),
        ("CHECKOUT_SEARCH_LIMIT", "0"),
        ("CHECKOUT_SEARCH_LIMIT", "many"),
        ("CHECKOUT_AUTO_STAGE_MIN_LENGTH", "0"),
        ("CHECKOUT_INVOICE_START", "-5"),
        ("CHECKOUT_DUE_DAYS", "-1"),
    ],
)
def test_invalid_values_name_the_variable(monkeypatch, key: str, value: str) -> None:
    monkeypatch.setenv(key, value)
    with pytest.raises(ConfigError, match=key):
        load_config()
