from __future__ import annotations

import os
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation

from dotenv import load_dotenv


class ConfigError(ValueError):
    pass


@dataclass(frozen=True)
class EngineConfig:
    env_name: str = "dev"
    tax_rate: Decimal = Decimal("15")
    tax_enabled: bool = True
    search_limit: int = 8
    auto_stage_min_length: int = 3
    invoice_start: int = 146710
    due_days: int = 30
    currency: str = "Rs."
    telemetry_enabled: bool = False
    telemetry_file: str = "artifacts/telemetry/checkout.jsonl"

    @property
    def normalized_env(self) -> str:
        return self.env_name.lower().strip()


def _coerce_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _read_int(name: str, default: str) -> int:
    raw = os.getenv(name, default)
    try:
        return int(raw)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Invalid {name}: expected an integer, got {raw!r}") from exc


def _read_decimal(name: str, default: str) -> Decimal:
    raw = os.getenv(name, default)
    try:
        return Decimal(raw.strip())
    except (AttributeError, InvalidOperation) as exc:
        raise ConfigError(f"Invalid {name}: expected a number, got {raw!r}") from exc


def _validate(condition: bool, message: str) -> None:
    if not condition:
        raise ConfigError(message)


def load_config(env_file: str | None = None) -> EngineConfig:
    """Load engine settings from the environment with optional .env override."""
    load_dotenv(env_file)

    env_name = (os.getenv("CHECKOUT_ENV") or "dev").strip()

    tax_rate = _read_decimal("CHECKOUT_TAX_RATE", "15")
    _validate(
        Decimal("0") <= tax_rate <= Decimal("100"),
        f"Invalid CHECKOUT_TAX_RATE: expected 0-100, got {tax_rate}",
    )

    search_limit = _read_int("CHECKOUT_SEARCH_LIMIT", "8")
    _validate(search_limit >= 1, f"Invalid CHECKOUT_SEARCH_LIMIT: expected >= 1, got {search_limit}")

    auto_stage_min_length = _read_int("CHECKOUT_AUTO_STAGE_MIN_LENGTH", "3")
    _validate(
        auto_stage_min_length >= 1,
        f"Invalid CHECKOUT_AUTO_STAGE_MIN_LENGTH: expected >= 1, got {auto_stage_min_length}",
    )

    invoice_start = _read_int("CHECKOUT_INVOICE_START", "146710")
    _validate(invoice_start >= 0, f"Invalid CHECKOUT_INVOICE_START: expected >= 0, got {invoice_start}")

    due_days = _read_int("CHECKOUT_DUE_DAYS", "30")
    _validate(due_days >= 0, f"Invalid CHECKOUT_DUE_DAYS: expected >= 0, got {due_days}")

    currency = (os.getenv("CHECKOUT_CURRENCY") or "Rs.").strip()

    return EngineConfig(
        env_name=env_name,
        tax_rate=tax_rate,
        tax_enabled=_coerce_bool(os.getenv("CHECKOUT_TAX_ENABLED"), True),
        search_limit=search_limit,
        auto_stage_min_length=auto_stage_min_length,
        invoice_start=invoice_start,
        due_days=due_days,
        currency=currency,
        telemetry_enabled=_coerce_bool(os.getenv("CHECKOUT_TELEMETRY_ENABLED"), False),
        telemetry_file=(os.getenv("CHECKOUT_TELEMETRY_FILE") or "artifacts/telemetry/checkout.jsonl").strip(),
    )
