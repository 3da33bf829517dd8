from __future__ import annotations

import os
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Mapping

_LEVEL_BY_ENVIRONMENT = {
    "production": "INFO",
    "staging": "INFO",
    "development": "DEBUG",
    "test": "WARNING",
}

_TRUTHY = {"1", "true", "yes", "on"}
_FALSY = {"0", "false", "no", "off"}

PREFIX = "ORDER_COMMIT_"


class ConfigError(ValueError):
    pass


@dataclass(frozen=True)
class Settings:
    environment: str = "development"
    log_level: str = "DEBUG"
    tax_rate: Decimal = Decimal("18")
    default_commission_rate: Decimal = Decimal("10")
    fallback_standard_shipping: Decimal = Decimal("50")
    fallback_express_shipping: Decimal = Decimal("100")
    estimated_delivery_days: int = 5
    database_url: str | None = None
    transaction_timeout: float = 10.0
    seed_demo_data: bool = True

    @property
    def is_production(self) -> bool:
        return self.environment in {"production", "staging"}

    @staticmethod
    def from_env(environ: Mapping[str, str] | None = None) -> "Settings":
        env = os.environ if environ is None else environ

        environment = (
            env.get("ENVIRONMENT") or env.get("ENV") or "development"
        ).strip().lower()
        log_level = (
            env.get("LOG_LEVEL") or _LEVEL_BY_ENVIRONMENT.get(environment, "INFO")
        ).upper()

        return Settings(
            environment=environment,
            log_level=log_level,
            tax_rate=_decimal(env, "TAX_RATE", "18"),
            default_commission_rate=_decimal(env, "DEFAULT_COMMISSION_RATE", "10"),
            fallback_standard_shipping=_decimal(env, "FALLBACK_STANDARD_SHIPPING", "50"),
            fallback_express_shipping=_decimal(env, "FALLBACK_EXPRESS_SHIPPING", "100"),
            estimated_delivery_days=_int(env, "ESTIMATED_DELIVERY_DAYS", 5),
            database_url=(env.get(PREFIX + "DATABASE_URL") or "").strip() or None,
            transaction_timeout=_float(env, "TRANSACTION_TIMEOUT", 10.0),
            seed_demo_data=_bool(env, "SEED_DEMO_DATA", True),
        )


def _raw(env: Mapping[str, str], name: str) -> str | None:
    value = env.get(PREFIX + name)
    if value is None or not value.strip():
        return None
    return value.strip()


def _decimal(env: Mapping[str, str], name: str, default: str) -> Decimal:
    raw = _raw(env, name) or default
    try:
        value = Decimal(raw)
    except InvalidOperation as exc:
        raise ConfigError(f"{PREFIX}{name} must be a number, got {raw!r}") from exc
    if value < 0:
        raise ConfigError(f"{PREFIX}{name} must be >= 0")
    return value


def _int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = _raw(env, name)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise ConfigError(f"{PREFIX}{name} must be an integer, got {raw!r}") from exc
    if value < 0:
        raise ConfigError(f"{PREFIX}{name} must be >= 0")
    return value


def _float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = _raw(env, name)
    if raw is None:
        return default
    try:
        value = float(raw)
    except ValueError as exc:
        raise ConfigError(f"{PREFIX}{name} must be a number, got {raw!r}") from exc
    if value <= 0:
        raise ConfigError(f"{PREFIX}{name} must be > 0")
    return value


def _bool(env: Mapping[str, str], name: str, default: bool) -> bool:
    raw = _raw(env, name)
    if raw is None:
        return default
    if raw.lower() in _TRUTHY:
        return True
    if raw.lower() in _FALSY:
        return False
    raise ConfigError(f"{PREFIX}{name} must be a boolean, got {raw!r}")
