"""Application configuration objects and helpers."""

from __future__ import annotations

import os
from decimal import Decimal, InvalidOperation
from enum import Enum
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

load_dotenv()

ENV_PREFIX = "TIMEDEPOSIT_"


class CancellationPolicy(str, Enum):
    """Payout applied when an ACTIVE deposit is cancelled before maturity."""

    PRINCIPAL_ONLY = "PRINCIPAL_ONLY"
    PRINCIPAL_PLUS_ACCRUED = "PRINCIPAL_PLUS_ACCRUED"


def _env(name: str, default: str | None = None) -> str | None:
    return os.getenv(f"{ENV_PREFIX}{name}", default)


def _env_bool(name: str, default: bool = False) -> bool:
    """Interpret environment variable values as booleans."""

    value = _env(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int | None) -> int | None:
    value = _env(name)
    if value is None or value.strip() == "":
        return default
    try:
        return int(value)
    except ValueError as exc:
        raise ValueError(f"{ENV_PREFIX}{name} must be an integer, got {value!r}") from exc


def _env_decimal(name: str, default: str) -> Decimal:
    value = _env(name, default) or default
    try:
        return Decimal(value)
    except InvalidOperation as exc:
        raise ValueError(f"{ENV_PREFIX}{name} must be a decimal, got {value!r}") from exc


class BaseConfig:
    """Base configuration shared across environments."""

    APP_NAME = "TimeDeposit"
    DB_FILENAME = "timedeposit.db"
    DEBUG = False
    TESTING = False
    DEFAULT_DEV_MODE = False

    def __init__(self) -> None:
        self.SECRET_KEY = _env("SECRET_KEY", "replace-me")
        self.DEV_MODE = _env_bool("DEV_MODE", default=self.DEFAULT_DEV_MODE)
        self.DATA_DIR = self._resolve_data_dir()
        self.DATABASE_URL = _env("DATABASE_URL") or self._build_sqlite_url()

        # Contract limits
        self.MIN_PRINCIPAL = _env_decimal("MIN_PRINCIPAL", "500")
        self.MAX_PRINCIPAL = _env_decimal("MAX_PRINCIPAL", "5000000")
        self.MIN_TERM_DAYS = _env_int("MIN_TERM_DAYS", 31)
        self.MAX_TERM_DAYS = _env_int("MAX_TERM_DAYS", 1800)

        # Pricing
        self.FALLBACK_RATE = _env_decimal("FALLBACK_RATE", "2.50")
        rate_path = _env("RATE_TABLE_PATH")
        self.RATE_TABLE_PATH = Path(rate_path).expanduser() if rate_path else None

        policy = (_env("CANCELLATION_POLICY") or CancellationPolicy.PRINCIPAL_ONLY.value).upper()
        try:
            self.CANCELLATION_POLICY = CancellationPolicy(policy)
        except ValueError as exc:
            raise ValueError(f"Unknown cancellation policy: {policy!r}") from exc

        # Settlement
        self.SCHEDULER_ENABLED = _env_bool("SCHEDULER_ENABLED", default=False)
        self.SETTLEMENT_INTERVAL_SECONDS = _env_int("SETTLEMENT_INTERVAL_SECONDS", 60)
        self.SETTLEMENT_CRON = _env("SETTLEMENT_CRON")
        self.SETTLEMENT_WORKERS = max(1, _env_int("SETTLEMENT_WORKERS", 1) or 1)
        self.SETTLEMENT_DEADLINE_SECONDS = _env_int("SETTLEMENT_DEADLINE_SECONDS", None)

        if not self.DEV_MODE and not self.TESTING and self.SECRET_KEY == "replace-me":
            raise ValueError("TIMEDEPOSIT_SECRET_KEY must be set in non-dev mode.")

    def _resolve_data_dir(self) -> Path:
        """Return the directory where the SQLite file and logs live."""

        base_path = Path(_env("DATA_DIR", "instance") or "instance").expanduser()
        path = base_path.resolve()
        path.mkdir(parents=True, exist_ok=True)
        return path

    def _build_sqlite_url(self) -> str:
        return f"sqlite:///{self.DATA_DIR / self.DB_FILENAME}"

    def sqlalchemy_engine_options(self) -> dict[str, Any]:
        """Expose engine kwargs for SQLModel to consume."""

        if self.DATABASE_URL.startswith("sqlite"):
            return {"connect_args": {"check_same_thread": False, "timeout": 30}}
        return {"pool_pre_ping": True}

    def limits(self) -> dict[str, Any]:
        """Contract limits as reported to API clients."""

        return {
            "min_principal": str(self.MIN_PRINCIPAL),
            "max_principal": str(self.MAX_PRINCIPAL),
            "min_term_days": self.MIN_TERM_DAYS,
            "max_term_days": self.MAX_TERM_DAYS,
        }


class DevConfig(BaseConfig):
    """Development configuration using local SQLite and a minute-level settlement loop."""

    DEBUG = True
    DEFAULT_DEV_MODE = True


class TestConfig(BaseConfig):
    """Configuration used by the test-suite; never starts the scheduler."""

    __test__ = False  # not a pytest test class
    TESTING = True
    DEFAULT_DEV_MODE = True

    def __init__(self) -> None:
        super().__init__()
        self.SCHEDULER_ENABLED = False
