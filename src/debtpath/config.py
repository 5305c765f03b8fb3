"""Application configuration objects and helpers."""

from __future__ import annotations

import math
import os
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: bool = False) -> bool:
    """Interpret environment variable values as booleans."""

    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return int(value)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {value!r}") from exc


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        parsed = float(value)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number, got {value!r}") from exc
    if not math.isfinite(parsed):
        raise ValueError(f"{name} must be finite, got {value!r}")
    return parsed


class BaseConfig:
    """Base configuration shared across environments."""

    APP_NAME = "DebtPath"
    DB_FILENAME = "debtpath.db"

    def __init__(self) -> None:
        self.DATA_DIR = self._resolve_data_dir()
        self.DEV_MODE = _env_bool("DEBTPATH_DEV_MODE", default=True)
        self.DATABASE_URL = os.getenv("DEBTPATH_DATABASE_URL", self._build_sqlite_url())

        # Payoff engine defaults
        self.MONTH_CAP = _env_int("DEBTPATH_MONTH_CAP", 600)
        self.PAYOFF_EPSILON = _env_float("DEBTPATH_PAYOFF_EPSILON", 0.01)
        self.SAFE_EXTRA_RATIO = _env_float("DEBTPATH_SAFE_EXTRA_RATIO", 0.2)
        self.PREVIEW_MONTHS = _env_int("DEBTPATH_PREVIEW_MONTHS", 48)
        self._validate_engine_settings()

    def _validate_engine_settings(self) -> None:
        if self.MONTH_CAP <= 0:
            raise ValueError("DEBTPATH_MONTH_CAP must be positive.")
        if self.PAYOFF_EPSILON <= 0:
            raise ValueError("DEBTPATH_PAYOFF_EPSILON must be positive.")
        if not 0 <= self.SAFE_EXTRA_RATIO <= 1:
            raise ValueError("DEBTPATH_SAFE_EXTRA_RATIO must be between 0 and 1.")
        if self.PREVIEW_MONTHS < 0:
            raise ValueError("DEBTPATH_PREVIEW_MONTHS must not be negative.")

    def _resolve_data_dir(self) -> Path:
        """Return the directory where the SQLite file and logs live."""

        data_root = os.getenv("DEBTPATH_DATA_DIR", "instance")
        base_path = Path(data_root).expanduser()
        try:
            path = base_path.resolve()
            path.mkdir(parents=True, exist_ok=True)
            return path
        except PermissionError:
            # Protected install locations fall back to user-local storage.
            fallback_path = Path.home() / ".local" / "share" / self.APP_NAME
            fallback_path.mkdir(parents=True, exist_ok=True)
            return fallback_path.resolve()

    def _build_sqlite_url(self) -> str:
        """Construct the default SQLite URL inside the data directory."""

        db_path = self.DATA_DIR / self.DB_FILENAME
        return f"sqlite:///{db_path}"

    def sqlalchemy_engine_options(self) -> dict[str, Any]:
        """Expose engine kwargs for SQLModel to consume."""

        connect_args: dict[str, Any] = {}
        if self.DATABASE_URL.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        return {"connect_args": connect_args}


class DevConfig(BaseConfig):
    """Development configuration using local SQLite."""

    DEBUG = True
    TESTING = False


class TestConfig(BaseConfig):
    """Configuration for the test suite: in-memory database, quiet console."""

    __test__ = False  # keep pytest from collecting this class

    DEBUG = False
    TESTING = True

    def __init__(self) -> None:
        super().__init__()
        self.DATABASE_URL = "sqlite://"
        self.DEV_MODE = False
