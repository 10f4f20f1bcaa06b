from __future__ import annotations

import os
from dataclasses import dataclass


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    try:
        return int(raw) if raw else default
    except ValueError:
        return default


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name, "").strip()
    try:
        return float(raw) if raw else default
    except ValueError:
        return default


@dataclass(frozen=True)
class Settings:
    data_url: str
    archive_url: str
    archive_start_year: int
    live_url: str
    fetch_timeout: float
    cache_db_path: str
    reconcile_cooldown: float
    pack_expansion_limit: int
    app_env: str
    log_level: str

    @property
    def expose_errors(self) -> bool:
        # Error detail is only returned outside production
        return self.app_env != "production"


def load_settings() -> Settings:
    return Settings(
        data_url=os.getenv("LOTTERY_DATA_URL", "http://localhost:8000/data/lottery-data.json"),
        archive_url=os.getenv("LOTTERY_ARCHIVE_URL", "http://localhost:8000/data/{year}.zip"),
        archive_start_year=_int_env("ARCHIVE_START_YEAR", 2021),
        live_url=os.getenv("LOTTERY_LIVE_URL", "").strip(),
        fetch_timeout=_float_env("FETCH_TIMEOUT", 30.0),
        cache_db_path=os.getenv("CACHE_DB_PATH", "./data/cache.sqlite"),
        reconcile_cooldown=_float_env("RECONCILE_COOLDOWN", 5.0),
        pack_expansion_limit=_int_env("PACK_EXPANSION_LIMIT", 1000),
        app_env=os.getenv("APP_ENV", "development").strip().lower(),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )
