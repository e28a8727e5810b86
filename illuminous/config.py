from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

PACKAGE_DIR = Path(__file__).resolve().parent
ROOT_DIR = PACKAGE_DIR.parent
load_dotenv(dotenv_path=ROOT_DIR / ".env")

CATALOG_BACKENDS = ("memory", "database")


def _get_env(*keys: str, default: Optional[str] = None) -> Optional[str]:
    for k in keys:
        v = os.getenv(k)
        if v is not None and str(v).strip() != "":
            return v.strip()
    return default


def _get_int(*keys: str, default: int) -> int:
    v = _get_env(*keys, default=None)
    if v is None:
        return default
    return int(v)


def _get_float(*keys: str, default: float) -> float:
    v = _get_env(*keys, default=None)
    if v is None:
        return default
    return float(v)


def _get_bool(*keys: str, default: bool = False) -> bool:
    v = _get_env(*keys, default=None)
    if v is None:
        return default
    return v.lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    max_product_quantity: int = 10
    catalog_backend: str = "memory"
    catalog_file: str = str(PACKAGE_DIR / "data" / "products.json")
    database_url: str = "sqlite+aiosqlite:///./illuminous.db"
    db_echo: bool = False
    added_message_seconds: float = 1.0
    session_cookie: str = "illuminous_session"
    max_sessions: int = 10000
    session_idle_seconds: float = 86400.0
    log_level: str = "INFO"
    log_dir: Optional[str] = None

    def __post_init__(self):
        if self.max_product_quantity < 1:
            raise ValueError("MAX_PRODUCT_QUANTITY must be at least 1")
        if self.catalog_backend not in CATALOG_BACKENDS:
            raise ValueError(
                f"CATALOG_BACKEND must be one of {', '.join(CATALOG_BACKENDS)}, got {self.catalog_backend!r}"
            )
        if self.added_message_seconds < 0:
            raise ValueError("ADDED_MESSAGE_SECONDS must not be negative")
        if self.max_sessions < 1:
            raise ValueError("MAX_SESSIONS must be at least 1")
        if self.session_idle_seconds <= 0:
            raise ValueError("SESSION_IDLE_SECONDS must be positive")


def load_settings() -> Settings:
    defaults = Settings()
    return Settings(
        max_product_quantity=_get_int("MAX_PRODUCT_QUANTITY", default=defaults.max_product_quantity),
        catalog_backend=(_get_env("CATALOG_BACKEND", default=defaults.catalog_backend) or "").lower(),
        catalog_file=_get_env("CATALOG_FILE", default=defaults.catalog_file) or defaults.catalog_file,
        database_url=_get_env("DATABASE_URL", default=defaults.database_url) or defaults.database_url,
        db_echo=_get_bool("DB_ECHO", default=defaults.db_echo),
        added_message_seconds=_get_float("ADDED_MESSAGE_SECONDS", default=defaults.added_message_seconds),
        session_cookie=_get_env("SESSION_COOKIE", default=defaults.session_cookie) or defaults.session_cookie,
        max_sessions=_get_int("MAX_SESSIONS", default=defaults.max_sessions),
        session_idle_seconds=_get_float("SESSION_IDLE_SECONDS", default=defaults.session_idle_seconds),
        log_level=(_get_env("LOG_LEVEL", default=defaults.log_level) or "INFO").upper(),
        log_dir=_get_env("LOG_DIR", default=None),
    )


settings = load_settings()
