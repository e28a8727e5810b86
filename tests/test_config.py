import logging

import pytest

from illuminous.config import Settings, load_settings
from illuminous.logger import LOGGER_NAME, setup_logger


def test_defaults(monkeypatch):
    for key in ("MAX_PRODUCT_QUANTITY", "CATALOG_BACKEND", "ADDED_MESSAGE_SECONDS", "LOG_LEVEL", "LOG_DIR"):
        monkeypatch.delenv(key, raising=False)

    s = load_settings()
    assert s.max_product_quantity == 10
    assert s.catalog_backend == "memory"
    assert s.added_message_seconds == 1.0
    assert s.log_dir is None


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("MAX_PRODUCT_QUANTITY", "4")
    monkeypatch.setenv("CATALOG_BACKEND", "Database")
    monkeypatch.setenv("DB_ECHO", "yes")
    monkeypatch.setenv("SESSION_COOKIE", "  cart  ")
    monkeypatch.setenv("LOG_LEVEL", "debug")
    monkeypatch.setenv("MAX_SESSIONS", "50")
    monkeypatch.setenv("SESSION_IDLE_SECONDS", "600")

    s = load_settings()
    assert s.max_product_quantity == 4
    assert s.catalog_backend == "database"
    assert s.db_echo is True
    assert s.session_cookie == "cart"
    assert s.log_level == "DEBUG"
    assert s.max_sessions == 50
    assert s.session_idle_seconds == 600.0


@pytest.mark.parametrize(
    "kwargs",
    [
        {"max_product_quantity": 0},
        {"catalog_backend": "redis"},
        {"added_message_seconds": -1},
        {"max_sessions": 0},
        {"session_idle_seconds": 0},
    ],
)
def test_invalid_settings(kwargs):
    with pytest.raises(ValueError):
        Settings(**kwargs)


def test_invalid_env_value(monkeypatch):
    monkeypatch.setenv("MAX_PRODUCT_QUANTITY", "lots")
    with pytest.raises(ValueError):
        load_settings()


def test_setup_logger_is_idempotent(tmp_path):
    logger = logging.getLogger(LOGGER_NAME)
    saved = list(logger.handlers)
    for h in saved:
        logger.removeHandler(h)
    try:
        first = setup_logger("INFO", str(tmp_path / "logs"))
        count = len(first.handlers)
        second = setup_logger("INFO", str(tmp_path / "logs"))

        assert first is second
        assert count == 2
        assert len(second.handlers) == count
        assert (tmp_path / "logs" / "storefront.log").exists()
    finally:
        for h in list(logger.handlers):
            h.close()
            logger.removeHandler(h)
        for h in saved:
            logger.addHandler(h)
