import logging
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path
from typing import Optional

LOGGER_NAME = "illuminous"


def setup_logger(level: str = "INFO", log_dir: Optional[str] = None) -> logging.Logger:
    """
    Configure the storefront's root logger.

    - Console output, plus a daily rotating file when ``log_dir`` is given
    - Unified log format with timestamp and level
    - Safe to call more than once: handlers are only attached the first time
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)

    if logger.handlers:
        return logger

    formatter = logging.Formatter(
        fmt="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_dir:
        directory = Path(log_dir)
        directory.mkdir(parents=True, exist_ok=True)
        file_handler = TimedRotatingFileHandler(
            filename=directory / "storefront.log",
            when="midnight",
            interval=1,
            backupCount=7,
            encoding="utf-8",
        )
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    logger.info("Logger initialized (level=%s, file=%s)", level, bool(log_dir))
    return logger
