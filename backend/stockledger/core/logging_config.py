import logging
import sys
from logging.handlers import RotatingFileHandler
from typing import Optional

from stockledger.core.config import settings


def setup_logging(log_level: Optional[str] = None) -> logging.Logger:
    """
    Sets up the package logger with console (StreamHandler) and file (RotatingFileHandler) output.
    The "audit" logger shares the same handlers.
    """
    level = getattr(logging, (log_level or settings.LOG_LEVEL).upper(), logging.INFO)
    logger = logging.getLogger("stockledger")
    logger.setLevel(level)

    # Prevent adding handlers multiple times if logger is already set up
    if logger.handlers:
        return logger

    console_format = logging.Formatter("%(levelname)s %(name)s: %(message)s")
    file_format = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(console_format)

    log_dir = settings.LOG_DIR
    log_dir.mkdir(parents=True, exist_ok=True)
    file_handler = RotatingFileHandler(
        log_dir / "stockledger.log", maxBytes=5 * 1024 * 1024, backupCount=3, encoding="utf-8"  # 5 MB
    )
    file_handler.setLevel(level)
    file_handler.setFormatter(file_format)

    audit_logger = logging.getLogger("audit")
    audit_logger.setLevel(logging.INFO)
    for handler in (console_handler, file_handler):
        logger.addHandler(handler)
        audit_logger.addHandler(handler)

    return logger
