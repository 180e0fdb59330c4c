import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

from app.core.config import settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

_configured = False


def setup_logging(level: str | None = None, log_file: str | None = None) -> logging.Logger:
    """
    Configures the root logger with console output and, when a log file is
    configured, a rotating file handler. Safe to call more than once.
    """
    global _configured

    root = logging.getLogger()
    root.setLevel((level or settings.log_level).upper())

    # Handlers are installed once per process; uvicorn reloads call this again.
    if _configured:
        return root

    formatter = logging.Formatter(LOG_FORMAT)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    root.addHandler(console_handler)

    target = log_file if log_file is not None else settings.log_file
    if target:
        path = Path(target)
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            path, maxBytes=5 * 1024 * 1024, backupCount=3, encoding="utf-8"  # 5 MB
        )
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)

    _configured = True
    return root
