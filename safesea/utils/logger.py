"""Logging setup for the SafeSea client."""

import logging
import re
import sys
from pathlib import Path
from typing import Optional, Union

LOGGER_NAME = "safesea"

_BEARER_RE = re.compile(r"(Bearer\s+)[^\s'\",}]+", re.IGNORECASE)


class RedactBearerFilter(logging.Filter):
    """Masks bearer tokens in rendered messages before any handler writes them."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        redacted = _BEARER_RE.sub(r"\1***", message)
        if redacted != message:
            record.msg = redacted
            record.args = None
        return True


def setup_logger(
    name: str = LOGGER_NAME,
    level: Union[int, str] = logging.INFO,
    log_file: Optional[Path] = None,
) -> logging.Logger:
    """
    Configure and return the client logger.

    Every handler carries a RedactBearerFilter. Calling again for a logger that
    already has handlers returns it unchanged.

    Args:
        name: Logger name.
        level: Level as an int or a name such as "DEBUG".
        log_file: Optional file that receives a copy of the stderr output
            (SAFESEA_LOG_FILE).
    """
    log = logging.getLogger(name)
    if log.handlers:
        return log

    log.setLevel(level.upper() if isinstance(level, str) else level)
    fmt = logging.Formatter(
        "%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    redact = RedactBearerFilter()

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))

    for handler in handlers:
        handler.setFormatter(fmt)
        handler.addFilter(redact)
        log.addHandler(handler)
    return log


def get_logger(name: str = LOGGER_NAME) -> logging.Logger:
    """Return the client logger (or a named child such as "safesea.http")."""
    return logging.getLogger(name)
