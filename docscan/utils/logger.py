"""Logging setup shared by the scanner, the API and the CLI.

Scanner modules log through named loggers from :func:`get_logger`; the
entry points call :func:`setup_logging` once with the configured level.
HTTP client libraries are held at WARNING or above because their request
logs carry the collaborator endpoints on every call.
"""

import logging
import sys
from collections.abc import Iterable

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
QUIET_LOGGERS = ("httpx", "httpcore", "multipart", "python_multipart")


def setup_logging(level: str = "INFO", quiet: Iterable[str] = QUIET_LOGGERS) -> None:
    """Install a stdout handler on the root logger.

    Args:
        level: Logging level name; unknown names fall back to INFO.
        quiet: Library loggers kept at WARNING or above.
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    for name in quiet:
        logging.getLogger(name).setLevel(max(numeric_level, logging.WARNING))

    root = logging.getLogger()
    if root.handlers:
        return

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    root.addHandler(handler)
    root.setLevel(numeric_level)


def get_logger(name: str) -> logging.Logger:
    """Return the logger for ``name``, usually the caller's ``__name__``."""
    return logging.getLogger(name)
