# catalog_browser/config/logging_config.py

"""Session logging for catalog_browser.

A browsing session writes one file, ``<logs_dir>/run_<YYYYmmdd_HHMMSS>.log``,
shared by every ``catalog_browser.*`` logger.  The terminal belongs to the
TUI, so stderr only carries warnings and errors.
"""

import logging
import sys
from datetime import datetime
from pathlib import Path

from catalog_browser.config.settings import Settings

ROOT_LOGGER = "catalog_browser"

_FILE_FORMAT = (
    "%(asctime)s | %(levelname)-8s | %(name)s | "
    "%(module)s:%(funcName)s:%(lineno)d | %(message)s"
)
_STDERR_FORMAT = "%(levelname)-8s | %(name)s | %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _session_file(root: logging.Logger) -> Path | None:
    """The log file an earlier call attached, if any."""
    for handler in root.handlers:
        if isinstance(handler, logging.FileHandler):
            return Path(handler.baseFilename)
    return None


def _handler(
    handler: logging.Handler, level: int, fmt: str,
) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt, datefmt=_DATE_FORMAT))
    return handler


def setup_logging(logs_dir: Path | None = None) -> Path:
    """Attach the session file and stderr handlers to ``catalog_browser``.

    Calling it again in the same process keeps the existing handlers and
    returns the file already in use.

    Args:
        logs_dir: Where to create the session log. Defaults to
            ``Settings.LOGS_DIR``.

    Returns:
        Path of the session log file.
    """
    root = logging.getLogger(ROOT_LOGGER)
    root.setLevel(logging.DEBUG)

    existing = _session_file(root)
    if existing is not None:
        return existing

    target_dir = logs_dir or Settings.LOGS_DIR
    target_dir.mkdir(parents=True, exist_ok=True)
    stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    log_file = target_dir / f"run_{stamp}.log"

    root.addHandler(_handler(
        logging.FileHandler(log_file, encoding="utf-8"),
        logging.DEBUG,
        _FILE_FORMAT,
    ))
    root.addHandler(_handler(
        logging.StreamHandler(sys.stderr),
        logging.WARNING,
        _STDERR_FORMAT,
    ))

    root.info("Session log: %s", log_file)
    return log_file
