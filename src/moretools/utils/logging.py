"""Log file setup for the ``moretools`` command and embedding applications.

Handlers are attached to the ``moretools`` package logger rather than the
root logger, so an application embedding the menus keeps its own logging
configuration. Calling :func:`setup_logging` again replaces the handlers it
installed earlier and leaves every other handler alone.
"""

from __future__ import annotations

import logging
import logging.handlers
import os
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:  # pragma: no cover - imports for type checking only
    from ..config import MoreToolsConfig

__all__ = ["PACKAGE_LOGGER", "setup_logging", "log_file_path"]

PACKAGE_LOGGER = "moretools"
LOG_FILE_NAME = "moretools.log"
_DEFAULT_LOG_DIR = Path.home() / ".moretools" / "logs"
_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
# per-listener delivery lines from the event bus
_CHATTY_LOGGERS: tuple[str, ...] = ("moretools.events",)

_installed: list[logging.Handler] = []
_log_path: Path | None = None


def log_file_path(log_dir: Path | str | None = None) -> Path:
    """Return the log file used for ``log_dir``, ``MORETOOLS_LOG_DIR`` or the default."""

    directory = log_dir or os.environ.get("MORETOOLS_LOG_DIR") or _DEFAULT_LOG_DIR
    return Path(directory).expanduser() / LOG_FILE_NAME


def setup_logging(
    config: MoreToolsConfig | None = None,
    *,
    debug: bool | None = None,
    console: bool = True,
    max_bytes: int = 512_000,
    backup_count: int = 2,
    force: bool = False,
) -> Path:
    """Send ``moretools`` log records to a rotating file and optionally stderr.

    The level is DEBUG when ``debug`` (or, if that is ``None``,
    ``config.debug_logging``) is true and WARNING otherwise. Without ``force``
    a second call keeps the existing handlers and returns the current path.
    """

    global _log_path
    if _installed and not force and _log_path is not None:
        return _log_path

    if debug is None:
        debug = bool(config and config.debug_logging)
    level = logging.DEBUG if debug else logging.WARNING
    path = log_file_path(config.log_dir if config is not None else None)
    path.parent.mkdir(parents=True, exist_ok=True)

    package_logger = logging.getLogger(PACKAGE_LOGGER)
    _remove_installed(package_logger)

    formatter = logging.Formatter(_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
    handlers: list[logging.Handler] = [
        logging.handlers.RotatingFileHandler(path, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8")
    ]
    if console:
        handlers.append(logging.StreamHandler())
    for handler in handlers:
        handler.setFormatter(formatter)
        handler.setLevel(level)
        package_logger.addHandler(handler)
        _installed.append(handler)
    package_logger.setLevel(level)

    for name in _CHATTY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.INFO))

    _log_path = path
    return path


def _remove_installed(package_logger: logging.Logger) -> None:
    while _installed:
        handler = _installed.pop()
        package_logger.removeHandler(handler)
        handler.close()
