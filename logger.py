"""
logger.py
---------
Application-wide logging configuration.

Output streams:
    stdout belongs to the CLI's results: generated DDL/DML scripts, JSON
    documents, database and table listings.  Nothing in this module ever
    writes there, so ``dbdiff schema ... > fix.sql`` or
    ``dbdiff data ... | mysql shop`` receive SQL only.

    stderr carries every log record.  Connection open/close and diff
    tallies are logged at INFO, per-table snapshot progress at DEBUG, and
    failed statements at ERROR with the SQL (truncated) attached.  Use
    ``--log-level WARNING`` to keep a cron job's stderr quiet.

Design Decisions:
    * A single root logger ("dbdiff") is configured once at import time.
    * All modules obtain a child logger via ``get_logger(__name__)``.
    * Optional file handler appends lines to a persistent log file
      (path set via the LOG_FILE env variable).  It always records DEBUG,
      regardless of ``--log-level``, so a quiet console run still leaves
      the per-table trace behind.
"""
from __future__ import annotations

import logging
import sys
from pathlib import Path

from config import CONFIG, get_log_level

_ROOT_LOGGER_NAME = "dbdiff"
_CONSOLE_FORMAT = "%(asctime)s [%(levelname)-8s] %(name)s: %(message)s"
_FILE_FORMAT = "%(asctime)s [%(levelname)s] %(name)s (%(filename)s:%(lineno)d): %(message)s"
_DATE_FORMAT = "%Y-%m-%dT%H:%M:%S"

_configured = False


def _configure_root_logger() -> None:
    """One-time setup of the root 'dbdiff' logger and its handlers."""
    global _configured
    if _configured:
        return
    _configured = True

    root = logging.getLogger(_ROOT_LOGGER_NAME)
    root.setLevel(get_log_level())

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(get_log_level())
    console_handler.setFormatter(
        logging.Formatter(fmt=_CONSOLE_FORMAT, datefmt=_DATE_FORMAT)
    )
    root.addHandler(console_handler)

    if CONFIG.diff.log_file:
        log_path = Path(CONFIG.diff.log_file)
        try:
            log_path.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(log_path, encoding="utf-8")
            file_handler.setLevel(logging.DEBUG)
            file_handler.setFormatter(
                logging.Formatter(fmt=_FILE_FORMAT, datefmt=_DATE_FORMAT)
            )
            root.addHandler(file_handler)
        except OSError as exc:
            root.warning("Could not create log file '%s': %s", log_path, exc)


_configure_root_logger()


def set_level(level: int | str) -> None:
    """Override the level of the root logger and its handlers (CLI ``--log-level``)."""
    root = logging.getLogger(_ROOT_LOGGER_NAME)
    root.setLevel(level)
    for handler in root.handlers:
        if isinstance(handler, logging.FileHandler):
            continue
        handler.setLevel(level)


def get_logger(name: str) -> logging.Logger:
    """
    Return a child logger scoped to the given name.

    Args:
        name: Typically ``__name__`` of the calling module.

    Returns:
        A :class:`logging.Logger` instance under the 'dbdiff' hierarchy.

    Example::

        log = get_logger(__name__)
        log.info("Snapshot started")
        log.error("Fatal error", exc_info=True)
    """
    return logging.getLogger(f"{_ROOT_LOGGER_NAME}.{name}")
