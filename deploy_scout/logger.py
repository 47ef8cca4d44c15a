# === FILE: deploy_scout/logger.py ===
"""Logging for DeployScout.

All modules log through the one ``DeployScout`` logger exported here::

    from deploy_scout.logger import logger
    logger.info("Crawl started: %s", url)

Records go to stderr, since stdout carries the JSON recommendation, and
optionally to a size-rotated file. The CLI calls :func:`init_logging` once per
invocation with the level and file chosen on the command line.
"""
from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Final, Union

# --------------------------------------------------------------------------- #
# Settings                                                                    #
# --------------------------------------------------------------------------- #

_DEFAULT_FORMAT: Final[str] = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
_LOGGER_NAME: Final[str] = "DeployScout"
LOG_FILE_MAX_BYTES: Final[int] = 5 * 1024 * 1024
LOG_FILE_BACKUPS: Final[int] = 3

_LevelT = Union[int, str]


# --------------------------------------------------------------------------- #
# Handlers                                                                    #
# --------------------------------------------------------------------------- #


def _stderr_handler(fmt: str) -> logging.StreamHandler:
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(fmt))
    return handler


def _rotating_handler(path: Path | str, fmt: str) -> RotatingFileHandler:
    handler = RotatingFileHandler(
        filename=str(path),
        maxBytes=LOG_FILE_MAX_BYTES,
        backupCount=LOG_FILE_BACKUPS,
        encoding="utf-8",
    )
    handler.setFormatter(logging.Formatter(fmt))
    return handler


# --------------------------------------------------------------------------- #
# Configuration                                                               #
# --------------------------------------------------------------------------- #


def configure(
    *,
    level: _LevelT = "INFO",
    log_file: str | Path | None = None,
    log_format: str = _DEFAULT_FORMAT,
    replace_handlers: bool = True,
) -> logging.Logger:
    """Set level and handlers of the ``DeployScout`` logger.

    Parameters
    ----------
    level
        Level name such as ``"DEBUG"``, or its numeric value.
    log_file
        Also write to this file, rotated at 5 MiB with three backups.
    log_format
        :class:`logging.Formatter` format shared by every handler.
    replace_handlers
        Close and drop the handlers installed by an earlier call first.
    """
    lg = logging.getLogger(_LOGGER_NAME)
    lg.setLevel(level)

    if replace_handlers:
        for handler in list(lg.handlers):
            lg.removeHandler(handler)
            handler.close()

    lg.addHandler(_stderr_handler(log_format))
    if log_file is not None:
        lg.addHandler(_rotating_handler(log_file, log_format))

    lg.propagate = False
    return lg


def init_logging(
    level: _LevelT = "INFO",
    log_file: str | Path | None = None,
    log_format: str = _DEFAULT_FORMAT,
) -> logging.Logger:
    """Fresh configuration for one CLI run; earlier handlers are replaced."""
    return configure(level=level, log_file=log_file, log_format=log_format, replace_handlers=True)


# warnings only until the CLI configures something else
logger: logging.Logger = init_logging(level="WARNING")

__all__ = ["logger", "configure", "init_logging", "LOG_FILE_MAX_BYTES", "LOG_FILE_BACKUPS"]
