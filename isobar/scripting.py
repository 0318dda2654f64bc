"""Logging setup for scripts running isobar treatments."""

from __future__ import annotations
import logging
import logging.config
import os
from pathlib import Path


logger = logging.getLogger("isobar")

__all__ = ["configure_logging", "logging_config"]

_CONSOLE_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
_LOGFILE_FORMAT = "%(asctime)s: [%(levelname)s]: %(name)s(%(funcName)s:%(lineno)s) >>> %(message)s"


def logging_config(
    level: str | int = "INFO",
    log_file: str | os.PathLike | None = None,
    max_bytes: int = 2 * 1024 * 1024,
    backup_count: int = 10,
) -> dict:
    """
    Build a :py:func:`logging.config.dictConfig` dictionary for the `isobar` loggers.

    Only the `isobar` logger is configured, so loggers of the calling application are left as they are.

    Parameters
    ----------
    level : str or int
        Level of the console handler.
    log_file : str or os.PathLike, optional
        Rotating log file receiving every message, including DEBUG. No file is written if not given.
    max_bytes : int
        Size at which the log file is rotated.
    backup_count : int
        Number of rotated log files kept.

    Returns
    -------
    dict
    """
    if isinstance(level, str):
        level = level.upper()
        if not isinstance(logging.getLevelName(level), int):
            msg = f"Unknown logging level `{level}`."
            raise ValueError(msg)

    handlers = {
        "console": {
            "level": level,
            "formatter": "console",
            "class": "logging.StreamHandler",
            "stream": "ext://sys.stdout",
        }
    }
    if log_file is not None:
        handlers["rotated_file"] = {
            "level": "DEBUG",
            "formatter": "logfile",
            "class": "logging.handlers.RotatingFileHandler",
            "filename": str(Path(log_file).expanduser()),
            "maxBytes": max_bytes,
            "backupCount": backup_count,
            "delay": True,
        }

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "console": {"format": _CONSOLE_FORMAT},
            "logfile": {"format": _LOGFILE_FORMAT},
        },
        "handlers": handlers,
        "loggers": {
            "isobar": {
                "handlers": list(handlers),
                "level": "DEBUG" if log_file is not None else level,
                "propagate": False,
            },
        },
    }


def configure_logging(
    level: str | int = "INFO",
    log_file: str | os.PathLike | None = None,
    **kwargs,
) -> None:
    """
    Send the messages of the `isobar` loggers to the console and, optionally, to a rotating log file.

    Importing isobar never configures logging. Scripts call this once before running treatments.

    Parameters
    ----------
    level : str or int
        Level of the console handler.
    log_file : str or os.PathLike, optional
        Rotating log file receiving every message, including DEBUG.
    kwargs
        Passed to :py:func:`logging_config`.
    """
    logging.config.dictConfig(logging_config(level=level, log_file=log_file, **kwargs))
    if log_file is not None:
        msg = f"Logging isobar messages to `{log_file}`."
        logger.debug(msg)
