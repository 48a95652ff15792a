"""
Logging Configuration

Logging setup for the telemetry service entry points (HTTP front end, demo).
Library modules only call ``logging.getLogger(__name__)``; handlers are
attached here, once, by whichever entry point runs.

Usage:
    from telemetry_service.logging_config import configure_logging

    configure_logging("DEBUG", log_file="telemetry.log")
"""

import logging
import os
import sys
from pathlib import Path
from typing import Optional, Union

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Chatty third-party loggers kept at WARNING
QUIET_LOGGERS = ("urllib3", "werkzeug")


def resolve_level(level: Union[int, str, None]) -> int:
    """Logging level from an int, a level name, or the LOG_LEVEL environment variable."""
    if level is None:
        level = os.getenv("LOG_LEVEL", "INFO")
    if isinstance(level, str):
        return getattr(logging, level.upper(), logging.INFO)
    return level


def configure_logging(level: Union[int, str, None] = None, log_file: Optional[str] = None) -> None:
    """
    Configure the root logger.

    Parameters
    ----------
    level : int or str, optional
        Logging level (e.g. logging.DEBUG or "DEBUG"). Defaults to $LOG_LEVEL or INFO.
    log_file : str, optional
        Path to log file. If None, logs only to console.
    """
    handlers = [logging.StreamHandler(sys.stdout)]

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=resolve_level(level),
        format=LOG_FORMAT,
        datefmt=DATE_FORMAT,
        handlers=handlers,
        force=True,
    )

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
