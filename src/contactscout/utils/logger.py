"""
Logging setup for contactscout scripts.

Library modules only call logging.getLogger(__name__); handlers are attached
here, once, by whichever entry point is running.
"""
from __future__ import annotations

import logging
import os
from typing import Optional

from contactscout.config import Settings, get_settings

_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logger(name: str = "contactscout", settings: Optional[Settings] = None) -> logging.Logger:
    """
    Configure the `name` logger with a console handler and, when
    `settings.log_file` is set, a DEBUG-level file handler.

    Calling this twice does not duplicate handlers.

    Args:
        name:     Logger name (the package root by default).
        settings: Settings to read log_level / log_file from.

    Returns:
        Configured logger instance.
    """
    s = settings or get_settings()

    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, s.log_level.upper(), logging.INFO))
    if logger.handlers:
        return logger

    formatter = logging.Formatter(_FORMAT)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(logger.level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if s.log_file:
        log_dir = os.path.dirname(s.log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        file_handler = logging.FileHandler(s.log_file)
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger
