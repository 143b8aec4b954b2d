#!/usr/bin/env python

"""Configure the loguru logger for CLI tools."""

import sys
from loguru import logger

LOG_FORMAT = (
    "<level>{level:<7}</level> | "
    "<cyan>{module}</cyan> | "
    "<level>{message}</level>"
)


def set_log_level(log_level: str = "INFO") -> None:
    """Replace the default sink with a stderr sink at log_level."""
    logger.remove()
    logger.add(
        sys.stderr,
        level=log_level.upper(),
        format=LOG_FORMAT,
        colorize=sys.stderr.isatty(),
    )