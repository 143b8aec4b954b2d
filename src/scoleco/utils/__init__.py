#!/usr/bin/env python

"""Shared logging, error and path utilities."""

from .exceptions import ScolecoError, EmptyReconciledSetError
from .logger_setup import set_log_level
