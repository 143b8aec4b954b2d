#!/usr/bin/env python

"""Exceptions raised by scoleco tools.

A ScolecoError is reported by the CLI as a single error line with no
traceback. Any other exception is logged and re-raised.
"""


class ScolecoError(Exception):
    """Base error for invalid inputs or failed steps."""


class EmptyReconciledSetError(ScolecoError):
    """No sequence could be assigned to a family, so nothing can be aligned."""
