#!/usr/bin/env python

"""scoleco: comparative phylogenetics of blind-snake families.

Subpackages
-----------
seqlab    load, reconcile, label and align sequences
traitlab  filter diet records and summarize prey per family
treelab   infer ML/NJ trees and compare them
cli       the `scoleco` command and its subcommands
"""

from __future__ import annotations
from typing import Final
from importlib.metadata import PackageNotFoundError, version

DIST_NAME: Final[str] = "scoleco"

try:
    __version__: str = version(DIST_NAME)
except PackageNotFoundError:  # running from a source checkout
    __version__ = "0.0.0+unknown"
