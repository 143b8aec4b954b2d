#!/usr/bin/env python

"""Simple utilities for file paths.

"""

import gzip
from pathlib import Path
from scoleco.utils.exceptions import ScolecoError


def xopen(path: Path, mode: str = "rt"):
    """Return an open file handle, using gzip for .gz suffixes."""
    path = Path(path)
    if path.suffix == ".gz":
        return gzip.open(path, mode=mode)
    return open(path, mode=mode)


def check_input(path: Path, label: str = "input") -> Path:
    """Return the expanded path or raise if it is not an existing file."""
    path = Path(path).expanduser()
    if not (path.exists() and path.is_file()):
        raise ScolecoError(f"{label} file '{path}' not found")
    return path


if __name__ == "__main__":
    pass
