#!/usr/bin/env python

"""Parse a FASTA collection into SequenceRecords.

Each entry keeps its full header and raw sequence, and an organism name
parsed from the 2nd and 3rd whitespace-delimited header tokens, e.g.,

>AB123456.1 Liotyphlops beu 16S ribosomal RNA gene
-> name = 'Liotyphlops beu'

Headers with fewer than three tokens get an empty name. They are kept
and simply fail to match any diet record downstream. No deduplication
or family assignment happens here, and entries are returned in file
order.
"""

from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, List, Tuple
from loguru import logger
from scoleco.utils.exceptions import ScolecoError
from scoleco.utils.path_utils import check_input, xopen


@dataclass(frozen=True)
class SequenceRecord:
    header: str
    sequence: str
    name: str


def iter_fasta(path: Path) -> Iterator[Tuple[str, str]]:
    """Yield (header, sequence) pairs in file order.

    Multi-line sequences are joined. Duplicate headers are allowed,
    unlike in a {header: seq} dict.
    """
    header = None
    chunks: List[str] = []
    with xopen(path) as data:
        for line in data:
            line = line.strip()
            if not line:
                continue
            if line.startswith(">"):
                if header is not None:
                    yield header, "".join(chunks)
                header = line[1:].strip()
                chunks = []
            else:
                if header is None:
                    raise ScolecoError(f"FASTA {path} starts with sequence before any header")
                chunks.append(line)
    if header is not None:
        yield header, "".join(chunks)


def get_organism_name(header: str) -> str:
    """Return the binomial from header tokens 2-3, or '' if too short."""
    tokens = header.lstrip(">").split()
    if len(tokens) < 3:
        return ""
    return " ".join(tokens[1:3])


def parse_records(entries) -> List[SequenceRecord]:
    """Return SequenceRecords from an iterable of (header, sequence)."""
    records = []
    for header, sequence in entries:
        name = get_organism_name(header)
        if not name:
            logger.debug(f"malformed header, no organism name: '{header}'")
        records.append(SequenceRecord(header=header, sequence=sequence, name=name))
    return records


def load_sequences(path: Path) -> List[SequenceRecord]:
    """Return SequenceRecords for every entry in a (gzipped) FASTA file."""
    path = check_input(path, "fasta")
    records = parse_records(iter_fasta(path))
    logger.info(f"loaded {len(records)} sequences from {Path(path).name}")
    return records


if __name__ == "__main__":
    pass
