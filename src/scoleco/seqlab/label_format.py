#!/usr/bin/env python

"""Build display labels 'Genus species (Family)' for reconciled records.

The labels are used as FASTA headers for the aligner, so they must be
unique. The {label: sequence} dict keeps input order.
"""

from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Sequence
from loguru import logger
from scoleco.utils.exceptions import ScolecoError


@dataclass(frozen=True)
class LabeledSequenceRecord:
    header: str
    sequence: str
    name: str
    family: str
    label: str


def format_label(name: str, family: str) -> str:
    """Return e.g. 'Liotyphlops beu (Anomalepididae)'."""
    return f"{name} ({family})"


def label_sequences(records: Sequence) -> List[LabeledSequenceRecord]:
    """Return LabeledSequenceRecords for family-annotated records.

    Raises ScolecoError if a record has no family or two records share
    a label.
    """
    labeled = []
    seen = set()
    for rec in records:
        if not rec.family:
            raise ScolecoError(f"cannot label '{rec.header}': no family assigned")
        label = format_label(rec.name, rec.family)
        if label in seen:
            raise ScolecoError(f"duplicate display label '{label}'")
        seen.add(label)
        labeled.append(
            LabeledSequenceRecord(
                header=rec.header,
                sequence=rec.sequence,
                name=rec.name,
                family=rec.family,
                label=label,
            )
        )
    logger.debug(f"labeled {len(labeled)} sequences")
    return labeled


def get_label_to_seq_dict(records: Sequence[LabeledSequenceRecord]) -> Dict[str, str]:
    """Return {label: sequence} in record order."""
    return {rec.label: rec.sequence for rec in records}


def write_labeled_fasta(records: Sequence[LabeledSequenceRecord], out) -> None:
    """Write records as FASTA with labels as headers to a path or handle."""
    fasta = "".join(f">{label}\n{seq}\n" for (label, seq) in get_label_to_seq_dict(records).items())
    if isinstance(out, (str, Path)):
        with open(out, "w") as hout:
            hout.write(fasta)
    else:
        out.write(fasta)
