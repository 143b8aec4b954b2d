#!/usr/bin/env python

"""Assign a family to each sequence by matching names to diet records.

A sequence matches a diet record when its organism name occurs as a
(case-sensitive) substring of the record's predator taxonomy. This is
loose on purpose; the diet database is the only source of family labels
for the sequences. When matching records name more than one family,
the resolution depends on the ambiguity policy:

first    family of the first matching record in table order (default)
exclude  ambiguous sequences are dropped, like unmatched ones
exact    family of the records whose species is exactly the name,
         dropped if those still disagree

Records with no family are then dropped, and the rest deduplicated by
organism name keeping the first occurrence. Both input collections are
ordered, so results are deterministic for a fixed input order.

Example
-------
$ scoleco reconcile -i seqs.fa -d diet.csv > labeled.fa
$ scoleco reconcile -i seqs.fa -d diet.csv -p exact -t map.tsv -o labeled.fa
"""

from __future__ import annotations
import sys
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple
from loguru import logger
import pandas as pd
from scoleco.seqlab.sequence_loader import SequenceRecord, load_sequences
from scoleco.seqlab.label_format import label_sequences, write_labeled_fasta
from scoleco.traitlab.taxon_filter import TARGET_FAMILIES, load_diet_table, filter_taxa, get_pattern, parse_synonyms
from scoleco.utils import ScolecoError, EmptyReconciledSetError, set_log_level

POLICIES = ("first", "exclude", "exact")


@dataclass(frozen=True)
class AnnotatedSequenceRecord:
    header: str
    sequence: str
    name: str
    family: Optional[str]


def find_matches(name: str, taxa: Sequence[Tuple[str, str]]) -> List[Tuple[str, str]]:
    """Return (taxon, family) pairs whose taxon contains name, in order.

    An empty name never matches.
    """
    if not name:
        return []
    return [(taxon, family) for (taxon, family) in taxa if name in taxon]


def resolve_family(name: str, matches: Sequence[Tuple[str, str]], policy: str = "first") -> Optional[str]:
    """Return the family chosen for a sequence from its ordered matches.

    Matches are ambiguous only if they name more than one family.
    """
    if policy not in POLICIES:
        raise ScolecoError(f"unknown ambiguity policy '{policy}'. Options: {POLICIES}")
    families = list(dict.fromkeys(family for (_, family) in matches))
    if len(families) < 2:
        if len(matches) > 1:
            logger.debug(f"'{name}' matches {len(matches)} records, all {families[0]}")
        return families[0] if families else None

    logger.warning(f"ambiguous match for '{name}': {len(matches)} records from families {families} [policy={policy}]")
    if policy == "first":
        return matches[0][1]
    if policy == "exact":
        exact = {family for (taxon, family) in matches if taxon.rsplit(";", 1)[-1].strip() == name}
        return exact.pop() if len(exact) == 1 else None
    return None


def annotate_families(
    records: Sequence[SequenceRecord],
    diet: pd.DataFrame,
    policy: str = "first",
    families: Sequence[str] = TARGET_FAMILIES,
) -> List[AnnotatedSequenceRecord]:
    """Return one AnnotatedSequenceRecord per input, family None if unmatched.

    Only diet records of the given families are candidates, so records of
    other families that passed the substring filter label nothing.
    """
    taxa = [
        (taxon, family) for (taxon, family) in zip(diet["predator_taxon"], diet["family"])
        if family in families
    ]
    if len(taxa) < len(diet):
        logger.debug(f"{len(diet) - len(taxa)} diet records of non-target families not used for matching")
    annotated = []
    for rec in records:
        matches = find_matches(rec.name, taxa)
        family = resolve_family(rec.name, matches, policy)
        if family is None:
            logger.debug(f"no family for sequence '{rec.header}'")
        annotated.append(
            AnnotatedSequenceRecord(
                header=rec.header, sequence=rec.sequence, name=rec.name, family=family)
        )
    return annotated


def dedupe_by_name(records: Sequence[AnnotatedSequenceRecord]) -> List[AnnotatedSequenceRecord]:
    """Return records with unique names, first occurrence wins."""
    seen = set()
    keep = []
    for rec in records:
        if rec.name in seen:
            logger.debug(f"dropped duplicate of '{rec.name}': '{rec.header}'")
            continue
        seen.add(rec.name)
        keep.append(rec)
    return keep


def reconcile(
    records: Sequence[SequenceRecord],
    diet: pd.DataFrame,
    policy: str = "first",
    families: Sequence[str] = TARGET_FAMILIES,
) -> List[AnnotatedSequenceRecord]:
    """Return family-annotated, name-deduplicated sequence records.

    Parameters
    ----------
    records:
        SequenceRecords in input file order.
    diet:
        Filtered diet table with 'predator_taxon' and 'family' columns,
        e.g., from filter_taxa().
    policy:
        How to resolve names matching several records: first, exclude,
        or exact.
    families:
        Families a sequence may be assigned. Diet records of any other
        family are ignored.

    Raises
    ------
    EmptyReconciledSetError
        If no record could be assigned a family.
    """
    annotated = annotate_families(records, diet, policy, families)
    matched = [i for i in annotated if i.family]
    kept = dedupe_by_name(matched)
    logger.info(
        f"reconciled {len(records)} sequences: {len(annotated) - len(matched)} unmatched, "
        f"{len(matched) - len(kept)} duplicates, {len(kept)} kept")
    if not kept:
        raise EmptyReconciledSetError(
            f"none of {len(records)} sequences matched a diet record of the target families; "
            "nothing to align")
    return kept


def write_reconciled_table(records: Sequence[AnnotatedSequenceRecord], out) -> None:
    """Write a TSV of header, name and family for reconciled records."""
    table = pd.DataFrame({
        "header": [i.header for i in records],
        "name": [i.name for i in records],
        "family": [i.family for i in records],
        "length": [len(i.sequence) for i in records],
    })
    table.to_csv(out, sep="\t", index=False)


def run_reconcile(args):
    """Write a labeled FASTA of the reconciled sequences."""
    set_log_level(args.log_level)

    synonyms = parse_synonyms(args.synonyms)
    diet = load_diet_table(args.diet, args.taxon_column, args.prey_column)
    diet = filter_taxa(diet, pattern=get_pattern(args.families, synonyms), depth=args.depth, synonyms=synonyms)
    records = load_sequences(args.input)
    reconciled = reconcile(records, diet, args.policy, args.families)
    labeled = label_sequences(reconciled)

    if args.table:
        args.table.parent.mkdir(exist_ok=True, parents=True)
        write_reconciled_table(reconciled, args.table)
    if args.out:
        args.out.parent.mkdir(exist_ok=True, parents=True)
        write_labeled_fasta(labeled, args.out)
        logger.info(f"labeled sequences written to {args.out}")
    else:
        write_labeled_fasta(labeled, sys.stdout)


def main():
    from scoleco.cli.subcommands import get_parser_reconcile
    parser = get_parser_reconcile()
    args = parser.parse_args()
    run_reconcile(args)


if __name__ == "__main__":
    try:
        main()
    except KeyboardInterrupt:
        logger.warning("interrupted by user")
    except Exception as exc:
        logger.error(exc)
        raise
