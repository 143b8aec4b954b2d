#!/usr/bin/env python

"""Select diet records of the target blind-snake families.

Records are rows of a diet database table with (at least) a predator
taxonomy column and a prey column. The taxonomy is a semicolon-delimited
lineage with the family at a fixed depth, e.g.,

Serpentes;Scolecophidia;Anomalepididae;Liotyphlops beu

Rows whose taxonomy matches any target family (regex alternation over
substrings) are kept and annotated with a 'family' column parsed from
the lineage. Rows whose lineage is too short to hold a family are
dropped. Family synonyms (Rena -> Leptotyphlopidae) are normalized once,
before anything downstream reads the family.

Example
-------
$ scoleco taxon-filter -d diet.csv > blindsnake-diet.tsv
"""

from __future__ import annotations
import sys
from pathlib import Path
from typing import Dict, Optional, Sequence
from loguru import logger
import pandas as pd
from scoleco.utils import ScolecoError, set_log_level
from scoleco.utils.path_utils import check_input

TARGET_FAMILIES = ("Anomalepididae", "Leptotyphlopidae", "Typhlopidae")
FAMILY_SYNONYMS = {"Rena": "Leptotyphlopidae"}
TARGET_PATTERN = "|".join(TARGET_FAMILIES + tuple(FAMILY_SYNONYMS))
FAMILY_DEPTH = 2
TAXON_COLUMN = "predator_taxon"
PREY_COLUMN = "prey"


def load_diet_table(
    path: Path,
    taxon_column: str = TAXON_COLUMN,
    prey_column: str = PREY_COLUMN,
) -> pd.DataFrame:
    """Return diet table with columns renamed to predator_taxon and prey.

    The separator is tab for .tsv/.tab/.txt files and comma otherwise
    (a trailing .gz is ignored).
    """
    path = check_input(path, "diet table")
    suffixes = [i for i in path.suffixes if i != ".gz"]
    sep = "\t" if suffixes and suffixes[-1] in (".tsv", ".tab", ".txt") else ","
    table = pd.read_csv(path, sep=sep, dtype=str, keep_default_na=False)

    missing = [i for i in (taxon_column, prey_column) if i not in table.columns]
    if missing:
        raise ScolecoError(f"diet table {path.name} is missing column(s) {missing}. Found: {list(table.columns)}")
    table = table.rename(columns={taxon_column: TAXON_COLUMN, prey_column: PREY_COLUMN})
    logger.info(f"loaded {len(table)} diet records from {path.name}")
    return table


def extract_family(taxon: str, depth: int = FAMILY_DEPTH) -> Optional[str]:
    """Return the lineage token at depth, or None if there is none."""
    if not isinstance(taxon, str):
        return None
    tokens = [i.strip() for i in taxon.split(";")]
    if len(tokens) <= depth or not tokens[depth]:
        return None
    return tokens[depth]


def normalize_families(table: pd.DataFrame, synonyms: Dict[str, str] = FAMILY_SYNONYMS) -> pd.DataFrame:
    """Return a copy with synonym family labels rewritten to canonical names."""
    renamed = table.family.isin(list(synonyms))
    if renamed.any():
        logger.debug(f"normalized {int(renamed.sum())} synonym family labels")
    return table.assign(family=table.family.replace(synonyms))


def filter_taxa(
    table: pd.DataFrame,
    pattern: str = TARGET_PATTERN,
    depth: int = FAMILY_DEPTH,
    synonyms: Dict[str, str] = FAMILY_SYNONYMS,
) -> pd.DataFrame:
    """Return a new table of target-family records with a family column.

    Input row order is preserved and the input table is not modified.
    """
    taxa = table[TAXON_COLUMN].fillna("").astype(str)
    subset = table.loc[taxa.str.contains(pattern, regex=True)].copy()
    subset["family"] = [extract_family(i, depth) for i in subset[TAXON_COLUMN]]

    # lineages too short to hold a family are dropped, not errors
    nofam = subset.family.isna()
    for taxon in subset.loc[nofam, TAXON_COLUMN]:
        logger.debug(f"dropped record with no family at depth {depth}: '{taxon}'")
    subset = subset.loc[~nofam]

    subset = normalize_families(subset, synonyms)
    subset = subset.reset_index(drop=True)
    logger.info(f"{len(subset)} of {len(table)} diet records match target families")
    return subset


def parse_synonyms(items: Sequence[str]) -> Dict[str, str]:
    """Return {synonym: family} from 'synonym=family' strings."""
    synonyms = {}
    for item in items:
        if "=" not in item:
            raise ScolecoError(f"synonym '{item}' must be formatted as SYNONYM=FAMILY")
        key, val = item.split("=", 1)
        synonyms[key.strip()] = val.strip()
    return synonyms


def get_pattern(families: Sequence[str], synonyms: Dict[str, str]) -> str:
    """Return regex alternation over families and their synonyms."""
    return "|".join(list(families) + [i for i in synonyms if i not in families])


def run_taxon_filter(args):
    """Write filtered diet records with a family column as TSV."""
    set_log_level(args.log_level)
    synonyms = parse_synonyms(args.synonyms)
    table = load_diet_table(args.diet, args.taxon_column, args.prey_column)
    subset = filter_taxa(
        table,
        pattern=get_pattern(args.families, synonyms),
        depth=args.depth,
        synonyms=synonyms,
    )
    if args.out:
        args.out.parent.mkdir(exist_ok=True, parents=True)
        subset.to_csv(args.out, sep="\t", index=False)
        logger.info(f"filtered records written to {args.out}")
    else:
        subset.to_csv(sys.stdout, sep="\t", index=False)


def main():
    from scoleco.cli.subcommands import get_parser_taxon_filter
    parser = get_parser_taxon_filter()
    args = parser.parse_args()
    run_taxon_filter(args)


if __name__ == "__main__":
    try:
        main()
    except KeyboardInterrupt:
        logger.warning("interrupted by user")
    except Exception as exc:
        logger.error(exc)
        raise
