#!/usr/bin/env python

"""Count prey items per family in the filtered diet records.

Rows are grouped by (family, prey) and counted. Leftover non-target
family labels (picked up by the loose taxonomy match) are removed, as
are single observations (count < MIN_PREY_COUNT). A threshold of 3
removes all Anomalepididae records from the dataset, so 2 is used.

Example
-------
$ scoleco diet-summary -d diet.csv > diet-summary.tsv
$ scoleco diet-summary -d diet.csv -o diet-summary.tsv --svg diet.svg
"""

from __future__ import annotations
import sys
from typing import List, Sequence, Tuple
from loguru import logger
import numpy as np
import pandas as pd
import toyplot
import toyplot.svg
from scoleco.traitlab.taxon_filter import load_diet_table, filter_taxa, get_pattern, parse_synonyms
from scoleco.utils import ScolecoError, set_log_level

LEFTOVER_FAMILIES = ("Gerrhopilidae", "Xenotyphlopidae")
MIN_PREY_COUNT = 2


def summarize_diet(
    diet: pd.DataFrame,
    leftovers: Sequence[str] = LEFTOVER_FAMILIES,
    min_count: int = MIN_PREY_COUNT,
) -> pd.DataFrame:
    """Return DataFrame of (family, prey, count) rows with count >= min_count.

    Rows are sorted by family, then by descending count and prey name.
    """
    for col in ("family", "prey"):
        if col not in diet.columns:
            raise ScolecoError(f"diet table is missing column '{col}'")
    table = diet.loc[diet.family.notna() & ~diet.family.isin(list(leftovers))]
    counts = (
        table.groupby(["family", "prey"], sort=False)
        .size()
        .reset_index(name="count")
    )
    rare = counts["count"] < min_count
    logger.debug(f"excluded {int(rare.sum())} (family, prey) rows with count < {min_count}")
    counts = counts.loc[~rare]
    counts = counts.sort_values(by=["family", "count", "prey"], ascending=[True, False, True])
    return counts.reset_index(drop=True)


def iter_summary(summary: pd.DataFrame) -> List[Tuple[str, str, int]]:
    """Return summary rows as (family, prey, count) tuples."""
    return [(f, p, int(c)) for (f, p, c) in zip(summary.family, summary.prey, summary["count"])]


def draw_diet_chart(summary: pd.DataFrame, width: int = 650, height: int = 400):
    """Return a toyplot Canvas with one stacked bar per family by prey."""
    if summary.empty:
        raise ScolecoError("no prey rows to draw after filtering")
    wide = summary.pivot_table(index="family", columns="prey", values="count", aggfunc="sum", fill_value=0)
    families = list(wide.index)
    prey = list(wide.columns)
    palette = toyplot.color.Palette()
    colors = [palette.css(i % len(palette)) for i in range(len(prey))]

    canvas = toyplot.Canvas(width=width, height=height)
    axes = canvas.cartesian(
        label="prey items per family",
        ylabel="records",
        margin=(50, 200, 60, 60),
    )
    axes.bars(
        np.asarray(wide.values, dtype=float),
        color=colors,
        title=prey,
    )
    axes.x.ticks.locator = toyplot.locator.Explicit(labels=families)
    axes.y.domain.min = 0

    # prey legend in the right margin
    canvas.legend(
        [(p, toyplot.marker.create(shape="s", size=10, mstyle={"fill": c})) for (p, c) in zip(prey, colors)],
        corner=("right", 20, 160, 18 * len(prey)),
    )
    return canvas


def run_diet_summary(args):
    """Write (family, prey, count) TSV and optionally an SVG chart."""
    set_log_level(args.log_level)
    synonyms = parse_synonyms(args.synonyms)
    diet = load_diet_table(args.diet, args.taxon_column, args.prey_column)
    diet = filter_taxa(diet, pattern=get_pattern(args.families, synonyms), depth=args.depth, synonyms=synonyms)
    summary = summarize_diet(diet, leftovers=args.leftovers, min_count=args.min_count)
    logger.info(f"{len(summary)} (family, prey) rows across {summary.family.nunique()} families")

    if args.out:
        args.out.parent.mkdir(exist_ok=True, parents=True)
        summary.to_csv(args.out, sep="\t", index=False)
    else:
        summary.to_csv(sys.stdout, sep="\t", index=False)

    if args.svg:
        args.svg.parent.mkdir(exist_ok=True, parents=True)
        canvas = draw_diet_chart(summary)
        toyplot.svg.render(canvas, str(args.svg))
        logger.info(f"diet chart written to {args.svg}")


def main():
    from scoleco.cli.subcommands import get_parser_diet_summary
    parser = get_parser_diet_summary()
    args = parser.parse_args()
    run_diet_summary(args)


if __name__ == "__main__":
    try:
        main()
    except KeyboardInterrupt:
        logger.warning("interrupted by user")
    except Exception as exc:
        logger.error(exc)
        raise
