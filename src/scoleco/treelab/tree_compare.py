#!/usr/bin/env python

"""Compare two trees (e.g., ML and NJ) by their splits and side by side.

The Robinson-Foulds distance counts the non-trivial bipartitions found
in only one of the two trees, after pruning both to their shared tips.
Trees are treated as unrooted. The drawing places the trees next to each
other with tips colored by the family parsed from their labels.

Examples
--------
$ scoleco tree-compare -a ml.nwk -b nj.nwk
$ scoleco tree-compare -a ml.nwk -b nj.nwk -r Anomalepididae -s trees.svg
"""

from __future__ import annotations
import sys
from typing import Dict, FrozenSet, Optional, Sequence, Set
from loguru import logger
import toyplot
import toyplot.svg
import toytree
from scoleco.traitlab.taxon_filter import TARGET_FAMILIES
from scoleco.utils import ScolecoError, set_log_level


def get_tip_family(name: str, families: Sequence[str] = TARGET_FAMILIES) -> Optional[str]:
    """Return family from a 'Genus_species_Family' tip name, else None."""
    family = name.rsplit("_", 1)[-1]
    return family if family in families else None


def get_display_label(name: str, families: Sequence[str] = TARGET_FAMILIES) -> str:
    """Return 'Genus species (Family)' from a newick-safe tip name."""
    family = get_tip_family(name, families)
    if family is None:
        return name.replace("_", " ")
    binomial = name[:-len(family)].strip("_").replace("_", " ")
    return f"{binomial} ({family})"


def get_splits(tree: toytree.ToyTree, tips: Optional[Set[str]] = None) -> Set[FrozenSet[str]]:
    """Return the set of non-trivial unrooted bipartitions of a tree.

    Each split is stored as the side not containing the alphabetically
    first tip, so the same split has one key regardless of rooting.
    """
    tips = set(tips) if tips else set(tree.get_tip_labels())
    anchor = min(tips)
    splits = set()
    for node in tree:
        if node.is_leaf() or node.is_root():
            continue
        side = set(node.get_leaf_names()) & tips
        other = tips - side
        if len(side) < 2 or len(other) < 2:
            continue
        splits.add(frozenset(other if anchor in side else side))
    return splits


def robinson_foulds(tree1: toytree.ToyTree, tree2: toytree.ToyTree) -> Dict[str, float]:
    """Return RF distance, its max, and normalized RF on shared tips."""
    tips1 = set(tree1.get_tip_labels())
    tips2 = set(tree2.get_tip_labels())
    shared = tips1 & tips2
    if len(shared) < 3:
        raise ScolecoError(f"trees share only {len(shared)} tips; need >= 3 to compare")
    if shared != tips1 or shared != tips2:
        logger.warning(f"comparing on {len(shared)} shared tips; {len(tips1 ^ tips2)} tips are in only one tree")

    splits1 = get_splits(tree1, shared)
    splits2 = get_splits(tree2, shared)
    rf = len(splits1 ^ splits2)
    max_rf = len(splits1) + len(splits2)
    return {
        "ntips": len(shared),
        "rf": rf,
        "max_rf": max_rf,
        "norm_rf": rf / max_rf if max_rf else 0.0,
        "shared_splits": len(splits1 & splits2),
    }


def root_on_family(tree: toytree.ToyTree, family: str) -> toytree.ToyTree:
    """Return tree rooted on the tips of one family, or unchanged if not possible."""
    onodes = [i for i in tree.get_tip_labels() if get_tip_family(i) == family]
    if not onodes:
        logger.warning(f"no tips of {family} to root on")
        return tree
    try:
        return tree.root(*onodes)
    except (AttributeError, ValueError, toytree.utils.ToytreeError) as exc:
        logger.warning(f"tree could not be rooted on {family}: {exc}")
        return tree


def get_family_colors(families: Sequence[str] = TARGET_FAMILIES) -> Dict[str, str]:
    """Return {family: css color}."""
    palette = toyplot.color.Palette()
    return {fam: palette.css(idx % len(palette)) for (idx, fam) in enumerate(families)}


def draw_tree_pair(
    tree1: toytree.ToyTree,
    tree2: toytree.ToyTree,
    titles: Sequence[str] = ("ML", "NJ"),
    width: int = 900,
    height: Optional[int] = None,
):
    """Return a toyplot Canvas drawing two trees side by side."""
    colors = get_family_colors()
    height = height if height else max(300, 30 * max(tree1.ntips, tree2.ntips))
    canvas = toyplot.Canvas(width=width, height=height)
    for idx, (tree, title) in enumerate(zip((tree1, tree2), titles)):
        names = tree.get_tip_labels()
        axes = canvas.cartesian(grid=(1, 2, idx), label=title, padding=15, margin=(40, 40, 20, 20))
        tree.draw(
            axes=axes,
            tip_labels=[get_display_label(i) for i in names],
            tip_labels_colors=[colors.get(get_tip_family(i), "black") for i in names],
            tip_labels_align=True,
        )
        axes.show = False
    return canvas


def run_tree_compare(args):
    """Print comparison stats and optionally draw both trees to SVG."""
    set_log_level(args.log_level)
    for path in (args.tree_a, args.tree_b):
        if not path.exists():
            raise ScolecoError(f"tree file {path} not found")

    tree1 = toytree.tree(str(args.tree_a))
    tree2 = toytree.tree(str(args.tree_b))
    if args.root:
        tree1 = root_on_family(tree1, args.root)
        tree2 = root_on_family(tree2, args.root)

    stats = robinson_foulds(tree1, tree2)
    for key, value in stats.items():
        print(f"{key}\t{value}", file=sys.stdout)

    if args.svg:
        args.svg.parent.mkdir(exist_ok=True, parents=True)
        canvas = draw_tree_pair(tree1.ladderize(), tree2.ladderize(), titles=args.titles)
        toyplot.svg.render(canvas, str(args.svg))
        logger.info(f"tree drawing written to {args.svg}")


def main():
    from scoleco.cli.subcommands import get_parser_tree_compare
    parser = get_parser_tree_compare()
    args = parser.parse_args()
    run_tree_compare(args)


if __name__ == "__main__":
    try:
        main()
    except KeyboardInterrupt:
        logger.warning("interrupted by user")
    except Exception as exc:
        logger.error(exc)
        raise
