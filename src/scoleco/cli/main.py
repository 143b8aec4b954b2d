#!/usr/bin/env python

"""Command-line interface for scoleco.

Examples
--------
scoleco -h
scoleco <tool> -h
"""

import os
import sys
import importlib
from typing import Callable, Optional
from argparse import ArgumentParser, RawDescriptionHelpFormatter
from textwrap import dedent
from loguru import logger
from . import subcommands
from scoleco import __version__ as VERSION
from scoleco.utils import ScolecoError


THREAD_ENV_VARS = (
    "OMP_NUM_THREADS",
    "OPENBLAS_NUM_THREADS",
    "MKL_NUM_THREADS",
    "VECLIB_MAXIMUM_THREADS",
    "BLIS_NUM_THREADS",
    "NUMEXPR_NUM_THREADS",
)

# {tool: module}, each module defines run_{module name}(args)
DISPATCH = {
    "taxon-filter": "..traitlab.taxon_filter",
    "reconcile": "..seqlab.reconcile",
    "diet-summary": "..traitlab.diet_summary",
    "align": "..seqlab.align_mafft",
    "tree-build": "..treelab.tree_build",
    "tree-compare": "..treelab.tree_compare",
    "pipeline": "..pipeline",
}


def setup_parsers() -> ArgumentParser:
    """Return the scoleco parser with one subparser per DISPATCH tool."""
    parser = ArgumentParser(
        "scoleco",
        usage="scoleco <tool> [options]  (scoleco <tool> -h for help)",
        formatter_class=lambda prog: RawDescriptionHelpFormatter(prog, width=120, max_help_position=120),
        description=dedent("""
            scoleco: diets and trees of the blind-snake families
            Anomalepididae, Leptotyphlopidae and Typhlopidae.
            """),
        epilog=dedent(r"""
            Workflow
            --------
            # diet records of the target families
            scoleco taxon-filter -d diet.csv > blindsnake-diet.tsv

            # family-labeled sequences, alignment, and trees
            scoleco reconcile -i seqs.fa -d diet.csv -o labeled.fa
            scoleco align -i labeled.fa -o aligned.fa
            scoleco tree-build -i aligned.fa -m ML -o ml.nwk
            scoleco tree-build -i aligned.fa -m NJ -o nj.nwk
            scoleco tree-compare -a ml.nwk -b nj.nwk -s trees.svg

            # prey counts per family
            scoleco diet-summary -d diet.csv --svg diet.svg

            # or all of the above
            scoleco pipeline -i seqs.fa -d diet.csv -o results/
        """)
    )
    parser.add_argument("-v", "--version", action='version', version=f"scoleco {VERSION}")
    tools = parser.add_subparsers(title="tools", dest="subcommand", metavar="<tool>", required=True)
    for name in DISPATCH:
        getattr(subcommands, f"get_parser_{name.replace('-', '_')}")(tools)
    return parser


def get_run_func(subcommand: str) -> Callable:
    """Import the module of a tool and return its run_{module} function."""
    path = DISPATCH[subcommand]
    module = importlib.import_module(path, package=__package__)
    return getattr(module, f"run_{path.rsplit('.', 1)[-1]}")


def main(cmd: Optional[str] = None) -> int:
    """Run a scoleco tool and return an exit code.

    ScolecoErrors (bad inputs, missing binaries, empty results) are
    logged and give exit code 1. Other exceptions propagate.
    """
    for var in THREAD_ENV_VARS:
        os.environ.setdefault(var, "1")

    args = setup_parsers().parse_args(cmd.split() if cmd else None)
    run = get_run_func(args.subcommand)
    try:
        run(args)
    except KeyboardInterrupt:
        logger.warning("interrupted by user")
        return 1
    except ScolecoError as exc:
        logger.error(exc)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
