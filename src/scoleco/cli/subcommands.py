#!/usr/bin/env python

from textwrap import dedent
from pathlib import Path
from argparse import ArgumentParser, RawDescriptionHelpFormatter
from scoleco.traitlab.taxon_filter import TARGET_FAMILIES, FAMILY_SYNONYMS, FAMILY_DEPTH, TAXON_COLUMN, PREY_COLUMN
from scoleco.traitlab.diet_summary import LEFTOVER_FAMILIES, MIN_PREY_COUNT
from scoleco.seqlab.reconcile import POLICIES
from scoleco.seqlab.align_mafft import ALGORITHMS

SYNONYMS_DEFAULT = [f"{i}={j}" for (i, j) in FAMILY_SYNONYMS.items()]


def _formatter(prog):
    return RawDescriptionHelpFormatter(prog, width=120, max_help_position=120)


def _make_parser(kwargs: dict, parser: ArgumentParser | None = None) -> ArgumentParser:
    """Create parser or connect as subparser to cli parser."""
    if parser:
        kwargs['name'] = kwargs.pop("prog")
        return parser.add_parser(**kwargs)
    kwargs.pop("help")
    return ArgumentParser(**kwargs)


def _add_diet_args(parser: ArgumentParser) -> None:
    """Diet table parsing and family filtering args shared by several tools."""
    parser.add_argument("-d", "--diet", type=Path, metavar="path", required=True, help="diet database table (.csv or .tsv)")
    parser.add_argument("--taxon-column", type=str, metavar="str", default=TAXON_COLUMN, help="column with predator taxonomy lineage [%(default)s]")
    parser.add_argument("--prey-column", type=str, metavar="str", default=PREY_COLUMN, help="column with prey taxon [%(default)s]")
    parser.add_argument("-F", "--families", type=str, metavar="str", nargs="+", default=list(TARGET_FAMILIES), help="target families [%(default)s]")
    parser.add_argument("-S", "--synonyms", type=str, metavar="str", nargs="*", default=SYNONYMS_DEFAULT, help="family synonyms as SYNONYM=FAMILY [%(default)s]")
    parser.add_argument("--depth", type=int, metavar="int", default=FAMILY_DEPTH, help="0-based index of the family in the ';' lineage [%(default)s]")


def _add_summary_args(parser: ArgumentParser) -> None:
    parser.add_argument("-x", "--leftovers", type=str, metavar="str", nargs="*", default=list(LEFTOVER_FAMILIES), help="non-target family labels to exclude [%(default)s]")
    parser.add_argument("-n", "--min-count", type=int, metavar="int", default=MIN_PREY_COUNT, help="min records for a (family, prey) row [%(default)s]")


def _add_log_args(parser: ArgumentParser) -> None:
    parser.add_argument("-l", "--log-level", type=str, metavar="level", default="INFO", help="stderr logging level (DEBUG, [INFO], WARNING, ERROR)")


def get_parser_taxon_filter(parser: ArgumentParser | None = None) -> ArgumentParser:
    """Return a parser for taxon-filter tool.
    """
    KWARGS = dict(
        prog="taxon-filter",
        usage="scoleco taxon-filter -d DIET [options]",
        help="select diet records of target families and add a family column",
        formatter_class=_formatter,
        description=dedent("""
            -------------------------------------------------------------------
            | taxon-filter: diet records of the target families as TSV
            -------------------------------------------------------------------
            | Records whose predator taxonomy contains any target family (or
            | synonym) are kept. The family is parsed from the ';' delimited
            | lineage at --depth; records with shorter lineages are dropped.
            | Synonyms are rewritten to their family (Rena=Leptotyphlopidae).
            -------------------------------------------------------------------
        """),
        epilog=dedent("""
            Examples
            --------
            $ scoleco taxon-filter -d diet.csv > blindsnake-diet.tsv
            $ scoleco taxon-filter -d diet.tsv -F Typhlopidae Gerrhopilidae -S -o sub.tsv
        """)
    )
    parser = _make_parser(KWARGS, parser)
    _add_diet_args(parser)
    parser.add_argument("-o", "--out", type=Path, metavar="path", help="outfile name else printed to stdout")
    _add_log_args(parser)
    return parser


def get_parser_reconcile(parser: ArgumentParser | None = None) -> ArgumentParser:
    """Return a parser for reconcile tool.
    """
    KWARGS = dict(
        prog="reconcile",
        usage="scoleco reconcile -i FASTA -d DIET [options]",
        help="assign families to sequences by name and write labeled fasta",
        formatter_class=_formatter,
        description=dedent("""
            -------------------------------------------------------------------
            | reconcile: write 'Genus species (Family)' labeled fasta
            -------------------------------------------------------------------
            | The organism name is the 2nd and 3rd token of each fasta header.
            | It is matched as a substring of the predator taxonomy of the
            | filtered diet records to assign a family. Unmatched sequences
            | are dropped, and duplicated names keep the first sequence. When
            | a name matches records of several families the --policy decides:
            | 'first' keeps the first record's family, 'exclude' drops the
            | sequence, 'exact' uses only records whose species equals the name.
            -------------------------------------------------------------------
        """),
        epilog=dedent("""
            Examples
            --------
            $ scoleco reconcile -i seqs.fa -d diet.csv > labeled.fa
            $ scoleco reconcile -i seqs.fa -d diet.csv -p exact -t reconciled.tsv -o labeled.fa
        """)
    )
    parser = _make_parser(KWARGS, parser)
    parser.add_argument("-i", "--input", type=Path, metavar="path", required=True, help="fasta sequences (.gz ok)")
    _add_diet_args(parser)
    parser.add_argument("-p", "--policy", type=str, metavar="str", default="first", choices=POLICIES, help="ambiguous match policy {first, exclude, exact} [%(default)s]")
    parser.add_argument("-o", "--out", type=Path, metavar="path", help="outfile name else printed to stdout")
    parser.add_argument("-t", "--table", type=Path, metavar="path", help="optional TSV of reconciled headers, names and families")
    _add_log_args(parser)
    return parser


def get_parser_diet_summary(parser: ArgumentParser | None = None) -> ArgumentParser:
    """Return a parser for diet-summary tool.
    """
    KWARGS = dict(
        prog="diet-summary",
        usage="scoleco diet-summary -d DIET [options]",
        help="count prey items per family and draw a bar chart",
        formatter_class=_formatter,
        description=dedent("""
            -------------------------------------------------------------------
            | diet-summary: (family, prey, count) TSV of filtered records
            -------------------------------------------------------------------
            | Records of the target families are counted by (family, prey).
            | Leftover family labels are excluded, and rows with fewer than
            | --min-count records are dropped. Use --svg to write a stacked
            | bar chart of prey per family.
            -------------------------------------------------------------------
        """),
        epilog=dedent("""
            Examples
            --------
            $ scoleco diet-summary -d diet.csv > diet-summary.tsv
            $ scoleco diet-summary -d diet.csv -o diet-summary.tsv --svg diet.svg
        """)
    )
    parser = _make_parser(KWARGS, parser)
    _add_diet_args(parser)
    _add_summary_args(parser)
    parser.add_argument("-o", "--out", type=Path, metavar="path", help="outfile name else printed to stdout")
    parser.add_argument("--svg", type=Path, metavar="path", help="write bar chart to this SVG path")
    _add_log_args(parser)
    return parser


def get_parser_align(parser: ArgumentParser | None = None) -> ArgumentParser:
    """Return a parser for align tool.
    """
    KWARGS = dict(
        prog="align",
        usage="scoleco align -i FASTA -o ALN [options]",
        help="align labeled sequences with mafft",
        formatter_class=_formatter,
        description=dedent("""
            -------------------------------------------------------------------
            | align: multiple sequence alignment with mafft
            -------------------------------------------------------------------
            | Requires mafft in the environment bin/ or $PATH, or use -B.
            -------------------------------------------------------------------
        """),
        epilog=dedent("""
            Examples
            --------
            $ scoleco align -i labeled.fa -o aligned.fa
            $ scoleco align -i labeled.fa -o aligned.fa -a linsi -j 4
        """)
    )
    parser = _make_parser(KWARGS, parser)
    parser.add_argument("-i", "--input", type=Path, metavar="path", required=True, help="fasta sequences to align")
    parser.add_argument("-o", "--out", type=Path, metavar="path", help="outfile name; default is {input}.aln.fa")
    parser.add_argument("-a", "--algorithm", type=str, metavar="str", default="auto", choices=list(ALGORITHMS), help=f"mafft strategy {list(ALGORITHMS)} [%(default)s]")
    parser.add_argument("-j", "--threads", type=int, metavar="int", default=1, help="number of threads [%(default)s]")
    parser.add_argument("-B", "--binary", type=Path, metavar="path", help="path to mafft binary if not in $PATH")
    parser.add_argument("-f", "--force", action="store_true", help="overwrite existing result file")
    _add_log_args(parser)
    return parser


def get_parser_tree_build(parser: ArgumentParser | None = None) -> ArgumentParser:
    """Return a parser for tree-build tool.
    """
    KWARGS = dict(
        prog="tree-build",
        usage="scoleco tree-build -i ALN -m {ML,NJ} [options]",
        help="infer an ML (iqtree) or NJ tree from an alignment",
        formatter_class=_formatter,
        description=dedent("""
            -------------------------------------------------------------------
            | tree-build: ML or NJ tree from aligned fasta
            -------------------------------------------------------------------
            | ML trees are inferred by iqtree (in bin/ or $PATH, or -B) under
            | --model. NJ trees are built from a --distance matrix and edges
            | shorter than --cutoff are collapsed. Tip names are the fasta
            | labels with spaces and parentheses replaced by '_'.
            -------------------------------------------------------------------
        """),
        epilog=dedent("""
            Examples
            --------
            $ scoleco tree-build -i aligned.fa -m NJ > nj.nwk
            $ scoleco tree-build -i aligned.fa -m NJ -c 0.005 -D trans > nj.nwk
            $ scoleco tree-build -i aligned.fa -m ML -M GTR -b 1000 -j 4 -o ml.nwk
        """)
    )
    parser = _make_parser(KWARGS, parser)
    parser.add_argument("-i", "--input", type=Path, metavar="path", required=True, help="aligned fasta")
    parser.add_argument("-o", "--out", type=Path, metavar="path", help="outfile name else printed to stdout")
    parser.add_argument("-m", "--method", type=str.upper, metavar="str", default="ML", choices=["ML", "NJ"], help="tree inference method {ML, NJ} [%(default)s]")
    parser.add_argument("-M", "--model", type=str, metavar="str", default="GTR", help="ML substitution model [%(default)s]")
    parser.add_argument("-D", "--distance", type=str, metavar="str", default="identity", help="NJ distance model (identity, blastn, trans) [%(default)s]")
    parser.add_argument("-c", "--cutoff", type=float, metavar="float", default=0.0, help="collapse NJ edges shorter than this [%(default)s]")
    parser.add_argument("-b", "--bootstrap", type=int, metavar="int", default=0, help="ML ultrafast bootstrap replicates (0=none, else >=1000) [%(default)s]")
    parser.add_argument("-j", "--threads", type=int, metavar="int", default=1, help="number of threads [%(default)s]")
    parser.add_argument("-B", "--binary", type=Path, metavar="path", help="path to iqtree binary if not in $PATH")
    parser.add_argument("-f", "--force", action="store_true", help="overwrite existing result file")
    _add_log_args(parser)
    return parser


def get_parser_tree_compare(parser: ArgumentParser | None = None) -> ArgumentParser:
    """Return a parser for tree-compare tool.
    """
    KWARGS = dict(
        prog="tree-compare",
        usage="scoleco tree-compare -a NWK -b NWK [options]",
        help="Robinson-Foulds distance and side-by-side drawing of two trees",
        formatter_class=_formatter,
        description=dedent("""
            -------------------------------------------------------------------
            | tree-compare: compare two trees on their shared tips
            -------------------------------------------------------------------
            | Prints ntips, rf, max_rf, norm_rf and shared_splits as TSV.
            | Optionally roots both trees on the tips of one family and
            | draws them side by side with tips colored by family.
            -------------------------------------------------------------------
        """),
        epilog=dedent("""
            Examples
            --------
            $ scoleco tree-compare -a ml.nwk -b nj.nwk
            $ scoleco tree-compare -a ml.nwk -b nj.nwk -r Anomalepididae -s trees.svg
        """)
    )
    parser = _make_parser(KWARGS, parser)
    parser.add_argument("-a", "--tree-a", type=Path, metavar="path", required=True, help="first newick tree")
    parser.add_argument("-b", "--tree-b", type=Path, metavar="path", required=True, help="second newick tree")
    parser.add_argument("-r", "--root", type=str, metavar="str", help="root both trees on the tips of this family")
    parser.add_argument("-s", "--svg", type=Path, metavar="path", help="write side-by-side drawing to this SVG path")
    parser.add_argument("-T", "--titles", type=str, metavar="str", nargs=2, default=["ML", "NJ"], help="titles of the two drawings [%(default)s]")
    _add_log_args(parser)
    return parser


def get_parser_pipeline(parser: ArgumentParser | None = None) -> ArgumentParser:
    """Return a parser for pipeline tool.
    """
    KWARGS = dict(
        prog="pipeline",
        usage="scoleco pipeline -i FASTA -d DIET -o OUTDIR [options]",
        help="run reconcile, align, ML/NJ trees, compare and diet summary",
        formatter_class=_formatter,
        description=dedent("""
            -------------------------------------------------------------------
            | pipeline: the full analysis into one output directory
            -------------------------------------------------------------------
            | Writes reconciled.tsv, labeled.fa, aligned.fa, nj.nwk, ml.nwk,
            | trees.tsv, trees.svg, diet-summary.tsv and diet.svg. Steps with
            | existing results are skipped unless --force. The ML tree can
            | take several minutes; use --no-ml to skip it.
            -------------------------------------------------------------------
        """),
        epilog=dedent("""
            Examples
            --------
            $ scoleco pipeline -i seqs.fa -d diet.csv -o results/
            $ scoleco pipeline -i seqs.fa -d diet.csv -o results/ -p exact -c 0.005 -r Anomalepididae
        """)
    )
    parser = _make_parser(KWARGS, parser)
    parser.add_argument("-i", "--input", type=Path, metavar="path", required=True, help="fasta sequences (.gz ok)")
    _add_diet_args(parser)
    _add_summary_args(parser)
    parser.add_argument("-o", "--outdir", type=Path, metavar="path", default="./scoleco-out", help="output directory [%(default)s]")
    parser.add_argument("-p", "--policy", type=str, metavar="str", default="first", choices=POLICIES, help="ambiguous match policy {first, exclude, exact} [%(default)s]")
    parser.add_argument("-a", "--algorithm", type=str, metavar="str", default="auto", choices=list(ALGORITHMS), help=f"mafft strategy {list(ALGORITHMS)} [%(default)s]")
    parser.add_argument("-M", "--model", type=str, metavar="str", default="GTR", help="ML substitution model [%(default)s]")
    parser.add_argument("-D", "--distance", type=str, metavar="str", default="identity", help="NJ distance model [%(default)s]")
    parser.add_argument("-c", "--cutoff", type=float, metavar="float", default=0.0, help="collapse NJ edges shorter than this [%(default)s]")
    parser.add_argument("-b", "--bootstrap", type=int, metavar="int", default=0, help="ML ultrafast bootstrap replicates [%(default)s]")
    parser.add_argument("-r", "--root", type=str, metavar="str", help="root trees on the tips of this family before comparing")
    parser.add_argument("-j", "--threads", type=int, metavar="int", default=1, help="number of threads [%(default)s]")
    parser.add_argument("--mafft-binary", type=Path, metavar="path", help="path to mafft binary if not in $PATH")
    parser.add_argument("--iqtree-binary", type=Path, metavar="path", help="path to iqtree binary if not in $PATH")
    parser.add_argument("--no-ml", action="store_true", help="skip the ML tree and comparison")
    parser.add_argument("-f", "--force", action="store_true", help="overwrite existing result files in outdir")
    _add_log_args(parser)
    return parser


if __name__ == "__main__":
    pass
