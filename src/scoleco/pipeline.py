#!/usr/bin/env python

"""Run the full comparative analysis into an output directory.

1. filter diet records to the target families
2. load sequences and reconcile them to families by name
3. write labeled sequences and align them with mafft
4. infer ML and NJ trees and compare them
5. summarize prey counts per family

If you call:
$ scoleco pipeline -i seqs.fa -d diet.csv -o OUT

It will produce:
- OUT/reconciled.tsv
- OUT/labeled.fa
- OUT/aligned.fa
- OUT/ml.nwk
- OUT/nj.nwk
- OUT/trees.svg
- OUT/trees.tsv
- OUT/diet-summary.tsv
- OUT/diet.svg

Steps with existing results are skipped unless --force.
"""

from pathlib import Path
from loguru import logger
import pandas as pd
import toyplot.svg
import toytree
from scoleco.seqlab.sequence_loader import load_sequences
from scoleco.seqlab.reconcile import reconcile, write_reconciled_table
from scoleco.seqlab.label_format import label_sequences, write_labeled_fasta
from scoleco.seqlab.align_mafft import call_mafft
from scoleco.traitlab.taxon_filter import load_diet_table, filter_taxa, get_pattern, parse_synonyms
from scoleco.traitlab.diet_summary import summarize_diet, draw_diet_chart
from scoleco.treelab.tree_build import parse_fasta, build_nj_tree, build_ml_tree
from scoleco.treelab.tree_compare import robinson_foulds, root_on_family, draw_tree_pair
from scoleco.utils import set_log_level


def _done(path: Path, force: bool) -> bool:
    if path.exists() and not force:
        logger.warning(f"[skipping] {path} already exists. Use --force to overwrite")
        return True
    return False


def run_pipeline(args):
    """..."""
    set_log_level(args.log_level)
    outdir = args.outdir
    outdir.mkdir(exist_ok=True, parents=True)

    # diet records of the target families, used by both branches
    synonyms = parse_synonyms(args.synonyms)
    diet = load_diet_table(args.diet, args.taxon_column, args.prey_column)
    diet = filter_taxa(diet, pattern=get_pattern(args.families, synonyms), depth=args.depth, synonyms=synonyms)

    # diet summary and chart
    summary_path = outdir / "diet-summary.tsv"
    if not _done(summary_path, args.force):
        summary = summarize_diet(diet, leftovers=args.leftovers, min_count=args.min_count)
        summary.to_csv(summary_path, sep="\t", index=False)
        if summary.empty:
            logger.warning("no prey rows passed filtering; skipping diet chart")
        else:
            toyplot.svg.render(draw_diet_chart(summary), str(outdir / "diet.svg"))
        logger.info(f"diet summary written to {summary_path}")

    # reconciled, labeled sequences
    labeled_path = outdir / "labeled.fa"
    if not _done(labeled_path, args.force):
        records = load_sequences(args.input)
        reconciled = reconcile(records, diet, args.policy, args.families)
        write_reconciled_table(reconciled, outdir / "reconciled.tsv")
        write_labeled_fasta(label_sequences(reconciled), labeled_path)
        logger.info(f"labeled sequences written to {labeled_path}")

    # alignment
    aligned_path = outdir / "aligned.fa"
    if not _done(aligned_path, args.force):
        call_mafft(labeled_path, aligned_path, args.algorithm, args.threads, args.mafft_binary)
        logger.info(f"alignment written to {aligned_path}")
    seqs = parse_fasta(aligned_path)

    # trees
    trees = {}
    nj_path = outdir / "nj.nwk"
    if not _done(nj_path, args.force):
        build_nj_tree(seqs, model=args.distance, cutoff=args.cutoff).write(str(nj_path))
    trees["NJ"] = toytree.tree(str(nj_path))

    if args.no_ml:
        logger.info("skipping ML tree (--no-ml)")
    else:
        ml_path = outdir / "ml.nwk"
        if not _done(ml_path, args.force):
            logger.info("inferring ML tree; this can take several minutes")
            tree = build_ml_tree(seqs, model=args.model, threads=args.threads, bootstrap=args.bootstrap, binary=args.iqtree_binary)
            tree.write(str(ml_path))
        trees["ML"] = toytree.tree(str(ml_path))

    # comparison
    if len(trees) == 2:
        tree1, tree2 = trees["ML"], trees["NJ"]
        if args.root:
            tree1 = root_on_family(tree1, args.root)
            tree2 = root_on_family(tree2, args.root)
        stats = robinson_foulds(tree1, tree2)
        pd.DataFrame([stats]).to_csv(outdir / "trees.tsv", sep="\t", index=False)
        logger.info(f"ML vs NJ Robinson-Foulds distance = {stats['rf']} (normalized {stats['norm_rf']:.3f})")
        canvas = draw_tree_pair(tree1.ladderize(), tree2.ladderize(), titles=("ML", "NJ"))
        toyplot.svg.render(canvas, str(outdir / "trees.svg"))
    logger.info(f"results written to {outdir}")


def main():
    from scoleco.cli.subcommands import get_parser_pipeline
    parser = get_parser_pipeline()
    args = parser.parse_args()
    run_pipeline(args)


if __name__ == "__main__":
    try:
        main()
    except KeyboardInterrupt:
        logger.warning("interrupted by user")
    except Exception as exc:
        logger.error(exc)
        raise
