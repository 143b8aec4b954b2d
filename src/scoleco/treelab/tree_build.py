#!/usr/bin/env python

"""Infer a Maximum-Likelihood or Neighbor-Joining tree from an alignment.

ML trees are inferred by iqtree under a substitution model (GTR by
default). NJ trees are built with Biopython from a pairwise distance
matrix, and internal edges shorter than --cutoff are collapsed into
polytomies. Both are returned as toytrees.

Alignment headers are display labels such as 'Liotyphlops beu
(Anomalepididae)', which are not valid newick names. Tips are written
in a newick-safe form, 'Liotyphlops_beu_Anomalepididae'.

Examples
--------
$ scoleco tree-build -i aligned.fa -m NJ -c 0.001 > nj.nwk
$ scoleco tree-build -i aligned.fa -m ML -M GTR+G -j 4 -o ml.nwk
"""

from __future__ import annotations
import re
import sys
import subprocess
import tempfile
from io import StringIO
from pathlib import Path
from typing import Dict, List, Optional
from loguru import logger
import toytree
from Bio import Phylo
from Bio.Align import MultipleSeqAlignment
from Bio.Phylo.TreeConstruction import DistanceCalculator, DistanceTreeConstructor
from Bio.Seq import Seq
from Bio.SeqRecord import SeqRecord
from scoleco.seqlab.align_mafft import find_binary
from scoleco.utils import ScolecoError, set_log_level
from scoleco.utils.path_utils import xopen

METHODS = ("ML", "NJ")
IQTREE_NAMES = ("iqtree2", "iqtree")


def parse_fasta(path: Path) -> Dict[str, str]:
    """Parse FASTA file into {name: sequence}."""
    seqs: Dict[str, List[str]] = {}
    name = None
    with xopen(path) as data:
        for line in data:
            line = line.strip()
            if not line:
                continue
            if line.startswith(">"):
                name = line[1:].strip()
                if not name:
                    raise ScolecoError("encountered empty FASTA header")
                if name in seqs:
                    raise ScolecoError(f"duplicate FASTA header: {name}")
                seqs[name] = []
            else:
                if name is None:
                    raise ScolecoError("FASTA starts with sequence before any header")
                seqs[name].append(line)
    return {k: "".join(v) for k, v in seqs.items()}


def safe_label(label: str) -> str:
    """Return label with runs of non-newick-safe characters as '_'."""
    return re.sub(r"[^A-Za-z0-9.\-]+", "_", label).strip("_")


def get_safe_seqs(seqs: Dict[str, str]) -> Dict[str, str]:
    """Return {safe_label: seq} and raise if two labels collide, or if
    the sequences are not aligned."""
    if len(seqs) < 3:
        raise ScolecoError(f"at least 3 sequences are required to build a tree, found {len(seqs)}")
    lengths = {len(i) for i in seqs.values()}
    if len(lengths) != 1:
        raise ScolecoError("input contains variable sequence lengths (not aligned)")

    safe = {}
    for label, seq in seqs.items():
        key = safe_label(label)
        if key in safe:
            raise ScolecoError(f"labels collide after newick-safe conversion: '{key}'")
        safe[key] = seq.upper()
    return safe


def build_nj_tree(seqs: Dict[str, str], model: str = "identity", cutoff: float = 0.0) -> toytree.ToyTree:
    """Return a NJ toytree from {label: aligned seq}.

    Internal edges shorter than cutoff are collapsed. The tree is rooted
    arbitrarily at the last joined node.
    """
    safe = get_safe_seqs(seqs)
    aln = MultipleSeqAlignment([SeqRecord(Seq(seq), id=name, description="") for (name, seq) in safe.items()])
    dmat = DistanceCalculator(model).get_distance(aln)
    tree = DistanceTreeConstructor().nj(dmat)

    if cutoff > 0:
        short = [
            i for i in tree.get_nonterminals()
            if i is not tree.root and (i.branch_length or 0) < cutoff
        ]
        logger.debug(f"collapsing {len(short)} NJ edges shorter than {cutoff}")
        for clade in short:
            tree.collapse(clade)

    # drop biopython's 'Inner' node names
    for clade in tree.get_nonterminals():
        clade.name = None
    handle = StringIO()
    Phylo.write(tree, handle, "newick")
    return toytree.tree(handle.getvalue().strip())


def call_iqtree(
    alignment: Path,
    prefix: Path,
    model: str = "GTR",
    threads: int = 1,
    bootstrap: int = 0,
    binary: Optional[Path] = None,
) -> Path:
    """Run iqtree and return the path to its .treefile."""
    if binary:
        iqtree = find_binary("iqtree", binary)
    else:
        for name in IQTREE_NAMES:
            try:
                iqtree = find_binary(name)
                break
            except ScolecoError:
                continue
        else:
            raise ScolecoError(f"iqtree binary not found. Checked: {IQTREE_NAMES}")

    cmd = [
        iqtree,
        "-s", str(alignment),
        "--prefix", str(prefix),
        "-m", model,
        "-T", str(threads),
        "--redo",
        "--quiet",
    ]
    if bootstrap:
        cmd += ["-B", str(bootstrap)]
    logger.debug(" ".join(cmd))
    proc = subprocess.run(cmd, stdout=subprocess.PIPE, stderr=subprocess.STDOUT, text=True)
    if proc.returncode:
        raise subprocess.CalledProcessError(proc.returncode, cmd, output=proc.stdout)
    treefile = Path(f"{prefix}.treefile")
    if not treefile.exists():
        raise ScolecoError(f"iqtree finished but {treefile} was not written")
    return treefile


def build_ml_tree(
    seqs: Dict[str, str],
    model: str = "GTR",
    threads: int = 1,
    bootstrap: int = 0,
    binary: Optional[Path] = None,
    tmpdir: Optional[Path] = None,
) -> toytree.ToyTree:
    """Return an ML toytree from {label: aligned seq} inferred by iqtree.

    iqtree writes many files; these are kept in a temporary directory.
    """
    safe = get_safe_seqs(seqs)
    with tempfile.TemporaryDirectory(dir=tmpdir) as tmp:
        fasta = Path(tmp) / "alignment.fa"
        with open(fasta, "w") as out:
            out.write("".join(f">{i}\n{j}\n" for (i, j) in safe.items()))
        treefile = call_iqtree(fasta, Path(tmp) / "ml", model, threads, bootstrap, binary)
        newick = treefile.read_text().strip()
    if bootstrap:
        return toytree.tree(newick, internal_labels="support")
    return toytree.tree(newick)


def build_tree(seqs: Dict[str, str], method: str, **kwargs) -> toytree.ToyTree:
    """Return a tree by method 'ML' or 'NJ'."""
    method = method.upper()
    if method == "NJ":
        return build_nj_tree(seqs, model=kwargs.get("distance", "identity"), cutoff=kwargs.get("cutoff", 0.0))
    if method == "ML":
        return build_ml_tree(
            seqs,
            model=kwargs.get("model", "GTR"),
            threads=kwargs.get("threads", 1),
            bootstrap=kwargs.get("bootstrap", 0),
            binary=kwargs.get("binary"),
        )
    raise ScolecoError(f"unknown tree method '{method}'. Options: {METHODS}")


def run_tree_build(args):
    """Write a newick tree inferred from an aligned FASTA."""
    set_log_level(args.log_level)
    if not (args.input.exists() and args.input.is_file()):
        raise ScolecoError(f"{args.input} not found")

    if args.out and args.out.exists() and not args.force:
        logger.warning(f"[skipping] {args.out} already exists. Use --force to overwrite")
        return

    seqs = parse_fasta(args.input)
    logger.info(f"building {args.method.upper()} tree from {len(seqs)} aligned sequences")
    tree = build_tree(
        seqs,
        args.method,
        model=args.model,
        distance=args.distance,
        cutoff=args.cutoff,
        threads=args.threads,
        bootstrap=args.bootstrap,
        binary=args.binary,
    )
    if args.out:
        args.out.parent.mkdir(exist_ok=True, parents=True)
        tree.write(str(args.out))
        logger.info(f"tree written to {args.out}")
    else:
        print(tree.write(None), file=sys.stdout)


def main():
    from scoleco.cli.subcommands import get_parser_tree_build
    parser = get_parser_tree_build()
    args = parser.parse_args()
    run_tree_build(args)


if __name__ == "__main__":
    try:
        main()
    except KeyboardInterrupt:
        logger.warning("interrupted by user")
    except Exception as exc:
        logger.error(exc)
        raise
