#!/usr/bin/env python

"""Align labeled sequences with mafft.

If you call:
$ scoleco align -i OUT/labeled.fa -o OUT/aligned.fa

It will produce:
- OUT/aligned.fa

mafft is looked up in the current environment's bin/ first and then in
$PATH, unless a path is given with -B.
"""

import shutil
import subprocess
import sys
from pathlib import Path
from typing import Optional
from loguru import logger
from scoleco.utils import ScolecoError, set_log_level

BIN = Path(sys.prefix) / "bin"
ALGORITHMS = {
    "auto": ["--auto"],
    "linsi": ["--localpair", "--maxiterate", "1000"],
    "ginsi": ["--globalpair", "--maxiterate", "1000"],
    "fftns": ["--retree", "2"],
}


def find_binary(name: str, binary: Optional[Path] = None) -> str:
    """Return path to an executable or raise ScolecoError."""
    if binary:
        if not Path(binary).exists():
            raise ScolecoError(f"{name} binary not found at {binary}")
        return str(binary)
    local = BIN / name
    if local.exists():
        return str(local)
    found = shutil.which(name)
    if found is None:
        raise ScolecoError(f"{name} binary not found. Checked: {local} and $PATH")
    return found


def call_mafft(fasta: Path, out: Path, algorithm: str = "auto", threads: int = 1, binary: Optional[Path] = None) -> Path:
    """Run mafft on a FASTA file and write the alignment to out."""
    if algorithm not in ALGORITHMS:
        raise ScolecoError(f"unknown mafft algorithm '{algorithm}'. Options: {list(ALGORITHMS)}")
    cmd = [find_binary("mafft", binary)] + ALGORITHMS[algorithm] + [
        "--thread", str(threads),
        "--quiet",
        str(fasta),
    ]
    logger.debug(" ".join(cmd))
    proc = subprocess.run(cmd, stdout=subprocess.PIPE, stderr=subprocess.PIPE, text=True)
    if proc.returncode:
        raise subprocess.CalledProcessError(proc.returncode, cmd, output=proc.stdout, stderr=proc.stderr)
    if not proc.stdout.strip():
        raise ScolecoError(f"mafft returned an empty alignment for {fasta}")
    with open(out, "w") as hout:
        hout.write(proc.stdout)
    return out


def run_align_mafft(args):
    """..."""
    set_log_level(args.log_level)

    # check in files
    if not (args.input.exists() and args.input.is_file()):
        raise ScolecoError(f"{args.input} not found")

    # ensure outpath and pdir exists
    if args.out is None:
        args.out = args.input.with_suffix(".aln.fa")
    args.out.parent.mkdir(exist_ok=True, parents=True)

    # bail out if final file exists
    if args.out.exists() and not args.force:
        logger.warning(f"[skipping] {args.out} already exists. Use --force to overwrite")
        return
    call_mafft(args.input, args.out, args.algorithm, args.threads, args.binary)
    logger.info(f"alignment written to {args.out}")


def main():
    from scoleco.cli.subcommands import get_parser_align
    parser = get_parser_align()
    args = parser.parse_args()
    run_align_mafft(args)


if __name__ == "__main__":
    try:
        main()
    except KeyboardInterrupt:
        logger.warning("interrupted by user")
    except Exception as exc:
        logger.error(exc)
