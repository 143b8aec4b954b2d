#!/usr/bin/env python

"""Tree inference and comparison.

$ tree-build -i aligned.fa -m ML -M GTR > ml.nwk
Infer an ML tree with iqtree, or a NJ tree from pairwise distances.

$ tree-compare -a ml.nwk -b nj.nwk -s trees.svg
Robinson-Foulds distance and side-by-side drawing of two trees.
"""
