from pathlib import Path
import pandas as pd
import pytest

# Diet records of blind snakes and one non-target predator. Expected
# after filtering (family, prey, count >= 2):
#   Leptotyphlopidae  Formicidae  3   (incl. one Rena record)
#   Typhlopidae       Isoptera    3
DIET_ROWS = [
    ("Serpentes;Scolecophidia;Anomalepididae;Liotyphlops beu", "Formicidae"),
    ("Serpentes;Scolecophidia;Rena;Rena dulcis", "Formicidae"),
    ("Serpentes;Scolecophidia;Leptotyphlopidae;Epictia albifrons", "Formicidae"),
    ("Serpentes;Scolecophidia;Leptotyphlopidae;Leptotyphlops scutifrons", "Formicidae"),
    ("Serpentes;Scolecophidia;Typhlopidae;Typhlops jamaicensis", "Formicidae"),
    ("Serpentes;Scolecophidia;Typhlopidae;Typhlops jamaicensis", "Isoptera"),
    ("Serpentes;Scolecophidia;Typhlopidae;Amerotyphlops reticulatus", "Isoptera"),
    ("Serpentes;Typhlopidae", "Formicidae"),
    ("Serpentes;Colubridae;Natrix natrix", "Anura"),
    ("Serpentes;Scolecophidia;Gerrhopilidae;Gerrhopilus mirus ex Typhlopidae", "Formicidae"),
    ("Serpentes;Scolecophidia;Gerrhopilidae;Gerrhopilus mirus ex Typhlopidae", "Formicidae"),
    ("Serpentes;Scolecophidia;Typhlopidae;Afrotyphlops schlegelii", "Isoptera"),
]

FASTA = """\
>AB123456.1 Liotyphlops beu 16S ribosomal RNA gene
ACGTACGTAC
GTACGT
>AB000001.1 Typhlops jamaicensis 16S rRNA
ACGTTCGTACGAACGT
>AB000002.1 Typhlops jamaicensis 16S rRNA isolate 2
ACGTTCGTACGAACGA
>AB000003.1 Rena dulcis 16S rRNA
ACGAACGTTCGTACCT
>AB000004.1 Natrix natrix 16S rRNA
TTGTACGTACGTACGT
>BADHEADER
ACGTACGTACGTACGT
>AB000005.1 Epictia albifrons 12S rRNA
ACGAACGTTCGTACGT
"""

# aligned, display-labeled sequences with distinct pairwise distances
ALIGNED = {
    "Liotyphlops beu (Anomalepididae)": "ACGTACGTACGTACGTACGT",
    "Typhlops jamaicensis (Typhlopidae)": "ACGTTCGTACGAACGTACGA",
    "Afrotyphlops schlegelii (Typhlopidae)": "ACGTTCGTACGAACCTACGA",
    "Rena dulcis (Leptotyphlopidae)": "ACGAACGTTCGTACCTTCGT",
    "Epictia albifrons (Leptotyphlopidae)": "ACGAACGTTCGTACGTTCGT",
}


@pytest.fixture
def diet_table() -> pd.DataFrame:
    return pd.DataFrame(DIET_ROWS, columns=["predator_taxon", "prey"])


@pytest.fixture
def diet_csv(tmp_path, diet_table) -> Path:
    path = tmp_path / "diet.csv"
    diet_table.to_csv(path, index=False)
    return path


@pytest.fixture
def fasta_path(tmp_path) -> Path:
    path = tmp_path / "seqs.fa"
    path.write_text(FASTA)
    return path


@pytest.fixture
def aligned_seqs() -> dict:
    return dict(ALIGNED)


@pytest.fixture
def aligned_path(tmp_path) -> Path:
    path = tmp_path / "aligned.fa"
    path.write_text("".join(f">{i}\n{j}\n" for (i, j) in ALIGNED.items()))
    return path
