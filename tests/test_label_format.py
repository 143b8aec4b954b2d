import io
import pytest
from scoleco.seqlab.label_format import format_label, get_label_to_seq_dict, label_sequences, write_labeled_fasta
from scoleco.seqlab.reconcile import AnnotatedSequenceRecord, reconcile
from scoleco.seqlab.sequence_loader import load_sequences
from scoleco.traitlab.taxon_filter import filter_taxa
from scoleco.utils import ScolecoError


def test_format_label():
    assert format_label("Liotyphlops beu", "Anomalepididae") == "Liotyphlops beu (Anomalepididae)"


def test_label_sequences_count_and_unique(fasta_path, diet_table):
    reconciled = reconcile(load_sequences(fasta_path), filter_taxa(diet_table))
    labeled = label_sequences(reconciled)
    assert len(labeled) == len(reconciled)
    labels = [i.label for i in labeled]
    assert len(set(labels)) == len(labels)
    assert labels[0] == "Liotyphlops beu (Anomalepididae)"
    assert list(get_label_to_seq_dict(labeled)) == labels


def test_label_collision_raises():
    recs = [
        AnnotatedSequenceRecord("a", "AC", "Typhlops lumbricalis", "Typhlopidae"),
        AnnotatedSequenceRecord("b", "GT", "Typhlops lumbricalis", "Typhlopidae"),
    ]
    with pytest.raises(ScolecoError):
        label_sequences(recs)


def test_label_requires_family():
    with pytest.raises(ScolecoError):
        label_sequences([AnnotatedSequenceRecord("a", "AC", "Typhlops lumbricalis", None)])


def test_write_labeled_fasta(fasta_path, diet_table, tmp_path):
    labeled = label_sequences(reconcile(load_sequences(fasta_path), filter_taxa(diet_table)))
    out = tmp_path / "labeled.fa"
    write_labeled_fasta(labeled, out)
    text = out.read_text()
    assert text.startswith(">Liotyphlops beu (Anomalepididae)\nACGTACGTACGTACGT\n")
    assert text.count(">") == 4


def test_pipeline_is_deterministic(fasta_path, diet_table):
    outputs = []
    for _ in range(2):
        labeled = label_sequences(reconcile(load_sequences(fasta_path), filter_taxa(diet_table)))
        handle = io.StringIO()
        write_labeled_fasta(labeled, handle)
        outputs.append(handle.getvalue())
    assert outputs[0] == outputs[1]
