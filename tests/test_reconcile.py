import pandas as pd
import pytest
from loguru import logger
from scoleco.seqlab.sequence_loader import SequenceRecord, load_sequences, parse_records
from scoleco.seqlab.reconcile import (
    AnnotatedSequenceRecord,
    dedupe_by_name,
    find_matches,
    reconcile,
    resolve_family,
)
from scoleco.traitlab.taxon_filter import TARGET_FAMILIES, filter_taxa
from scoleco.utils import EmptyReconciledSetError, ScolecoError


def _ambiguous_diet():
    return pd.DataFrame({
        "predator_taxon": [
            "Serpentes;Scolecophidia;Typhlopidae;Typhlops foo",
            "Serpentes;Scolecophidia;Leptotyphlopidae;Typhlops foo",
            "Serpentes;Scolecophidia;Typhlopidae;Typhlops bar",
            "Serpentes;Scolecophidia;Typhlopidae;Typhlops bar",
            "Serpentes;Scolecophidia;Leptotyphlopidae;Typhlops bazinus",
            "Serpentes;Scolecophidia;Typhlopidae;Typhlops baz",
        ],
        "family": [
            "Typhlopidae", "Leptotyphlopidae",
            "Typhlopidae", "Typhlopidae",
            "Leptotyphlopidae", "Typhlopidae",
        ],
    })


def _records(*names):
    return [SequenceRecord(header=f"ID{i} {n} 16S", sequence="ACGT", name=n) for (i, n) in enumerate(names)]


def test_find_matches_substring_and_empty():
    taxa = [("A;B;Typhlopidae;Typhlops jamaicensis", "Typhlopidae")]
    assert find_matches("Typhlops jamaicensis", taxa) == taxa
    assert find_matches("typhlops jamaicensis", taxa) == []
    assert find_matches("", taxa) == []


def test_scenario_liotyphlops(diet_table):
    diet = filter_taxa(diet_table)
    records = parse_records([(">AB123456.1 Liotyphlops beu 16S ribosomal RNA gene", "ACGT")])
    result = reconcile(records, diet)
    assert len(result) == 1
    assert result[0].name == "Liotyphlops beu"
    assert result[0].family == "Anomalepididae"


def test_reconcile_drops_unmatched_and_duplicates(fasta_path, diet_table):
    diet = filter_taxa(diet_table)
    result = reconcile(load_sequences(fasta_path), diet)
    assert [i.name for i in result] == [
        "Liotyphlops beu",
        "Typhlops jamaicensis",
        "Rena dulcis",
        "Epictia albifrons",
    ]
    assert all(i.family for i in result)
    assert len({i.name for i in result}) == len(result)
    # Rena synonym normalized before matching
    assert result[2].family == "Leptotyphlopidae"


def test_dedupe_first_seen_wins():
    recs = [
        AnnotatedSequenceRecord("AB1 Typhlops jamaicensis", "AAAA", "Typhlops jamaicensis", "Typhlopidae"),
        AnnotatedSequenceRecord("AB2 Typhlops jamaicensis", "CCCC", "Typhlops jamaicensis", "Typhlopidae"),
    ]
    kept = dedupe_by_name(recs)
    assert len(kept) == 1
    assert kept[0].header == "AB1 Typhlops jamaicensis"


def test_same_family_matches_are_not_ambiguous():
    for policy in ("first", "exclude", "exact"):
        result = reconcile(_records("Typhlops bar"), _ambiguous_diet(), policy=policy)
        assert [(i.name, i.family) for i in result] == [("Typhlops bar", "Typhlopidae")]


def test_policy_first_takes_first_match():
    result = reconcile(_records("Typhlops foo", "Typhlops baz"), _ambiguous_diet(), policy="first")
    assert [(i.name, i.family) for i in result] == [
        ("Typhlops foo", "Typhlopidae"),
        ("Typhlops baz", "Leptotyphlopidae"),
    ]


def test_policy_exclude_drops_ambiguous():
    result = reconcile(_records("Typhlops foo", "Typhlops bar", "Typhlops baz"), _ambiguous_diet(), policy="exclude")
    assert [i.name for i in result] == ["Typhlops bar"]


def test_policy_exact_prefers_exact_species():
    result = reconcile(_records("Typhlops foo", "Typhlops baz"), _ambiguous_diet(), policy="exact")
    assert [(i.name, i.family) for i in result] == [("Typhlops baz", "Typhlopidae")]


def test_resolve_family_unknown_policy():
    with pytest.raises(ScolecoError):
        resolve_family("x", [("a", "b")], policy="longest")


def test_empty_reconciled_set_raises(diet_table):
    diet = filter_taxa(diet_table)
    with pytest.raises(EmptyReconciledSetError):
        reconcile(_records("Natrix natrix", ""), diet)


@pytest.fixture
def log_records():
    records = []
    sink = logger.add(lambda msg: records.append(msg.record), level="DEBUG")
    yield records
    logger.remove(sink)


def test_non_target_family_records_label_nothing(diet_table):
    diet = filter_taxa(diet_table)
    assert "Gerrhopilidae" in set(diet.family)
    records = parse_records([("X1 Gerrhopilus mirus 16S", "ACGT"), ("X2 Liotyphlops beu 16S", "ACGT")])
    result = reconcile(records, diet)
    assert [(i.name, i.family) for i in result] == [("Liotyphlops beu", "Anomalepididae")]
    assert all(i.family in TARGET_FAMILIES for i in result)


def test_only_non_target_matches_is_empty(diet_table):
    diet = filter_taxa(diet_table)
    with pytest.raises(EmptyReconciledSetError):
        reconcile(parse_records([("X1 Gerrhopilus mirus 16S", "ACGT")]), diet)


@pytest.mark.parametrize("policy", ["first", "exclude", "exact"])
def test_ambiguous_match_warns_under_every_policy(log_records, policy):
    diet = _ambiguous_diet()
    taxa = list(zip(diet.predator_taxon, diet.family))
    resolve_family("Typhlops foo", find_matches("Typhlops foo", taxa), policy=policy)
    warnings = [i["message"] for i in log_records if i["level"].name == "WARNING"]
    assert len(warnings) == 1
    assert "Typhlops foo" in warnings[0]
    assert f"policy={policy}" in warnings[0]


def test_same_family_matches_logged_at_debug(log_records):
    diet = _ambiguous_diet()
    taxa = list(zip(diet.predator_taxon, diet.family))
    assert resolve_family("Typhlops bar", find_matches("Typhlops bar", taxa)) == "Typhlopidae"
    levels = [i["level"].name for i in log_records if "Typhlops bar" in i["message"]]
    assert levels == ["DEBUG"]
