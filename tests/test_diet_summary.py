import pandas as pd
from scoleco.traitlab.diet_summary import draw_diet_chart, iter_summary, summarize_diet
from scoleco.traitlab.taxon_filter import filter_taxa


def test_summarize_diet(diet_table):
    summary = summarize_diet(filter_taxa(diet_table))
    assert iter_summary(summary) == [
        ("Leptotyphlopidae", "Formicidae", 3),
        ("Typhlopidae", "Isoptera", 3),
    ]


def test_single_observations_excluded(diet_table):
    rows = iter_summary(summarize_diet(filter_taxa(diet_table)))
    assert all(count > 1 for (_, _, count) in rows)
    assert ("Anomalepididae", "Formicidae", 1) not in rows


def test_leftover_families_excluded(diet_table):
    rows = iter_summary(summarize_diet(filter_taxa(diet_table)))
    assert "Gerrhopilidae" not in {i[0] for i in rows}
    # without the exclusion the leftover passes the count threshold
    rows = iter_summary(summarize_diet(filter_taxa(diet_table), leftovers=[]))
    assert ("Gerrhopilidae", "Formicidae", 2) in rows


def test_min_count_threshold():
    diet = pd.DataFrame({
        "family": ["Anomalepididae"] + ["Leptotyphlopidae"] * 3,
        "prey": ["Formicidae"] * 4,
    })
    assert iter_summary(summarize_diet(diet)) == [("Leptotyphlopidae", "Formicidae", 3)]
    assert iter_summary(summarize_diet(diet, min_count=1)) == [
        ("Anomalepididae", "Formicidae", 1),
        ("Leptotyphlopidae", "Formicidae", 3),
    ]


def test_draw_diet_chart(diet_table, tmp_path):
    import toyplot.svg
    canvas = draw_diet_chart(summarize_diet(filter_taxa(diet_table)))
    out = tmp_path / "diet.svg"
    toyplot.svg.render(canvas, str(out))
    assert out.exists()
