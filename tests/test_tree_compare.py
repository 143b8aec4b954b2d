import pytest
import toytree
from scoleco.treelab.tree_compare import (
    draw_tree_pair,
    get_display_label,
    get_splits,
    get_tip_family,
    robinson_foulds,
    root_on_family,
)
from scoleco.utils import ScolecoError


def test_tip_family_and_display_label():
    name = "Liotyphlops_beu_Anomalepididae"
    assert get_tip_family(name) == "Anomalepididae"
    assert get_display_label(name) == "Liotyphlops beu (Anomalepididae)"
    assert get_tip_family("Natrix_natrix") is None
    assert get_display_label("Natrix_natrix") == "Natrix natrix"


def test_splits_ignore_rooting():
    tree1 = toytree.tree("((a,b),(c,d));")
    tree2 = toytree.tree("(a,(b,(c,d)));")
    assert get_splits(tree1) == get_splits(tree2) == {frozenset(["c", "d"])}


def test_robinson_foulds_identical_and_different():
    tree1 = toytree.tree("((a,b),(c,d),e);")
    assert robinson_foulds(tree1, toytree.tree("((b,a),(d,c),e);"))["rf"] == 0
    stats = robinson_foulds(tree1, toytree.tree("((a,c),(b,d),e);"))
    assert stats["rf"] == 4
    assert stats["max_rf"] == 4
    assert stats["norm_rf"] == 1.0
    assert stats["shared_splits"] == 0


def test_robinson_foulds_shared_tips_only():
    tree1 = toytree.tree("((a,b),(c,d),(e,f));")
    tree2 = toytree.tree("((a,b),(c,d),e);")
    stats = robinson_foulds(tree1, tree2)
    assert stats["ntips"] == 5
    assert stats["rf"] == 0


def test_robinson_foulds_too_few_shared():
    with pytest.raises(ScolecoError):
        robinson_foulds(toytree.tree("((a,b),c);"), toytree.tree("((x,y),z);"))


def test_root_on_missing_family_returns_tree():
    tree = toytree.tree("((A_b_Typhlopidae,C_d_Typhlopidae),(E_f_Leptotyphlopidae,G_h_Leptotyphlopidae));")
    assert root_on_family(tree, "Anomalepididae") is tree


def test_draw_tree_pair():
    tree1 = toytree.tree("((A_b_Typhlopidae,C_d_Typhlopidae),(E_f_Leptotyphlopidae,G_h_Anomalepididae));")
    tree2 = toytree.tree("((A_b_Typhlopidae,E_f_Leptotyphlopidae),(C_d_Typhlopidae,G_h_Anomalepididae));")
    canvas = draw_tree_pair(tree1, tree2)
    assert canvas is not None
