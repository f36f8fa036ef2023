"""
Property Tests for Editor Invariants
Random command sequences must never break the forest, the single
selection, the visibility rule or layout determinism.
"""

from hypothesis import given, settings, strategies as st
from hypothesis.strategies import composite

from mindmap.core.commands import (
    AddChild, AddSibling, DeleteSelected, Rename, Select, ToggleExpand
)
from mindmap.core.topology import build_graph, check_forest, descendants
from mindmap.core.visibility import resolve

from tests.fixtures import make_store


# =============================================================================
# STRATEGIES (Generators)
# =============================================================================

ACTION_KINDS = ["add_child", "add_sibling", "delete", "toggle", "select", "rename"]


@composite
def actions(draw):
    """(kind, index, label) triples; index is resolved against the live snapshot."""
    kind = draw(st.sampled_from(ACTION_KINDS))
    index = draw(st.integers(min_value=0, max_value=50))
    label = draw(st.text(max_size=8))
    return kind, index, label


def to_command(snapshot, action):
    kind, index, label = action
    ids = snapshot.node_ids()
    target = ids[index % len(ids)] if ids else None

    if kind == "add_child":
        return AddChild()
    if kind == "add_sibling":
        return AddSibling()
    if kind == "delete":
        return DeleteSelected()
    if kind == "toggle":
        return ToggleExpand(target)
    if kind == "select":
        return Select(target)
    return Rename(target, label)


def run(sequence):
    """Apply a sequence, yielding (before, command, after) per step."""
    store = make_store("Root")
    for action in sequence:
        before = store.snapshot
        command = to_command(before, action)
        store.apply_command(command)
        yield before, command, store.snapshot


action_lists = st.lists(actions(), max_size=40)


# =============================================================================
# PROPERTY TESTS
# =============================================================================

@settings(deadline=None)
@given(action_lists)
def test_forest_and_single_selection_hold(sequence):
    """Every reachable snapshot is an acyclic forest with at most one selection."""
    for _, _, after in run(sequence):
        assert check_forest(after.nodes, after.edges).is_valid
        assert after.selected_count() <= 1


@settings(deadline=None)
@given(action_lists)
def test_hidden_iff_collapsed_ancestor(sequence):
    for _, _, after in run(sequence):
        for node in after.nodes:
            collapsed_above = False
            parent = after.parent_of(node.node_id)
            while parent is not None:
                if not after.node(parent).expanded:
                    collapsed_above = True
                parent = after.parent_of(parent)
            assert node.hidden == collapsed_above


@settings(deadline=None)
@given(action_lists)
def test_roots_are_never_deleted(sequence):
    for before, _, after in run(sequence):
        assert set(before.roots()) <= set(after.roots())


@settings(deadline=None)
@given(action_lists)
def test_delete_removes_every_descendant(sequence):
    for before, command, after in run(sequence):
        if not isinstance(command, DeleteSelected) or len(after) == len(before):
            continue
        doomed = before.selected_id
        subtree = descendants(build_graph(before.nodes, before.edges), doomed) | {doomed}
        assert not subtree & set(after.node_ids())
        assert len(after) == len(before) - len(subtree)


@settings(deadline=None)
@given(action_lists)
def test_layout_is_deterministic_and_collision_free(sequence):
    store = make_store("Root")
    for action in sequence:
        store.apply_command(to_command(store.snapshot, action))

    snapshot = store.snapshot
    again = store.processor.relayout(snapshot)
    assert again.positions() == snapshot.positions()

    visible = [n.position for n in snapshot.nodes if not n.hidden]
    assert len(set(visible)) == len(visible)


@settings(deadline=None)
@given(action_lists)
def test_resolve_is_idempotent(sequence):
    steps = list(run(sequence))
    if not steps:
        return
    snapshot = steps[-1][2]
    assert resolve(snapshot.nodes, snapshot.edges) == snapshot.nodes
