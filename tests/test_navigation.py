"""
Navigation State Machine Tests
==============================

Arrow keys move the selection over the visible tree, Tab/Enter/Delete
dispatch edit commands, Space and inserts open rename mode.
"""

import pytest

from mindmap.core.commands import AddChild, AddSibling, DeleteSelected, Select, ToggleExpand
from mindmap.interaction.navigation import Key, KeyEvent, NavigationStateMachine

from tests.fixtures import make_store


def press(machine, key, editable=False):
    return machine.handle_key(KeyEvent(key, target_is_editable=editable))


@pytest.fixture
def fan():
    """n1 with children n2, n3, n5; n3 has child n4."""
    store = make_store()
    store.apply_command(Select("n1"))
    store.apply_command(AddChild())     # n2
    store.apply_command(AddSibling())   # n3
    store.apply_command(AddChild())     # n4 under n3
    store.apply_command(Select("n1"))
    store.apply_command(AddChild())     # n5 under n1
    return store


class TestKeyParsing:

    def test_dom_values(self):
        assert Key.parse("ArrowUp") is Key.ARROW_UP
        assert Key.parse(" ") is Key.SPACE
        assert Key.parse("Space") is Key.SPACE
        assert Key.parse("Spacebar") is Key.SPACE

    def test_unknown_key(self):
        assert Key.parse("F5") is None


class TestArrowKeys:

    def test_arrow_with_no_selection_selects_top_root(self):
        store = make_store()
        machine = NavigationStateMachine(store)
        outcome = press(machine, "ArrowDown")

        assert outcome.handled
        assert store.snapshot.selected_id == "n1"

    def test_right_goes_to_middle_child(self, fan):
        # children of n1 in vertical order: n2, n3, n5
        machine = NavigationStateMachine(fan)
        fan.apply_command(Select("n1"))
        press(machine, "ArrowRight")
        assert fan.snapshot.selected_id == "n3"

    def test_right_on_leaf_is_noop(self, fan):
        machine = NavigationStateMachine(fan)
        fan.apply_command(Select("n2"))
        outcome = press(machine, "ArrowRight")
        assert outcome.handled
        assert not outcome.changed
        assert fan.snapshot.selected_id == "n2"

    def test_right_on_collapsed_is_noop(self, fan):
        machine = NavigationStateMachine(fan)
        fan.apply_command(Select("n1"))
        fan.apply_command(ToggleExpand("n1"))
        press(machine, "ArrowRight")
        assert fan.snapshot.selected_id == "n1"

    def test_left_goes_to_parent(self, fan):
        machine = NavigationStateMachine(fan)
        fan.apply_command(Select("n4"))
        press(machine, "ArrowLeft")
        assert fan.snapshot.selected_id == "n3"
        press(machine, "ArrowLeft")
        assert fan.snapshot.selected_id == "n1"

    def test_left_on_root_is_noop(self, fan):
        machine = NavigationStateMachine(fan)
        fan.apply_command(Select("n1"))
        press(machine, "ArrowLeft")
        assert fan.snapshot.selected_id == "n1"

    def test_up_down_among_siblings_without_wrap(self, fan):
        machine = NavigationStateMachine(fan)
        fan.apply_command(Select("n2"))

        press(machine, "ArrowDown")
        assert fan.snapshot.selected_id == "n3"
        press(machine, "ArrowDown")
        assert fan.snapshot.selected_id == "n5"
        press(machine, "ArrowDown")
        assert fan.snapshot.selected_id == "n5"
        press(machine, "ArrowUp")
        assert fan.snapshot.selected_id == "n3"

    def test_up_at_top_is_noop(self, fan):
        machine = NavigationStateMachine(fan)
        fan.apply_command(Select("n2"))
        press(machine, "ArrowUp")
        assert fan.snapshot.selected_id == "n2"

    def test_up_down_between_roots(self):
        store = make_store()
        store.apply_command(Select("n1"))
        store.apply_command(AddSibling())   # n2, a second root
        machine = NavigationStateMachine(store)

        press(machine, "ArrowUp")
        assert store.snapshot.selected_id == "n1"
        press(machine, "ArrowDown")
        assert store.snapshot.selected_id == "n2"

    def test_arrow_focuses_new_selection(self, fan):
        machine = NavigationStateMachine(fan)
        fan.apply_command(Select("n2"))
        outcome = press(machine, "ArrowDown")
        assert outcome.focus.node_id == "n3"
        assert outcome.focus.position == fan.snapshot.node("n3").position


class TestEditKeys:

    def test_tab_adds_child_and_enters_rename(self):
        store = make_store()
        machine = NavigationStateMachine(store)
        store.apply_command(Select("n1"))

        outcome = press(machine, "Tab")
        assert isinstance(outcome.command, AddChild)
        assert outcome.changed
        assert machine.renaming_id == "n2"
        assert outcome.renaming_id == "n2"

    def test_enter_adds_sibling(self, fan):
        machine = NavigationStateMachine(fan)
        fan.apply_command(Select("n2"))
        outcome = press(machine, "Enter")

        assert isinstance(outcome.command, AddSibling)
        new_id = fan.snapshot.selected_id
        assert fan.snapshot.parent_of(new_id) == "n1"

    def test_delete_and_backspace(self, fan):
        machine = NavigationStateMachine(fan)
        fan.apply_command(Select("n2"))
        outcome = press(machine, "Delete")
        assert isinstance(outcome.command, DeleteSelected)
        assert not fan.snapshot.has_node("n2")

        fan.apply_command(Select("n5"))
        press(machine, "Backspace")
        assert not fan.snapshot.has_node("n5")

    def test_space_opens_rename_of_selection(self, fan):
        machine = NavigationStateMachine(fan)
        fan.apply_command(Select("n3"))
        outcome = press(machine, " ")

        assert outcome.handled
        assert machine.renaming_id == "n3"

    def test_space_without_selection(self):
        machine = NavigationStateMachine(make_store())
        press(machine, "Space")
        assert not machine.is_renaming


class TestIgnoredKeys:

    def test_editable_target_is_ignored(self):
        store = make_store()
        store.apply_command(Select("n1"))
        machine = NavigationStateMachine(store)

        outcome = press(machine, "Tab", editable=True)
        assert not outcome.handled
        assert len(store.snapshot) == 1

    def test_keys_ignored_while_renaming(self):
        store = make_store()
        store.apply_command(Select("n1"))
        machine = NavigationStateMachine(store)
        press(machine, "Tab")

        outcome = press(machine, "Delete")
        assert not outcome.handled
        assert store.snapshot.has_node("n2")

    def test_unknown_key_ignored(self):
        machine = NavigationStateMachine(make_store())
        assert not press(machine, "q").handled

    def test_read_only_ignores_everything(self):
        store = make_store()
        store.apply_command(Select("n1"))
        machine = NavigationStateMachine(store, read_only=True)

        assert not press(machine, "Tab").handled
        assert not machine.begin_rename("n1")
        assert len(store.snapshot) == 1


class TestRenameMode:

    def test_commit_renames_and_leaves_mode(self):
        store = make_store()
        store.apply_command(Select("n1"))
        machine = NavigationStateMachine(store)
        press(machine, "Tab")

        outcome = machine.commit_rename("Budget")
        assert outcome.changed
        assert store.snapshot.node("n2").label == "Budget"
        assert not machine.is_renaming

    def test_commit_without_rename_is_noop(self):
        machine = NavigationStateMachine(make_store())
        assert not machine.commit_rename("x").changed

    def test_blank_commit_keeps_label(self):
        store = make_store("R")
        machine = NavigationStateMachine(store)
        assert machine.begin_rename("n1")

        machine.commit_rename("  ")
        assert store.snapshot.node("n1").label == "R"
        assert not machine.is_renaming

    def test_cancel(self):
        machine = NavigationStateMachine(make_store())
        machine.begin_rename("n1")
        machine.cancel_rename()
        assert machine.renaming_id is None

    def test_begin_rename_unknown_node(self):
        assert not NavigationStateMachine(make_store()).begin_rename("zz")
