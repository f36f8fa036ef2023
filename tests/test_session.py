"""
Meeting Session Tests
=====================

An editor and a viewer sharing one InMemoryDocumentStore, driven by a
ManualClock so every push lands deterministically.
"""

from datetime import datetime, timezone

import pytest

from mindmap.config import EditorConfig, SyncConfig
from mindmap.contracts.base import ErrorCode
from mindmap.contracts.wire import decode_snapshot, encode_snapshot
from mindmap.core.commands import AddChild, Rename, Select, ToggleExpand
from mindmap.interaction.navigation import KeyEvent
from mindmap.session import MeetingSession, SessionRole, SessionStatus
from mindmap.sync.clock import ManualClock
from mindmap.sync.persistence import InMemoryDocumentStore

from tests.fixtures import CountingIds, make_snapshot


CONFIG = EditorConfig(sync=SyncConfig(debounce_seconds=1.0))


@pytest.fixture
def clock():
    return ManualClock()


@pytest.fixture
def store():
    return InMemoryDocumentStore()


def editor(store, clock, theme="Weekly Sync", errors=None):
    return MeetingSession(
        "session-1", store, SessionRole.EDITOR, theme=theme, config=CONFIG,
        clock=clock, id_factory=CountingIds(),
        on_error=errors.append if errors is not None else None,
    )


def viewer(store, clock):
    return MeetingSession(
        "session-1", store, SessionRole.VIEWER, config=CONFIG,
        clock=clock, id_factory=CountingIds("v"),
    )


def settle(session, clock):
    clock.advance(CONFIG.sync.debounce_seconds)
    return session.pump()


class TestStart:

    def test_editor_seeds_and_saves_root(self, store, clock):
        session = editor(store, clock)

        assert session.status is SessionStatus.LIVE
        assert [n.label for n in session.snapshot.nodes] == ["Weekly Sync"]
        assert store.revision("session-1") == 1
        assert store.load("session-1")["nodes"][0]["type"] == "input"

    def test_editor_loads_existing_document(self, store, clock):
        store.save("session-1", encode_snapshot(make_snapshot(["r", "a"], [("r", "a")])))
        session = editor(store, clock)

        assert session.snapshot.node_ids() == ("r", "a")
        assert store.revision("session-1") == 1
        # positions come from the layout, not from the stored cache
        assert session.snapshot.node("a").position.x == 250.0

    def test_unusable_document_is_reseeded(self, store, clock):
        store.save("session-1", {"nodes": 5})
        session = editor(store, clock)
        assert [n.label for n in session.snapshot.nodes] == ["Weekly Sync"]

    def test_default_theme(self, store, clock):
        session = MeetingSession("s", store, config=CONFIG, clock=clock)
        assert session.snapshot.nodes[0].label == "1on1 Session"

    def test_viewer_does_not_write(self, store, clock):
        session = viewer(store, clock)
        assert session.role is SessionRole.VIEWER
        assert store.load("session-1") is None


class TestLiveEditing:

    def test_viewer_sees_editor_changes_after_debounce(self, store, clock):
        ed = editor(store, clock)
        vw = viewer(store, clock)
        assert vw.snapshot.node_ids() == ("n1",)

        ed.dispatch(Select("n1"))
        ed.dispatch(AddChild())
        ed.dispatch(Rename("n2", "Hiring"))
        assert vw.snapshot.node_ids() == ("n1",)

        settle(ed, clock)
        assert vw.snapshot.node_ids() == ("n1", "n2")
        assert vw.snapshot.node("n2").label == "Hiring"
        assert store.revision("session-1") == 2

    def test_viewer_matches_editor_after_collapse(self, store, clock):
        ed = editor(store, clock)
        vw = viewer(store, clock)
        ed.dispatch(Select("n1"))
        ed.dispatch(AddChild())           # n2
        ed.dispatch(AddChild())           # n3 under n2
        ed.dispatch(Select("n1"))
        ed.dispatch(AddChild())           # n4
        ed.dispatch(ToggleExpand("n2"))
        settle(ed, clock)

        def view(session):
            return [(n.node_id, n.expanded, n.hidden, n.position) for n in session.snapshot.nodes]

        assert view(vw) == view(ed)
        assert vw.snapshot.node("n3").hidden
        assert not vw.snapshot.node("n4").hidden

    def test_selection_alone_is_not_pushed(self, store, clock):
        ed = editor(store, clock)
        ed.dispatch(Select("n1"))
        settle(ed, clock)
        assert store.revision("session-1") == 1
        assert not ed.gateway.has_pending

    def test_keys_drive_editor(self, store, clock):
        ed = editor(store, clock)
        ed.dispatch(Select("n1"))
        ed.handle_key(KeyEvent("Tab"))
        outcome = ed.commit_rename("Budget")

        assert outcome.changed
        settle(ed, clock)
        assert decode_snapshot(store.load("session-1")).node("n2").label == "Budget"

    def test_viewer_cannot_edit(self, store, clock):
        editor(store, clock)
        vw = viewer(store, clock)

        assert not vw.dispatch(AddChild()).changed
        assert not vw.handle_key(KeyEvent("Tab")).handled
        assert not vw.navigation.begin_rename("n1")

    def test_remote_replace_keeps_local_selection(self, store, clock):
        ed = editor(store, clock)
        ed.dispatch(Select("n1"))

        store.save("session-1", encode_snapshot(make_snapshot(["n1", "x"], [("n1", "x")])))
        assert ed.snapshot.node_ids() == ("n1", "x")
        assert ed.snapshot.selected_id == "n1"

    def test_remote_delete_cancels_rename(self, store, clock):
        ed = editor(store, clock)
        ed.dispatch(Select("n1"))
        ed.handle_key(KeyEvent("Tab"))
        assert ed.navigation.renaming_id == "n2"

        store.save("session-1", encode_snapshot(make_snapshot(["n1"])))
        assert not ed.navigation.is_renaming

    def test_malformed_remote_is_reported(self, store, clock):
        errors = []
        ed = editor(store, clock, errors=errors)
        before = ed.snapshot

        store.save("session-1", {"edges": []})
        assert ed.snapshot is before
        assert errors[0].code is ErrorCode.MALFORMED_SNAPSHOT


class TestTranscript:

    def test_append_note(self, store, clock):
        session = editor(store, clock)
        stamp = datetime(2024, 1, 1, tzinfo=timezone.utc)
        entry = session.append_transcript("manager", "Let's review goals", stamp)

        assert entry.timestamp == stamp
        assert session.notes == (entry,)
        # notes never become nodes
        assert len(session.snapshot) == 1

    def test_blank_note_is_dropped(self, store, clock):
        session = editor(store, clock)
        assert session.append_transcript("report", "   ") is None
        assert session.notes == ()


class TestEnd:

    def test_end_saves_action_items_and_freezes(self, store, clock):
        ed = editor(store, clock)
        vw = viewer(store, clock)
        ed.dispatch(Select("n1"))
        ed.dispatch(AddChild())

        result = ed.end(["Send recap", "Schedule follow-up"])

        assert result.is_success
        assert ed.status is SessionStatus.COMPLETED
        assert store.is_frozen("session-1")
        assert store.load("session-1")["actionItems"] == ["Send recap", "Schedule follow-up"]
        assert vw.snapshot.action_items == ("Send recap", "Schedule follow-up")
        assert vw.snapshot.node_ids() == ("n1", "n2")

    def test_no_edits_after_end(self, store, clock):
        ed = editor(store, clock)
        ed.end()
        ed.dispatch(Select("n1"))

        assert not ed.dispatch(AddChild()).changed
        assert not ed.handle_key(KeyEvent("Tab")).handled
        assert ed.end() is None

    def test_frozen_document_rejects_late_writes(self, store, clock):
        errors = []
        ed = editor(store, clock, errors=errors)
        ed.end()

        late = MeetingSession(
            "session-1", store, config=CONFIG, clock=clock,
            id_factory=CountingIds("late"), on_error=errors.append,
        )
        late.dispatch(Select("n1"))
        late.dispatch(AddChild())
        settle(late, clock)
        assert errors[-1].code is ErrorCode.DOCUMENT_FROZEN

    def test_viewer_end_just_stops_listening(self, store, clock):
        editor(store, clock)
        vw = viewer(store, clock)

        assert vw.end() is None
        assert vw.gateway.closed
        assert not store.is_frozen("session-1")
