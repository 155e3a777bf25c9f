from pathlib import Path

import pytest

from pptx_assistant.config import Settings
from pptx_assistant.engine import BulkMutationEngine, FixedDelayPolicy
from pptx_assistant.models import Locator, ScopeKind, StyleSnapshot, TextElement
from pptx_assistant.operations import ReplaceTransform
from pptx_assistant.session import SessionContext
from pptx_assistant.undo import JsonSnapshotStore, MemorySnapshotStore, Snapshot, UndoCoordinator


def elements_of(doc):
    return doc.list_elements(doc.resolve_scope(ScopeKind.DOCUMENT))


@pytest.fixture
def undo(sample_doc, session) -> UndoCoordinator:
    return UndoCoordinator(sample_doc, session)


class TestSnapshotRevert:
    def test_revert_restores_text_and_style_exactly(self, sample_doc, undo) -> None:
        before = {e.element_id: (e.plain_text, e.style) for e in elements_of(sample_doc)}
        undo.snapshot("Scribble", elements_of(sample_doc))
        for element_id in before:
            sample_doc.set_text(element_id, "scribbled over\nwith two lines")
            sample_doc.set_style(element_id, StyleSnapshot(bold=False, italic=True, font_size=11))

        result = undo.revert()

        assert result.success
        assert not result.partial
        assert result.restored == len(before)
        after = {e.element_id: (e.plain_text, e.style) for e in elements_of(sample_doc)}
        assert after == before
        assert undo.depth == 0

    def test_text_and_style_fallback_without_markup(self, sample_doc, undo) -> None:
        element = elements_of(sample_doc)[0]
        snap_id = undo.snapshot("Edit", [element])
        undo.stack[-1].captured_elements[0].markup = None
        sample_doc.set_text(element.element_id, "Other")
        sample_doc.set_style(element.element_id, StyleSnapshot(bold=False))

        assert undo.revert(snap_id).success
        assert sample_doc.get_text(element.element_id) == "Welcome to the PRD review"
        assert sample_doc.get_style(element.element_id).bold is True

    def test_replace_then_undo(self, sample_doc, undo) -> None:
        transform = ReplaceTransform("PRD", "Spec")
        elements = elements_of(sample_doc)
        undo.snapshot(transform.label, [e for e in elements if transform.applies_to(e.plain_text)])
        engine = BulkMutationEngine(sample_doc, rate_policy=FixedDelayPolicy(0))
        engine.run(elements, transform, "doc")
        assert sample_doc.get_text("s2/sh2") == "The Spec is final."

        result = undo.revert()
        assert result.restored == 4
        assert sample_doc.get_text("s2/sh2") == "The PRD is final."
        assert sample_doc.get_text("s3/sh1.1") == "PRD inside group"

    def test_missing_element_is_skipped_not_fatal(self, sample_doc, undo) -> None:
        ghost = TextElement("s9/sh1", "slide 9, shape 1", Locator(8, (0,)), "ghost")
        real = elements_of(sample_doc)[1]
        undo.snapshot("Edit", [ghost, real])
        sample_doc.set_text(real.element_id, "43")

        result = undo.revert()

        assert result.success
        assert result.partial
        assert result.restored == 1
        assert result.skipped == ["slide 9, shape 1"]
        assert sample_doc.get_text(real.element_id) == "42"
        assert "could not be restored" in result.message


class TestStack:
    def test_depth_cap_evicts_oldest(self, sample_doc, session) -> None:
        undo = UndoCoordinator(sample_doc, session, depth=3)
        ids = [undo.snapshot(f"op {i}", elements_of(sample_doc)[:1]) for i in range(5)]
        assert undo.depth == 3
        assert [s.id for s in undo.history()] == ids[:1:-1]

    def test_revert_to_older_snapshot_drops_newer(self, sample_doc, undo) -> None:
        element = elements_of(sample_doc)[1]
        first = undo.snapshot("one", [element])
        sample_doc.set_text(element.element_id, "one")
        undo.snapshot("two", elements_of(sample_doc)[1:2])
        sample_doc.set_text(element.element_id, "two")

        result = undo.revert(first)

        assert result.steps_reverted == 2
        assert undo.depth == 0
        assert sample_doc.get_text(element.element_id) == "42"

    def test_empty_stack(self, undo) -> None:
        result = undo.revert()
        assert not result.success
        assert result.message == "Nothing to undo."

    def test_unknown_id(self, sample_doc, undo) -> None:
        undo.snapshot("one", elements_of(sample_doc)[:1])
        assert not undo.revert("nope").success
        assert undo.depth == 1

    def test_discard(self, sample_doc, undo) -> None:
        snap_id = undo.snapshot("one", elements_of(sample_doc)[:1])
        assert undo.discard(snap_id)
        assert not undo.discard(snap_id)
        assert undo.depth == 0

    def test_deferred_eviction(self, sample_doc, session) -> None:
        undo = UndoCoordinator(sample_doc, session, depth=2)
        kept = [undo.snapshot(f"op {i}", elements_of(sample_doc)[:1]) for i in range(2)]

        pending = undo.snapshot("no-op", elements_of(sample_doc)[:1], evict=False)
        assert undo.depth == 3
        undo.discard(pending)
        assert [s.id for s in undo.stack] == kept

        pending = undo.snapshot("real", elements_of(sample_doc)[:1], evict=False)
        assert undo.commit(pending)
        assert [s.id for s in undo.stack] == [kept[1], pending]
        assert not undo.commit("nope")


class TestPersistence:
    def test_snapshot_dict_round_trip(self, sample_doc, undo) -> None:
        undo.snapshot("Replace", elements_of(sample_doc)[:2])
        snap = undo.stack[0]
        clone = Snapshot.from_dict(snap.to_dict())
        assert clone == snap

    def test_json_store_and_session(self, sample_doc, sample_path: Path, tmp_path: Path) -> None:
        settings = Settings(state_dir=str(tmp_path / "state"))
        store = JsonSnapshotStore(settings.state_dir)
        session = SessionContext.for_presentation(str(sample_path), settings, store)
        assert session.snapshots == []

        undo = UndoCoordinator(sample_doc, session)
        undo.snapshot("Replace", elements_of(sample_doc)[:2])
        session.persist()

        reloaded = SessionContext.for_presentation(str(sample_path), settings, store)
        assert reloaded.session_id == session.session_id
        assert [s.id for s in reloaded.snapshots] == [s.id for s in session.snapshots]
        assert reloaded.snapshots[0].captured_elements[0].style_before.bold is True

    def test_sessions_are_keyed_by_path(self, tmp_path: Path) -> None:
        store = MemorySnapshotStore()
        a = SessionContext.for_presentation(str(tmp_path / "a.pptx"), Settings(), store)
        b = SessionContext.for_presentation(str(tmp_path / "b.pptx"), Settings(), store)
        assert a.session_id != b.session_id

    def test_unreadable_history_is_ignored(self, tmp_path: Path) -> None:
        store = JsonSnapshotStore(str(tmp_path))
        (tmp_path / "broken.json").write_text("{not json", encoding="utf-8")
        assert store.load("broken") == []

    def test_api_key_comes_from_settings(self) -> None:
        session = SessionContext("s", Settings(openai_api_key="sk-test"))
        assert session.api_key == "sk-test"
