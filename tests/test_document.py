"""PptxDocument against real temp .pptx files."""

from pathlib import Path

import pytest

from pptx_assistant.document import PptxDocument
from pptx_assistant.errors import DocumentAccessError
from pptx_assistant.models import Locator, RgbColor, ScopeKind, StyleSnapshot


class TestOpenSave:
    def test_open_missing_file_raises(self, tmp_path: Path) -> None:
        with pytest.raises(DocumentAccessError):
            PptxDocument.open(str(tmp_path / "ghost.pptx"))

    def test_open_non_pptx_raises(self, tmp_path: Path) -> None:
        bogus = tmp_path / "notes.pptx"
        bogus.write_text("not a zip", encoding="utf-8")
        with pytest.raises(DocumentAccessError):
            PptxDocument.open(str(bogus))

    def test_save_round_trip(self, sample_doc: PptxDocument, tmp_path: Path) -> None:
        sample_doc.set_text("s1/sh2", "43")
        out = tmp_path / "out.pptx"
        sample_doc.save(str(out))
        reopened = PptxDocument.open(str(out))
        assert reopened.get_text("s1/sh2") == "43"


class TestEnumeration:
    def test_lists_shapes_cells_and_groups_in_order(self, sample_doc: PptxDocument) -> None:
        scope = sample_doc.resolve_scope(ScopeKind.DOCUMENT)
        elements = sample_doc.list_elements(scope)
        assert [e.element_id for e in elements] == [
            "s1/sh1",
            "s1/sh2",
            "s2/sh1/r0c0",
            "s2/sh1/r0c1",
            "s2/sh1/r1c0",
            "s2/sh1/r1c1",
            "s2/sh2",
            "s3/sh1.1",
            "s3/sh2",
        ]
        assert elements[0].plain_text == "Welcome to the PRD review"
        assert elements[7].plain_text == "PRD inside group"

    def test_captures_style(self, sample_doc: PptxDocument) -> None:
        elements = sample_doc.list_elements(sample_doc.resolve_scope(ScopeKind.DOCUMENT))
        style = elements[0].style
        assert style.bold is True
        assert style.font_size == 24
        assert style.foreground == RgbColor(0x11, 0x22, 0x33)

    def test_selection_scope(self, sample_doc: PptxDocument) -> None:
        assert sample_doc.select_slides("2")
        scope = sample_doc.resolve_scope(ScopeKind.SELECTION)
        assert scope.slide_indexes == (1,)
        ids = [e.element_id for e in sample_doc.list_elements(scope)]
        assert all(i.startswith("s2/") for i in ids)
        assert len(ids) == 5

    def test_invalid_selection_parts_reported(self, sample_doc: PptxDocument) -> None:
        assert sample_doc.select_slides("1,9") is False
        assert sample_doc.selection == {0}

    def test_current_slide_scope(self, sample_doc: PptxDocument) -> None:
        sample_doc.set_current_slide(3)
        scope = sample_doc.resolve_scope(ScopeKind.CURRENT_SLIDE)
        assert scope.description == "slide 3"
        assert len(sample_doc.list_elements(scope)) == 2

    def test_current_slide_missing_raises(self, sample_doc: PptxDocument) -> None:
        with pytest.raises(DocumentAccessError):
            sample_doc.resolve_scope(ScopeKind.CURRENT_SLIDE)
        with pytest.raises(DocumentAccessError):
            sample_doc.set_current_slide(7)

    def test_selection_scope_prefers_selection(self, sample_doc: PptxDocument) -> None:
        assert sample_doc.get_selection_scope().kind == ScopeKind.DOCUMENT
        sample_doc.set_current_slide(1)
        assert sample_doc.get_selection_scope().kind == ScopeKind.CURRENT_SLIDE
        sample_doc.select_slides("2-3")
        assert sample_doc.get_selection_scope().kind == ScopeKind.SELECTION


class TestElementAccess:
    def test_get_and_set_text_in_table_cell(self, sample_doc: PptxDocument) -> None:
        assert sample_doc.get_text("s2/sh1/r1c0") == "Category"
        sample_doc.set_text("s2/sh1/r1c0", "Kategorie")
        assert sample_doc.get_text("s2/sh1/r1c0") == "Kategorie"

    def test_set_text_keeps_run_formatting(self, sample_doc: PptxDocument) -> None:
        sample_doc.set_text("s1/sh1", "Bienvenue")
        style = sample_doc.get_style("s1/sh1")
        assert style.bold is True
        assert style.font_size == 24

    def test_set_style_overwrite(self, sample_doc: PptxDocument) -> None:
        sample_doc.set_style("s1/sh2", StyleSnapshot(bold=True, italic=True, font_size=18))
        style = sample_doc.get_style("s1/sh2")
        assert (style.bold, style.italic, style.font_size) == (True, True, 18)

    def test_set_style_without_overwrite_keeps_existing(self, sample_doc: PptxDocument) -> None:
        sample_doc.set_style("s1/sh1", StyleSnapshot(bold=False, italic=True), overwrite=False)
        style = sample_doc.get_style("s1/sh1")
        assert style.bold is True
        assert style.italic is True

    def test_unknown_element(self, sample_doc: PptxDocument) -> None:
        assert not sample_doc.has_element("s9/sh1")
        assert not sample_doc.has_element("garbage")
        with pytest.raises(DocumentAccessError):
            sample_doc.get_text("s1/sh40")

    def test_markup_round_trip(self, sample_doc: PptxDocument) -> None:
        markup = sample_doc.export_markup("s1/sh1")
        sample_doc.set_text("s1/sh1", "Changed\nacross lines")
        sample_doc.set_style("s1/sh1", StyleSnapshot(bold=False))
        sample_doc.restore_markup("s1/sh1", markup)
        assert sample_doc.get_text("s1/sh1") == "Welcome to the PRD review"
        assert sample_doc.get_style("s1/sh1").bold is True


class TestLocator:
    def test_key_round_trip(self) -> None:
        loc = Locator(2, (0, 3), 1, 0)
        assert loc.key == "s3/sh1.4/r1c0"
        assert Locator.from_key(loc.key) == loc

    def test_sort_key_puts_shape_before_cells(self) -> None:
        shape = Locator(0, (1,))
        cell = Locator(0, (1,), 0, 0)
        assert shape.sort_key() < cell.sort_key()


def test_summary(sample_doc: PptxDocument) -> None:
    summary = sample_doc.summary()
    assert summary.title == "Quarterly Review"
    assert summary.slide_count == 3
    assert summary.selection_description == "entire presentation (3 slides)"
    assert summary.slide_titles[0] == "Welcome to the PRD review"
