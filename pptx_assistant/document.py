"""python-pptx backed document adapter.

The assistant treats a presentation as a store of text-bearing elements:
shapes with text and table cells, addressed by :class:`Locator` keys. Nothing
is cached between calls; every lookup walks the live slide tree again.
"""

import logging
import zipfile
from typing import List, Optional, Set

from lxml import etree
from pptx import Presentation
from pptx.exc import PackageNotFoundError
from pptx.oxml import parse_xml

from .errors import DocumentAccessError
from .models import DocumentSummary, Locator, ScopeDescriptor, ScopeKind, StyleSnapshot, TextElement
from .pptx_utils import (
    apply_style,
    capture_style,
    find_shape,
    get_text,
    iter_text_frames,
    parse_slide_spec,
    replace_in_runs,
    set_text,
    slide_title,
)

logger = logging.getLogger(__name__)


class PptxDocument:
    def __init__(self, prs, path: Optional[str] = None):
        self.prs = prs
        self.path = path
        self.current_slide: Optional[int] = None  # 0-based
        self.selection: Set[int] = set()

    @classmethod
    def open(cls, path: str) -> "PptxDocument":
        try:
            prs = Presentation(path)
        except (PackageNotFoundError, zipfile.BadZipFile, OSError, KeyError, ValueError) as exc:
            raise DocumentAccessError(f"Cannot open presentation {path!r}: {exc}") from exc
        return cls(prs, path=path)

    def save(self, path: Optional[str] = None):
        target = path or self.path
        if not target:
            raise DocumentAccessError("No output path for the presentation.")
        self.prs.save(target)
        self.path = target

    @property
    def slide_count(self) -> int:
        return len(self.prs.slides)

    # -- selection ---------------------------------------------------------

    def select_slides(self, spec: Optional[str]) -> bool:
        """Select slides from a ``"1,3-5"`` spec. Returns False if parts were invalid."""
        selected, invalid = parse_slide_spec(spec, self.slide_count)
        self.selection = set(selected or ())
        return not invalid

    def set_current_slide(self, number: Optional[int]):
        if number is None:
            self.current_slide = None
            return
        if not 1 <= number <= self.slide_count:
            raise DocumentAccessError(
                f"Slide {number} does not exist (presentation has {self.slide_count} slides)."
            )
        self.current_slide = number - 1

    def resolve_scope(self, kind: ScopeKind) -> ScopeDescriptor:
        if kind == ScopeKind.CURRENT_SLIDE:
            if self.current_slide is None:
                raise DocumentAccessError("No current slide; pass --slide to choose one.")
            return ScopeDescriptor(
                kind, (self.current_slide,), f"slide {self.current_slide + 1}"
            )
        if kind == ScopeKind.SELECTION:
            if not self.selection:
                raise DocumentAccessError("Nothing is selected.")
            indexes = tuple(sorted(self.selection))
            names = ", ".join(str(i + 1) for i in indexes)
            return ScopeDescriptor(kind, indexes, f"selected slides ({names})")
        return ScopeDescriptor(
            ScopeKind.DOCUMENT, None, f"entire presentation ({self.slide_count} slides)"
        )

    def get_selection_scope(self) -> ScopeDescriptor:
        if self.selection:
            return self.resolve_scope(ScopeKind.SELECTION)
        if self.current_slide is not None:
            return self.resolve_scope(ScopeKind.CURRENT_SLIDE)
        return self.resolve_scope(ScopeKind.DOCUMENT)

    # -- enumeration -------------------------------------------------------

    def list_elements(self, scope: ScopeDescriptor) -> List[TextElement]:
        slides = list(self.prs.slides)
        if scope.slide_indexes is None:
            indexes = range(len(slides))
        else:
            indexes = scope.slide_indexes
        elements: List[TextElement] = []
        for sidx in indexes:
            if not 0 <= sidx < len(slides):
                raise DocumentAccessError(f"Slide {sidx + 1} does not exist.")
            for path, row, col, owner, tf in iter_text_frames(slides[sidx].shapes):
                text = get_text(tf)
                # Shapes only count when they carry text; table cells always do.
                if row is None and not text:
                    continue
                locator = Locator(sidx, path, row, col)
                elements.append(
                    TextElement(
                        element_id=locator.key,
                        container_id=locator.describe(),
                        locator=locator,
                        plain_text=text,
                        style=capture_style(tf, owner),
                    )
                )
        logger.debug("%d text elements in %s", len(elements), scope.description)
        return elements

    def _resolve(self, element_id: str):
        locator = Locator.from_key(element_id)
        if locator is None:
            raise DocumentAccessError(f"Malformed element id {element_id!r}.")
        slides = list(self.prs.slides)
        if not 0 <= locator.slide_index < len(slides):
            raise DocumentAccessError(f"Element {element_id} no longer exists.")
        shape = find_shape(slides[locator.slide_index].shapes, locator.shape_path)
        if shape is None:
            raise DocumentAccessError(f"Element {element_id} no longer exists.")
        if locator.is_table_cell:
            if not getattr(shape, "has_table", False):
                raise DocumentAccessError(f"Element {element_id} is not a table cell.")
            table = shape.table
            if locator.row >= len(table.rows) or locator.col >= len(table.columns):
                raise DocumentAccessError(f"Element {element_id} no longer exists.")
            cell = table.cell(locator.row, locator.col)
            return cell, cell.text_frame
        if not getattr(shape, "has_text_frame", False):
            raise DocumentAccessError(f"Element {element_id} has no text.")
        return shape, shape.text_frame

    def has_element(self, element_id: str) -> bool:
        try:
            self._resolve(element_id)
        except DocumentAccessError:
            return False
        return True

    def get_text(self, element_id: str) -> str:
        _, tf = self._resolve(element_id)
        return get_text(tf)

    def set_text(self, element_id: str, text: str):
        _, tf = self._resolve(element_id)
        set_text(tf, text)

    def replace_text(self, element_id: str, pattern, replacement: str) -> int:
        """Replace ``pattern`` matches inside the element's runs. Returns the match count."""
        _, tf = self._resolve(element_id)
        return replace_in_runs(tf, pattern, replacement)

    def get_style(self, element_id: str) -> StyleSnapshot:
        owner, tf = self._resolve(element_id)
        return capture_style(tf, owner)

    def set_style(self, element_id: str, style: StyleSnapshot, overwrite: bool = True):
        owner, tf = self._resolve(element_id)
        apply_style(tf, style, owner=owner, overwrite=overwrite)

    def export_markup(self, element_id: str) -> str:
        _, tf = self._resolve(element_id)
        return etree.tostring(tf._txBody, encoding="unicode")

    def restore_markup(self, element_id: str, markup: str):
        _, tf = self._resolve(element_id)
        old = tf._txBody
        parent = old.getparent()
        if parent is None:
            raise DocumentAccessError(f"Element {element_id} is detached.")
        parent.replace(old, parse_xml(markup))

    # -- context -----------------------------------------------------------

    def summary(self) -> DocumentSummary:
        titles = [slide_title(s) for s in self.prs.slides]
        title = (self.prs.core_properties.title or "").strip()
        if not title:
            title = next((t for t in titles if t), "Untitled")
        return DocumentSummary(
            title=title,
            slide_count=self.slide_count,
            selection_description=self.get_selection_scope().description,
            slide_titles=titles[:4],
        )
