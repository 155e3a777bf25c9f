"""Shared pytest fixtures: real temp .pptx decks plus fake model / translation backends."""

from pathlib import Path
from typing import Callable, List, Optional, Union

import pytest
from pptx import Presentation
from pptx.dml.color import RGBColor
from pptx.util import Inches, Pt

from pptx_assistant.completions import BaseCompletionClient
from pptx_assistant.config import Settings
from pptx_assistant.document import PptxDocument
from pptx_assistant.session import SessionContext
from pptx_assistant.translation import BaseTranslationService


class FakeCompletion(BaseCompletionClient):
    """Answers every prompt with ``reply`` (a string or a callable) or raises ``error``."""

    def __init__(
        self,
        reply: Union[str, Callable[[str], str], None] = None,
        error: Optional[Exception] = None,
    ):
        super().__init__(model="fake-model", api_key=None)
        self.reply = reply
        self.error = error
        self.prompts: List[str] = []

    def complete(self, prompt: str, max_tokens: int) -> str:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        if callable(self.reply):
            return self.reply(prompt)
        return self.reply or ""


class PrefixTranslationService(BaseTranslationService):
    """Prefixes the target code, e.g. "Hello" -> "FR:Hello"."""

    def __init__(self):
        self.calls: List[tuple] = []

    def translate(self, text: str, target_language_code: str) -> str:
        self.calls.append((text, target_language_code))
        return f"{target_language_code}:{text}"


@pytest.fixture
def fake_completion():
    return FakeCompletion


@pytest.fixture
def prefix_service() -> PrefixTranslationService:
    return PrefixTranslationService()


@pytest.fixture
def sleeps() -> List[float]:
    return []


@pytest.fixture
def settings() -> Settings:
    return Settings(batch_pause=0.0, undo_depth=10)


@pytest.fixture
def session(settings: Settings) -> SessionContext:
    return SessionContext("test-session", settings)


def _add_textbox(slide, text: str, bold: Optional[bool] = None):
    box = slide.shapes.add_textbox(Inches(1), Inches(1), Inches(6), Inches(1))
    box.text_frame.text = text
    if bold is not None:
        box.text_frame.paragraphs[0].runs[0].font.bold = bold
    return box


@pytest.fixture
def hello_path(tmp_path: Path) -> Path:
    """Three blank slides, each with one bold "Hello" text box."""
    prs = Presentation()
    for _ in range(3):
        slide = prs.slides.add_slide(prs.slide_layouts[6])
        _add_textbox(slide, "Hello", bold=True)
    path = tmp_path / "hello.pptx"
    prs.save(str(path))
    return path


@pytest.fixture
def hello_doc(hello_path: Path) -> PptxDocument:
    return PptxDocument.open(str(hello_path))


@pytest.fixture
def sample_path(tmp_path: Path) -> Path:
    """Text boxes, a table, a group and short non-prose strings over three slides.

    Slide 1: "Welcome to the PRD review" (bold, 24pt, #112233), "42", an empty box.
    Slide 2: a 2x2 table (PRD / Owner / Category / Status), "The PRD is final."
    Slide 3: a group holding "PRD inside group", then "—".
    """
    prs = Presentation()
    prs.core_properties.title = "Quarterly Review"
    blank = prs.slide_layouts[6]

    s1 = prs.slides.add_slide(blank)
    box = _add_textbox(s1, "Welcome to the PRD review", bold=True)
    font = box.text_frame.paragraphs[0].runs[0].font
    font.size = Pt(24)
    font.color.rgb = RGBColor(0x11, 0x22, 0x33)
    _add_textbox(s1, "42")
    s1.shapes.add_textbox(Inches(1), Inches(3), Inches(2), Inches(1))

    s2 = prs.slides.add_slide(blank)
    table = s2.shapes.add_table(2, 2, Inches(1), Inches(1), Inches(4), Inches(2)).table
    for (r, c), text in {(0, 0): "PRD", (0, 1): "Owner", (1, 0): "Category", (1, 1): "Status"}.items():
        table.cell(r, c).text = text
    _add_textbox(s2, "The PRD is final.")

    s3 = prs.slides.add_slide(blank)
    group = s3.shapes.add_group_shape()
    inner = group.shapes.add_textbox(Inches(1), Inches(1), Inches(4), Inches(1))
    inner.text_frame.text = "PRD inside group"
    _add_textbox(s3, "—")

    path = tmp_path / "sample.pptx"
    prs.save(str(path))
    return path


@pytest.fixture
def sample_doc(sample_path: Path) -> PptxDocument:
    return PptxDocument.open(str(sample_path))
