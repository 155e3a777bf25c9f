from typing import Iterator, List, Optional, Set, Tuple

from pptx.dml.color import RGBColor
from pptx.enum.dml import MSO_COLOR_TYPE, MSO_FILL, MSO_THEME_COLOR
from pptx.enum.shapes import MSO_SHAPE_TYPE
from pptx.table import Table
from pptx.util import Pt

from .models import Color, RgbColor, StyleSnapshot, ThemeColor, UnknownColor


def parse_slide_spec(spec: Optional[str], total_slides: int) -> Tuple[Optional[Set[int]], bool]:
    if not spec:
        return None, False
    selected: Set[int] = set()
    invalid = False
    parts = [p.strip() for p in spec.split(",") if p.strip()]
    for part in parts:
        if "-" in part:
            start_str, end_str = part.split("-", 1)
            if not start_str.strip().isdigit() or not end_str.strip().isdigit():
                invalid = True
                continue
            start = int(start_str)
            end = int(end_str)
            if end < start:
                start, end = end, start
            for num in range(start, end + 1):
                if 1 <= num <= total_slides:
                    selected.add(num - 1)
                else:
                    invalid = True
        else:
            if not part.isdigit():
                invalid = True
                continue
            num = int(part)
            if 1 <= num <= total_slides:
                selected.add(num - 1)
            else:
                invalid = True
    return selected, invalid


TextFrameEntry = Tuple[Tuple[int, ...], Optional[int], Optional[int], object, object]


def iter_text_frames(shapes, path: Tuple[int, ...] = ()) -> Iterator[TextFrameEntry]:
    # Yield (shape_path, row, col, owner, text_frame) in document order.
    # owner is the shape or table cell carrying the frame (used for fills).
    for idx, shape in enumerate(shapes):
        shape_path = path + (idx,)
        if shape.shape_type == MSO_SHAPE_TYPE.GROUP:
            yield from iter_text_frames(shape.shapes, shape_path)
        elif getattr(shape, "has_text_frame", False):
            if shape.has_text_frame and shape.text_frame is not None:
                yield shape_path, None, None, shape, shape.text_frame
        elif getattr(shape, "has_table", False) and shape.has_table:
            table: Table = shape.table
            for r_idx, row in enumerate(table.rows):
                for c_idx, cell in enumerate(row.cells):
                    yield shape_path, r_idx, c_idx, cell, cell.text_frame


def find_shape(shapes, shape_path: Tuple[int, ...]):
    shape = None
    for depth, idx in enumerate(shape_path):
        shapes_list = list(shapes)
        if idx < 0 or idx >= len(shapes_list):
            return None
        shape = shapes_list[idx]
        if depth < len(shape_path) - 1:
            if shape.shape_type != MSO_SHAPE_TYPE.GROUP:
                return None
            shapes = shape.shapes
    return shape


def get_text(tf) -> str:
    paras = []
    for p in tf.paragraphs:
        runs = [r.text for r in p.runs] or [p.text]
        paras.append("".join(runs))
    return "\n".join(paras).strip()


def set_text(tf, new_text: str):
    # Preserve existing formatting by reusing current paragraphs and runs.
    new_text = "" if new_text is None else new_text
    paragraphs = list(tf.paragraphs)

    # If there is no formatting to preserve, fall back to direct assignment.
    if not paragraphs:
        tf.text = new_text
        return

    parts = new_text.split("\n")
    assign_count = min(len(parts), len(paragraphs))

    for idx in range(assign_count):
        text_piece = parts[idx]
        if idx == assign_count - 1 and len(parts) > len(paragraphs):
            text_piece = "\n".join(parts[idx:])
        para = paragraphs[idx]
        if para.runs:
            primary_run = para.runs[0]
        else:
            primary_run = para.add_run()
        primary_run.text = text_piece
        for extra in para.runs[1:]:
            extra.text = ""

    # Remove trailing paragraphs when the new text has fewer segments.
    for para in reversed(paragraphs[assign_count:]):
        p = para._p
        parent = p.getparent()
        if parent is not None:
            parent.remove(p)


def replace_in_runs(tf, pattern, replacement: str) -> int:
    """Substitute ``pattern`` matches run by run, keeping each run's formatting.

    A match that spans several runs takes the formatting of the run it starts
    in; the text around it stays in its own runs. Returns the match count.
    """
    count = 0
    for para in tf.paragraphs:
        runs = list(para.runs)
        if not runs:
            continue
        texts = [r.text for r in runs]
        spans = []
        offset = 0
        for text in texts:
            spans.append((offset, offset + len(text)))
            offset += len(text)
        matches = list(pattern.finditer("".join(texts)))
        # Right to left so earlier offsets stay valid.
        for m in reversed(matches):
            first = _run_at(spans, m.start())
            last = _run_at(spans, m.end() - 1) if m.end() > m.start() else first
            head = texts[first][: m.start() - spans[first][0]]
            tail = texts[last][m.end() - spans[last][0] :]
            if first == last:
                texts[first] = head + replacement + tail
            else:
                texts[first] = head + replacement
                for idx in range(first + 1, last):
                    texts[idx] = ""
                texts[last] = tail
        count += len(matches)
        for run, text in zip(runs, texts):
            if run.text != text:
                run.text = text
    return count


def _run_at(spans: List[Tuple[int, int]], pos: int) -> int:
    for idx, (start, end) in enumerate(spans):
        if start <= pos < end:
            return idx
    return len(spans) - 1


def read_color(color_format) -> Optional[Color]:
    ctype = color_format.type
    if ctype is None:
        return None
    if ctype == MSO_COLOR_TYPE.RGB:
        rgb = color_format.rgb
        return RgbColor(rgb[0], rgb[1], rgb[2])
    if ctype == MSO_COLOR_TYPE.SCHEME:
        return ThemeColor(color_format.theme_color.name)
    return UnknownColor()


def write_color(color_format, color: Optional[Color]) -> bool:
    if isinstance(color, RgbColor):
        color_format.rgb = RGBColor(color.r, color.g, color.b)
        return True
    if isinstance(color, ThemeColor):
        try:
            color_format.theme_color = MSO_THEME_COLOR[color.theme_color_id]
        except KeyError:
            return False
        return True
    return False


def read_background(owner) -> Optional[Color]:
    fill = getattr(owner, "fill", None)
    if fill is None:
        return None
    try:
        if fill.type != MSO_FILL.SOLID:
            return None
        return read_color(fill.fore_color)
    except (TypeError, NotImplementedError):
        return UnknownColor()


def write_background(owner, color: Optional[Color]):
    fill = getattr(owner, "fill", None)
    if fill is None or not isinstance(color, (RgbColor, ThemeColor)):
        return
    fill.solid()
    write_color(fill.fore_color, color)


def _first_run(tf):
    for p in tf.paragraphs:
        for r in p.runs:
            return r
    return None


def capture_style(tf, owner=None) -> StyleSnapshot:
    background = read_background(owner) if owner is not None else None
    run = _first_run(tf)
    if run is None:
        return StyleSnapshot(background=background)
    font = run.font
    underline = font.underline
    return StyleSnapshot(
        font_family=font.name,
        font_size=font.size.pt if font.size is not None else None,
        bold=font.bold,
        italic=font.italic,
        underline=None if underline is None else bool(underline),
        foreground=read_color(font.color),
        background=background,
    )


def apply_style(tf, style: StyleSnapshot, owner=None, overwrite: bool = True):
    """Apply ``style`` to every run of ``tf``.

    With ``overwrite`` False only attributes a run leaves unset are filled in,
    so per-run formatting that survived a text replacement is kept.
    """
    for para in tf.paragraphs:
        for run in para.runs:
            font = run.font
            if overwrite or font.name is None:
                if overwrite or style.font_family is not None:
                    font.name = style.font_family
            if overwrite or font.size is None:
                if style.font_size is not None:
                    font.size = Pt(style.font_size)
                elif overwrite:
                    font.size = None
            if overwrite or font.bold is None:
                font.bold = style.bold
            if overwrite or font.italic is None:
                font.italic = style.italic
            if overwrite or font.underline is None:
                font.underline = style.underline
            if style.foreground is not None and (overwrite or font.color.type is None):
                write_color(font.color, style.foreground)

    if owner is not None and style.background is not None:
        if overwrite or read_background(owner) is None:
            write_background(owner, style.background)


def slide_title(slide) -> str:
    # First title placeholder, else the first non-empty text frame.
    title_text = ""
    title_shape = slide.shapes.title
    if title_shape is not None and getattr(title_shape, "has_text_frame", False):
        title_text = get_text(title_shape.text_frame)
    if not title_text:
        for _, _, _, _, tf in iter_text_frames(slide.shapes):
            title_text = get_text(tf)
            if title_text:
                break
    return title_text[:120]


def summarize_deck(slide_titles: List[str], max_slides: int = 4) -> str:
    if not slide_titles:
        return ""
    first = slide_titles[:max_slides]
    summary = "Deck overview titles:\n- " + "\n- ".join([t for t in first if t])
    return summary
