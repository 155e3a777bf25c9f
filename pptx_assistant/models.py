import re
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union


@dataclass(frozen=True)
class Locator:
    slide_index: int  # 0-based
    shape_path: Tuple[int, ...]  # shape indexes, one per group level
    row: Optional[int] = None
    col: Optional[int] = None

    _KEY_RE = re.compile(r"^s(\d+)/sh([\d.]+)(?:/r(\d+)c(\d+))?$")

    @property
    def key(self) -> str:
        key = f"s{self.slide_index + 1}/sh" + ".".join(str(i + 1) for i in self.shape_path)
        if self.row is not None:
            key += f"/r{self.row}c{self.col}"
        return key

    @property
    def is_table_cell(self) -> bool:
        return self.row is not None

    def sort_key(self):
        return (
            self.slide_index,
            self.shape_path,
            -1 if self.row is None else self.row,
            -1 if self.col is None else self.col,
        )

    def describe(self) -> str:
        shape_no = ".".join(str(i + 1) for i in self.shape_path)
        if self.is_table_cell:
            return f"slide {self.slide_index + 1}, table {shape_no}, cell ({self.row + 1},{self.col + 1})"
        return f"slide {self.slide_index + 1}, shape {shape_no}"

    @classmethod
    def from_key(cls, key: str) -> Optional["Locator"]:
        m = cls._KEY_RE.match(key or "")
        if not m:
            return None
        path = tuple(int(p) - 1 for p in m.group(2).split(".") if p)
        row = int(m.group(3)) if m.group(3) is not None else None
        col = int(m.group(4)) if m.group(4) is not None else None
        return cls(int(m.group(1)) - 1, path, row, col)


# Colours are a tagged union; ``None`` in a style means "inherited".


@dataclass(frozen=True)
class RgbColor:
    r: int
    g: int
    b: int


@dataclass(frozen=True)
class ThemeColor:
    theme_color_id: str  # MSO_THEME_COLOR member name, e.g. "ACCENT_1"


@dataclass(frozen=True)
class UnknownColor:
    pass


Color = Union[RgbColor, ThemeColor, UnknownColor]


def color_to_dict(color: Optional[Color]) -> Optional[Dict[str, Any]]:
    if color is None:
        return None
    if isinstance(color, RgbColor):
        return {"type": "rgb", "r": color.r, "g": color.g, "b": color.b}
    if isinstance(color, ThemeColor):
        return {"type": "theme", "id": color.theme_color_id}
    return {"type": "unknown"}


def color_from_dict(data: Optional[Dict[str, Any]]) -> Optional[Color]:
    if not data:
        return None
    kind = data.get("type")
    if kind == "rgb":
        return RgbColor(int(data["r"]), int(data["g"]), int(data["b"]))
    if kind == "theme":
        return ThemeColor(str(data["id"]))
    return UnknownColor()


@dataclass(frozen=True)
class StyleSnapshot:
    font_family: Optional[str] = None
    font_size: Optional[float] = None  # points
    bold: Optional[bool] = None
    italic: Optional[bool] = None
    underline: Optional[bool] = None
    foreground: Optional[Color] = None
    background: Optional[Color] = None

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["foreground"] = color_to_dict(self.foreground)
        data["background"] = color_to_dict(self.background)
        return data

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "StyleSnapshot":
        data = dict(data or {})
        return cls(
            font_family=data.get("font_family"),
            font_size=data.get("font_size"),
            bold=data.get("bold"),
            italic=data.get("italic"),
            underline=data.get("underline"),
            foreground=color_from_dict(data.get("foreground")),
            background=color_from_dict(data.get("background")),
        )


@dataclass
class TextElement:
    element_id: str
    container_id: str
    locator: Locator
    plain_text: str
    style: StyleSnapshot = field(default_factory=StyleSnapshot)


class ScopeKind(str, Enum):
    DOCUMENT = "document"
    CURRENT_SLIDE = "current_slide"
    SELECTION = "selection"


@dataclass(frozen=True)
class ScopeDescriptor:
    kind: ScopeKind
    slide_indexes: Optional[Tuple[int, ...]]  # None means every slide
    description: str


@dataclass
class DocumentSummary:
    title: str
    slide_count: int
    selection_description: str
    slide_titles: List[str] = field(default_factory=list)
