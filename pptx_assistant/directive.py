"""Parsed user intent.

A directive is one of a closed set of frozen dataclasses. The model is asked to
answer with a tagged execution line such as ``EXECUTE_REPLACE|PRD|Spec``;
:func:`parse_tagged_reply` turns such a line into a directive.
"""

import re
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Dict, Optional

from .models import ScopeKind


class Operation(str, Enum):
    TRANSLATE = "translate"
    REPLACE = "replace"
    ENHANCE = "enhance"
    UNDO = "undo"
    UNCLEAR = "unclear"


class EnhanceStyle(str, Enum):
    PROFESSIONAL = "professional"
    ENGAGING = "engaging"
    CONCISE = "concise"
    ACADEMIC = "academic"
    CREATIVE = "creative"

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional["EnhanceStyle"]:
        if not value:
            return None
        key = value.strip().lower()
        for style in cls:
            if style.value == key:
                return style
        return None


ASK_LANGUAGE = "Which language would you like me to translate the presentation to?"
ASK_REPLACE_TERMS = (
    "What text should I find, and what should I replace it with? "
    'For example: Replace "OldCorp" with "NewCorp".'
)
GENERIC_HELP = (
    "I can help with three kinds of changes:\n"
    '- Translate: "Translate everything to Spanish" or just "French"\n'
    '- Find & replace: \'Replace "OldCorp" with "NewCorp"\'\n'
    '- Enhance text: "Make the text more professional" '
    "(styles: professional, engaging, concise, academic, creative)\n"
    'Say "undo" to revert the last change.'
)


@dataclass(frozen=True)
class Directive:
    scope: ScopeKind = field(default=ScopeKind.DOCUMENT, kw_only=True)
    source: str = field(default="heuristic", kw_only=True)  # "model" or "heuristic"

    operation = Operation.UNCLEAR

    @property
    def needs_clarification(self) -> bool:
        return False

    @property
    def parameters(self) -> Dict[str, str]:
        return {}

    def with_scope(self, scope: ScopeKind) -> "Directive":
        return replace(self, scope=scope)


@dataclass(frozen=True)
class TranslateDirective(Directive):
    target_language: str

    operation = Operation.TRANSLATE

    @property
    def parameters(self) -> Dict[str, str]:
        return {"targetLanguage": self.target_language}


@dataclass(frozen=True)
class ReplaceDirective(Directive):
    find_text: str
    replace_text: str
    match_case: bool = False
    whole_word: bool = True

    operation = Operation.REPLACE

    @property
    def parameters(self) -> Dict[str, str]:
        return {"findText": self.find_text, "replaceText": self.replace_text}


@dataclass(frozen=True)
class EnhanceDirective(Directive):
    style: EnhanceStyle = EnhanceStyle.PROFESSIONAL

    operation = Operation.ENHANCE

    @property
    def parameters(self) -> Dict[str, str]:
        return {"style": self.style.value}


@dataclass(frozen=True)
class UndoDirective(Directive):
    operation = Operation.UNDO


@dataclass(frozen=True)
class UnclearDirective(Directive):
    clarification_prompt: str = GENERIC_HELP
    topic: str = "generic"  # "language", "replace_terms" or "generic"

    operation = Operation.UNCLEAR

    @property
    def needs_clarification(self) -> bool:
        return True


def ask_language(source: str = "heuristic") -> UnclearDirective:
    return UnclearDirective(clarification_prompt=ASK_LANGUAGE, topic="language", source=source)


def ask_replace_terms(source: str = "heuristic") -> UnclearDirective:
    return UnclearDirective(
        clarification_prompt=ASK_REPLACE_TERMS, topic="replace_terms", source=source
    )


@dataclass(frozen=True)
class ParseError:
    reason: str


@dataclass(frozen=True)
class ParseResult:
    directive: Optional[Directive] = None
    error: Optional[ParseError] = None

    @property
    def ok(self) -> bool:
        return self.directive is not None


_TAG_RE = re.compile(r"EXECUTE_(TRANSLATE|REPLACE|ENHANCE|UNDO)\b\|?([^\r\n]*)")


def _clean_field(value: str) -> str:
    return value.strip().strip("`[]").strip().strip("\"'“”「」").strip()


def parse_tagged_reply(reply: Optional[str]) -> ParseResult:
    if not reply:
        return ParseResult(error=ParseError("empty reply"))
    m = _TAG_RE.search(reply)
    if not m:
        return ParseResult(error=ParseError("no execution tag"))

    tag = m.group(1)
    fields = [_clean_field(f) for f in m.group(2).split("|")] if m.group(2) else []

    if tag == "TRANSLATE":
        language = fields[0] if fields else ""
        if not language:
            return ParseResult(ask_language(source="model"))
        return ParseResult(TranslateDirective(language, source="model"))

    if tag == "REPLACE":
        if len(fields) < 2 or not fields[0] or not fields[1]:
            return ParseResult(ask_replace_terms(source="model"))
        return ParseResult(ReplaceDirective(fields[0], fields[1], source="model"))

    if tag == "ENHANCE":
        style = EnhanceStyle.parse(fields[0] if fields else None)
        return ParseResult(
            EnhanceDirective(style or EnhanceStyle.PROFESSIONAL, source="model")
        )

    return ParseResult(UndoDirective(source="model"))
