"""Pattern-based intent extraction used when the language model is unavailable.

Each matcher is a pure function ``(utterance) -> Optional[Directive]``;
``None`` means "not mine", never an error. :data:`HEURISTIC_CASCADE` fixes
the order in which they are tried.
"""

import re
from typing import Callable, Optional, Sequence

from .directive import (
    Directive,
    EnhanceDirective,
    EnhanceStyle,
    ReplaceDirective,
    TranslateDirective,
    UnclearDirective,
    UndoDirective,
    ask_language,
    ask_replace_terms,
)
from .models import ScopeKind
from .translation import canonical_language

Matcher = Callable[[str], Optional[Directive]]

_POLITE_RE = re.compile(r"\b(?:please|pls|thanks|thank you)\b", re.IGNORECASE)
_TRAILING_SCOPE_RE = re.compile(
    r"\s+(?:everywhere|throughout(?:\s+the\s+(?:deck|presentation))?"
    r"|(?:on|in|across)\s+(?:all|every|each|the\s+whole|the\s+entire|this|the\s+current|the\s+selected)"
    r"(?:\s+(?:the\s+)?(?:slides?|deck|presentation|text))?)\s*$",
    re.IGNORECASE,
)
_QUOTES = "\"'“”‘’「」"

_REPLACE_WORDS_RE = re.compile(
    r"\b(?:replace|change|update|swap|substitute|switch|rename)\b", re.IGNORECASE
)
_TRANSLATE_WORDS_RE = re.compile(
    r"\b(?:translate|translation|translating|language)\b", re.IGNORECASE
)


def _normalize(utterance: str) -> str:
    text = _POLITE_RE.sub(" ", utterance or "")
    return re.sub(r"\s+", " ", text).strip().strip(",.!?;:").strip()


def _clean_term(term: str) -> str:
    term = _TRAILING_SCOPE_RE.sub("", term.strip())
    return term.strip().rstrip(".!?,;:").strip().strip(_QUOTES).strip()


def match_language_name(utterance: str) -> Optional[Directive]:
    """The whole utterance names a language, e.g. "Spanish" or "français please"."""
    language = canonical_language(_normalize(utterance))
    if language:
        return TranslateDirective(language)
    return None


_TRANSLATE_PATTERNS = (
    re.compile(
        r"\b(?:translate|convert|turn|change|switch|put|render)\b.*?\b(?:to|into|in)\s+(?P<lang>[^\s,.!?]+)",
        re.IGNORECASE,
    ),
    re.compile(
        r"\bmake\s+(?:it|this|that|them|everything|the\s+\w+)\s+(?:in\s+)?(?P<lang>[^\s,.!?]+)",
        re.IGNORECASE,
    ),
    re.compile(r"\b(?:to|into|in)\s+(?P<lang>[^\s,.!?]+)\s*$", re.IGNORECASE),
    re.compile(r"^(?P<lang>[^\s,.!?]+)\s+(?:translation|version)\b", re.IGNORECASE),
)


def match_translate_phrase(utterance: str) -> Optional[Directive]:
    """Phrases like "translate to French" or "turn this into Japanese"."""
    text = _normalize(utterance)
    for pattern in _TRANSLATE_PATTERNS:
        for m in pattern.finditer(text):
            language = canonical_language(m.group("lang"))
            if language:
                return TranslateDirective(language)
    return None


_QUOTED_PAIR_PATTERNS = (
    re.compile(r'"([^"]+)"\s*(?:to|with|into|for|by|->|→)\s*"([^"]+)"', re.IGNORECASE),
    re.compile(r"“([^”]+)”\s*(?:to|with|into|for|by|->|→)\s*“([^”]+)”", re.IGNORECASE),
    re.compile(r"'([^']+)'\s*(?:to|with|into|for|by|->|→)\s*'([^']+)'", re.IGNORECASE),
)
_LOOSE_QUOTED_PAIR_PATTERNS = (
    re.compile(r'"([^"]+)".*?"([^"]+)"'),
    re.compile(r"“([^”]+)”.*?“([^”]+)”"),
)


def match_quoted_pair(utterance: str) -> Optional[Directive]:
    """'Replace "PRD" with "Spec"' and similar quoted pairs."""
    text = utterance or ""
    for pattern in _QUOTED_PAIR_PATTERNS:
        m = pattern.search(text)
        if m and m.group(1).strip() and m.group(2).strip():
            return ReplaceDirective(m.group(1).strip(), m.group(2).strip())
    # Two quoted terms with anything in between only count next to a replace verb.
    if _REPLACE_WORDS_RE.search(text):
        for pattern in _LOOSE_QUOTED_PAIR_PATTERNS:
            m = pattern.search(text)
            if m and m.group(1).strip() and m.group(2).strip():
                return ReplaceDirective(m.group(1).strip(), m.group(2).strip())
    return None


_VERB = r"(?:replace|change|update|swap|substitute|switch|rename)"
_OBJECT_PREFIX = r"(?:(?:all|every|each)\s+)?(?:(?:instances?|occurrences?|mentions?)\s+of\s+)?(?:the\s+word\s+)?"
_REPLACE_PATTERNS = (
    re.compile(rf"\b{_VERB}\s+{_OBJECT_PREFIX}(?P<find>.+?)\s+with\s+(?P<repl>.+)$", re.IGNORECASE),
    re.compile(
        rf"\b{_VERB}(?:\s+\S+){{0,4}}?\s+from\s+(?P<find>.+?)\s+(?:to|into)\s+(?P<repl>.+)$", re.IGNORECASE
    ),
    re.compile(rf"\b{_VERB}\s+{_OBJECT_PREFIX}(?P<find>.+?)\s+for\s+(?P<repl>.+)$", re.IGNORECASE),
    re.compile(rf"\b{_VERB}\s+{_OBJECT_PREFIX}(?P<find>.+?)\s+(?:to|into|by)\s+(?P<repl>.+)$", re.IGNORECASE),
)
_TONE_RE = re.compile(r"^(?:the\s+)?(?:tone|style|wording|writing)\b", re.IGNORECASE)


def match_replace_phrase(utterance: str) -> Optional[Directive]:
    """Phrases like "replace PRD with Spec" or "update the name from A to B"."""
    text = re.sub(r"\s+", " ", (utterance or "").strip())
    if not _REPLACE_WORDS_RE.search(text):
        return None
    for pattern in _REPLACE_PATTERNS:
        m = pattern.search(text)
        if not m:
            continue
        find = _clean_term(m.group("find"))
        repl = _clean_term(m.group("repl"))
        if _TONE_RE.match(find):
            return None
        if find and repl and find != repl:
            return ReplaceDirective(find, repl)
    return None


_UNDO_RE = re.compile(
    r"^(?:please\s+)?(?:undo|revert|roll\s*back|go\s+back|restore)\b"
    r"(?:\s+(?:it|that|this|the\s+last(?:\s+(?:change|edit|operation))?|last\s+change|changes?))?[\s.!]*$",
    re.IGNORECASE,
)


def match_undo_request(utterance: str) -> Optional[Directive]:
    if _UNDO_RE.match((utterance or "").strip()):
        return UndoDirective()
    return None


_ENHANCE_WORDS_RE = re.compile(
    r"\b(?:enhance|improve|polish|rewrite|refine|punch\s+up|tighten|tone)\b", re.IGNORECASE
)
_MORE_STYLE_RE = re.compile(
    r"\b(?:make|sound|more)\b.*?\b(?P<style>professional|engaging|concise|academic|creative)\b",
    re.IGNORECASE,
)
_STYLE_RE = re.compile(r"\b(?P<style>professional|engaging|concise|academic|creative)\b", re.IGNORECASE)


def match_enhance_request(utterance: str) -> Optional[Directive]:
    """Phrases like "make the text more engaging" or "improve the wording"."""
    text = utterance or ""
    m = _MORE_STYLE_RE.search(text)
    if m:
        return EnhanceDirective(EnhanceStyle.parse(m.group("style")))
    if _ENHANCE_WORDS_RE.search(text):
        m = _STYLE_RE.search(text)
        style = EnhanceStyle.parse(m.group("style")) if m else EnhanceStyle.PROFESSIONAL
        return EnhanceDirective(style)
    return None


def match_missing_parameters(utterance: str) -> Optional[Directive]:
    """Translate / replace wording present, but nothing extractable."""
    text = utterance or ""
    if _TRANSLATE_WORDS_RE.search(text):
        return ask_language()
    if _REPLACE_WORDS_RE.search(text) or re.search(r"\bfind\b", text, re.IGNORECASE):
        return ask_replace_terms()
    return None


def generic_help(utterance: str) -> Optional[Directive]:
    return UnclearDirective()


HEURISTIC_CASCADE: Sequence[Matcher] = (
    match_language_name,
    match_translate_phrase,
    match_quoted_pair,
    match_replace_phrase,
    match_undo_request,
    match_enhance_request,
    match_missing_parameters,
    generic_help,
)


def run_cascade(utterance: str, cascade: Sequence[Matcher] = HEURISTIC_CASCADE) -> Directive:
    for matcher in cascade:
        directive = matcher(utterance)
        if directive is not None:
            return directive
    return UnclearDirective()


_SELECTION_RE = re.compile(r"\b(?:selected|selection|highlighted)\b", re.IGNORECASE)
_CURRENT_SLIDE_RE = re.compile(
    r"\b(?:this|current|the\s+current|active)\s+(?:slide|page)\b", re.IGNORECASE
)


def detect_scope(utterance: str) -> ScopeKind:
    text = utterance or ""
    if _SELECTION_RE.search(text):
        return ScopeKind.SELECTION
    if _CURRENT_SLIDE_RE.search(text):
        return ScopeKind.CURRENT_SLIDE
    return ScopeKind.DOCUMENT
