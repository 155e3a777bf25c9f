"""Per-element transforms plugged into the bulk mutation engine."""

import difflib
import re
from abc import ABC, abstractmethod
from typing import Optional

from .completions import BaseCompletionClient
from .directive import EnhanceStyle
from .models import StyleSnapshot
from .translation import strip_wrapping_quotes

REFUSAL_MARKERS = (
    "i cannot",
    "i can't",
    "as an ai",
    "i'm sorry",
    "i am sorry",
    "i apologize",
    "i'm unable",
    "i am unable",
)

ENHANCEMENT_GUIDELINES = {
    EnhanceStyle.PROFESSIONAL: (
        "- Use clear, confident language\n- Eliminate filler words\n"
        "- Make points concise and impactful\n- Use active voice\n- Maintain formal tone"
    ),
    EnhanceStyle.ENGAGING: (
        "- Use compelling language\n- Add rhetorical questions where natural\n"
        "- Include vivid wording\n- Create emotional connection\n- Use dynamic verbs"
    ),
    EnhanceStyle.CONCISE: (
        "- Remove unnecessary words\n- Combine related ideas\n"
        "- Eliminate redundancy\n- Focus on key messages"
    ),
    EnhanceStyle.ACADEMIC: (
        "- Use scholarly terminology\n- Include precise qualifiers\n"
        "- Maintain objective tone\n- Use formal structure"
    ),
    EnhanceStyle.CREATIVE: (
        "- Use metaphors and analogies\n- Add storytelling elements\n"
        "- Use varied sentence structure\n- Create memorable phrases"
    ),
}


def is_refusal(text: str) -> bool:
    lowered = (text or "").lower()
    return any(marker in lowered for marker in REFUSAL_MARKERS)


def introduces_refusal(before: str, after: str) -> bool:
    return is_refusal(after) and not is_refusal(before)


def is_meaningful(text: str) -> bool:
    """Whether ``text`` is worth sending for enhancement."""
    trimmed = (text or "").strip()
    if len(trimmed) < 10:
        return False
    if re.fullmatch(r"[\d\s.,%+\-]+", trimmed):
        return False
    if re.fullmatch(r"[^\w\s]+", trimmed):
        return False
    if len(trimmed.split()) < 3:
        return False
    return True


def length_ratio_ok(before: str, after: str, low: float = 0.5, high: float = 2.0) -> bool:
    if not before:
        return False
    ratio = len(after) / len(before)
    return low <= ratio <= high


class ElementTransform(ABC):
    label = "Update text"

    def applies_to(self, text: str) -> bool:
        return bool(text.strip())

    def skip_reason(self, text: str) -> Optional[str]:
        if not text.strip():
            return "empty"
        if not self.applies_to(text):
            return "no match"
        return None

    @abstractmethod
    def transform(self, text: str) -> Optional[str]:
        raise NotImplementedError

    def accepts(self, before: str, after: str) -> bool:
        return bool(after and after.strip()) and not introduces_refusal(before, after)

    def describe(self, before: str, after: str) -> Optional[str]:
        return None

    def apply(self, document, element_id: str, after: str, style: StyleSnapshot):
        """Write ``after`` into the element, then refill formatting the rewrite dropped."""
        document.set_text(element_id, after)
        document.set_style(element_id, style, overwrite=False)


class TranslateTransform(ElementTransform):
    def __init__(self, translator, language: str):
        self.translator = translator
        self.language = language
        self.label = f"Translate to {language}"

    def transform(self, text: str) -> Optional[str]:
        out = self.translator.translate(text, self.language)
        return out.strip() if out else None


def _is_cjk(ch: str) -> bool:
    code = ord(ch)
    return (
        0x3040 <= code <= 0x30FF
        or 0x3400 <= code <= 0x9FFF
        or 0xF900 <= code <= 0xFAFF
    )


_CJK_RANGES = "\u3040-\u30ff\u3400-\u9fff\uf900-\ufaff"
# A word character of a space-separated script; CJK text has no word gaps.
_SPACED_WORD = rf"[^\W{_CJK_RANGES}]"


def build_find_pattern(find_text: str, match_case: bool = False, whole_word: bool = True):
    body = re.escape(find_text)
    if whole_word:
        first, last = find_text[0], find_text[-1]
        if re.match(r"\w", first) and not _is_cjk(first):
            body = rf"(?<!{_SPACED_WORD})" + body
        if re.match(r"\w", last) and not _is_cjk(last):
            body = body + rf"(?!{_SPACED_WORD})"
    return re.compile(body, 0 if match_case else re.IGNORECASE)


class ReplaceTransform(ElementTransform):
    def __init__(
        self,
        find_text: str,
        replace_text: str,
        match_case: bool = False,
        whole_word: bool = True,
    ):
        if not find_text:
            raise ValueError("find_text must not be empty")
        self.find_text = find_text
        self.replace_text = replace_text
        self.pattern = build_find_pattern(find_text, match_case, whole_word)
        self.label = f'Replace "{find_text}" with "{replace_text}"'

    def applies_to(self, text: str) -> bool:
        return self.pattern.search(text) is not None

    def transform(self, text: str) -> Optional[str]:
        return self.pattern.sub(lambda _m: self.replace_text, text)

    def accepts(self, before: str, after: str) -> bool:
        return after != before

    def apply(self, document, element_id: str, after: str, style: StyleSnapshot):
        document.replace_text(element_id, self.pattern, self.replace_text)
        # Matches across paragraph breaks cannot be done run by run.
        if document.get_text(element_id) != after:
            super().apply(document, element_id, after, style)

    def count(self, text: str) -> int:
        return len(self.pattern.findall(text))

    def describe(self, before: str, after: str) -> Optional[str]:
        n = self.count(before)
        return f"{n} replacement" + ("" if n == 1 else "s")


def build_enhancement_prompt(text: str, style: EnhanceStyle) -> str:
    return (
        f"Rewrite this presentation text in a more {style.value} style.\n\n"
        f"Guidelines:\n{ENHANCEMENT_GUIDELINES[style]}\n\n"
        f'Original text: "{text}"\n\n'
        "Requirements:\n"
        "- Maintain original length approximately (±20%)\n"
        "- Preserve key facts, names and numbers exactly\n"
        "- Keep line breaks where the original has them\n"
        "- Return only the improved text, no explanations\n\n"
        "Improved text:"
    )


class EnhanceTransform(ElementTransform):
    # Rewrites this close to the original are not worth applying.
    similarity_threshold = 0.95

    def __init__(self, client: BaseCompletionClient, style: EnhanceStyle = EnhanceStyle.PROFESSIONAL):
        self.client = client
        self.style = style
        self.label = f"Enhance text ({style.value})"

    def skip_reason(self, text: str) -> Optional[str]:
        if not text.strip():
            return "empty"
        if not is_meaningful(text):
            return "too short or not prose"
        return None

    def transform(self, text: str) -> Optional[str]:
        max_tokens = min(1000, max(150, len(text)))
        out = self.client.complete(build_enhancement_prompt(text, self.style), max_tokens)
        return strip_wrapping_quotes(out) if out else None

    def accepts(self, before: str, after: str) -> bool:
        if not after or not after.strip() or after == before:
            return False
        if not length_ratio_ok(before, after):
            return False
        if introduces_refusal(before, after):
            return False
        similarity = difflib.SequenceMatcher(None, before, after).ratio()
        return similarity < self.similarity_threshold
