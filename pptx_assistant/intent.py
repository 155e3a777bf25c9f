import logging
from dataclasses import replace
from typing import Optional, Sequence

from .completions import BaseCompletionClient
from .directive import Directive, TranslateDirective, UnclearDirective, parse_tagged_reply
from .errors import CompletionError
from .heuristics import HEURISTIC_CASCADE, Matcher, detect_scope, run_cascade
from .models import DocumentSummary
from .pptx_utils import summarize_deck
from .translation import canonical_language

logger = logging.getLogger(__name__)

AGENT_INSTRUCTIONS = """You are a slide assistant for PowerPoint presentations. Work out what the user wants and extract the parameters.

AVAILABLE OPERATIONS:
1. Translate the presentation into another language
2. Find and replace text across the slides
3. Enhance the wording (styles: professional, engaging, concise, academic, creative)
4. Undo the last change

TRANSLATION EXAMPLES:
User: "English" -> EXECUTE_TRANSLATE|English
User: "Spanish please" -> EXECUTE_TRANSLATE|Spanish
User: "Can you translate everything to French?" -> EXECUTE_TRANSLATE|French
User: "Make it German" -> EXECUTE_TRANSLATE|German
User: "Turn this into Japanese" -> EXECUTE_TRANSLATE|Japanese
User: "translate all slides" -> Ask: "Which language would you like me to translate to?"

FIND/REPLACE EXAMPLES:
User: 'Replace "PRD" with 需求文档' -> EXECUTE_REPLACE|PRD|需求文档
User: 'Change all PRD to 需求文档' -> EXECUTE_REPLACE|PRD|需求文档
User: 'Update company name from OldCorp to NewCorp' -> EXECUTE_REPLACE|OldCorp|NewCorp
User: 'Swap all instances of X for Y' -> EXECUTE_REPLACE|X|Y

ENHANCEMENT EXAMPLES:
User: "Make the text more engaging" -> EXECUTE_ENHANCE|engaging
User: "Polish the wording" -> EXECUTE_ENHANCE|professional

UNDO EXAMPLES:
User: "undo that" -> EXECUTE_UNDO

RESPONSE FORMAT (one line, no other text):
- Translation: EXECUTE_TRANSLATE|<LANGUAGE>
- Find/Replace: EXECUTE_REPLACE|<FIND_TEXT>|<REPLACE_TEXT>
- Enhancement: EXECUTE_ENHANCE|<STYLE>
- Undo: EXECUTE_UNDO
- Anything unclear: a short, natural clarifying question instead."""


class IntentExtractor:
    """Turns an utterance into a :class:`Directive`.

    The model gets the first go; when it is unavailable, or answers without an
    execution tag, the heuristic cascade takes over. Nothing here raises.
    """

    def __init__(
        self,
        client: Optional[BaseCompletionClient],
        max_tokens: int = 200,
        cascade: Sequence[Matcher] = HEURISTIC_CASCADE,
    ):
        self.client = client
        self.max_tokens = max_tokens
        self.cascade = cascade

    def build_prompt(self, utterance: str, summary: Optional[DocumentSummary] = None) -> str:
        lines = [AGENT_INSTRUCTIONS, ""]
        if summary is not None:
            lines.append(
                f'Context: "{summary.title}" presentation ({summary.slide_count} slides); '
                f"current selection: {summary.selection_description}."
            )
            overview = summarize_deck(summary.slide_titles)
            if overview:
                lines.append(overview)
        lines.append(f'User: "{utterance}"')
        return "\n".join(lines)

    def _ask_model(self, utterance: str, summary: Optional[DocumentSummary]) -> Optional[str]:
        if self.client is None:
            return None
        try:
            return self.client.complete(self.build_prompt(utterance, summary), self.max_tokens)
        except CompletionError as exc:
            logger.warning(
                "Intent model unavailable (%s: %s); using heuristics.", type(exc).__name__, exc
            )
            return None

    def extract_directive(
        self, utterance: str, summary: Optional[DocumentSummary] = None
    ) -> Directive:
        utterance = (utterance or "").strip()
        scope = detect_scope(utterance)
        if not utterance:
            return UnclearDirective()

        reply = self._ask_model(utterance, summary)
        parsed = parse_tagged_reply(reply)
        if parsed.ok:
            directive = parsed.directive
            if isinstance(directive, TranslateDirective):
                language = canonical_language(directive.target_language)
                if language:
                    directive = replace(directive, target_language=language)
            logger.info("Model directive: %s %s", directive.operation.value, directive.parameters)
            return directive.with_scope(scope)

        if reply:
            logger.debug("No execution tag in model reply (%s)", parsed.error.reason)

        directive = run_cascade(utterance, self.cascade)
        if reply and isinstance(directive, UnclearDirective) and directive.topic == "generic":
            # The model asked its own clarifying question; prefer it to the generic help.
            directive = UnclearDirective(clarification_prompt=reply.strip(), source="model")
        logger.info(
            "Heuristic directive: %s %s", directive.operation.value, directive.parameters
        )
        return directive.with_scope(scope)
