"""Route a directive to the right operation and phrase the outcome for a person."""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from .completions.base import SETUP_HINT
from .directive import (
    GENERIC_HELP,
    Directive,
    EnhanceDirective,
    ReplaceDirective,
    TranslateDirective,
    UnclearDirective,
    UndoDirective,
)
from .engine import BulkMutationEngine, CancellationToken, OperationResult, OutcomeStatus
from .errors import ConfigError, DocumentAccessError
from .operations import EnhanceTransform, ElementTransform, ReplaceTransform, TranslateTransform
from .undo import UndoCoordinator

logger = logging.getLogger(__name__)

TRANSLATION_DISCLAIMER = (
    "Machine translation can miss context; please review the slides before presenting."
)


@dataclass
class UserFacingResult:
    success: bool
    message: str
    can_undo: bool = False
    directive: Optional[Directive] = None
    report: Optional[OperationResult] = None

    def as_dict(self) -> Dict[str, Any]:
        return {"success": self.success, "message": self.message, "canUndo": self.can_undo}


def _plural(n: int, word: str) -> str:
    return f"{n} {word}" + ("" if n == 1 else "s")


def summarize_result(result: OperationResult) -> str:
    """Human-readable summary of one mutation pass."""
    lines = [f"{result.label}: {result.scope_description}."]
    if result.total_mutated:
        slides = result.slides_affected
        lines.append(
            f"Updated {_plural(result.total_mutated, 'text element')} "
            f"on {_plural(len(slides), 'slide')} ({', '.join(str(s) for s in slides)})."
        )
    else:
        lines.append("No text needed changing.")
    if result.total_failed:
        failed = [o for o in result.outcomes if o.status == OutcomeStatus.FAILED]
        lines.append(
            f"{_plural(result.total_failed, 'element')} could not be updated, e.g. "
            f"{failed[0].locator.describe()}: {failed[0].error}"
        )
    if result.cancelled:
        lines.append("Stopped early at your request; remaining elements were left as they were.")
    return "\n".join(lines)


class OperationDispatcher:
    def __init__(
        self,
        document,
        undo: UndoCoordinator,
        engine: BulkMutationEngine,
        translator=None,
        completion=None,
    ):
        self.document = document
        self.undo = undo
        self.engine = engine
        self.translator = translator
        self.completion = completion

    def _build_transform(self, directive: Directive) -> ElementTransform:
        if isinstance(directive, TranslateDirective):
            if self.translator is None:
                raise ConfigError(f"No translation backend is configured. {SETUP_HINT}")
            return TranslateTransform(self.translator, directive.target_language)
        if isinstance(directive, ReplaceDirective):
            return ReplaceTransform(
                directive.find_text,
                directive.replace_text,
                match_case=directive.match_case,
                whole_word=directive.whole_word,
            )
        if isinstance(directive, EnhanceDirective):
            if self.completion is None:
                raise ConfigError(f"Text enhancement needs a language model. {SETUP_HINT}")
            return EnhanceTransform(self.completion, directive.style)
        raise ValueError(f"No transform for {directive.operation.value}")

    def dispatch(
        self, directive: Directive, cancel_token: Optional[CancellationToken] = None
    ) -> UserFacingResult:
        if isinstance(directive, UnclearDirective):
            return UserFacingResult(
                True, directive.clarification_prompt or GENERIC_HELP, False, directive
            )
        if isinstance(directive, UndoDirective):
            reverted = self.undo.revert()
            return UserFacingResult(
                reverted.success, reverted.message, self.undo.depth > 0, directive
            )
        return self._mutate(directive, cancel_token)

    def _mutate(
        self, directive: Directive, cancel_token: Optional[CancellationToken]
    ) -> UserFacingResult:
        can_undo = self.undo.depth > 0
        try:
            transform = self._build_transform(directive)
            scope = self.document.resolve_scope(directive.scope)
            elements = self.document.list_elements(scope)
        except ConfigError as exc:
            return UserFacingResult(False, str(exc), can_undo, directive)
        except DocumentAccessError as exc:
            return UserFacingResult(False, f"Could not read the presentation: {exc}", can_undo, directive)

        candidates = [e for e in elements if transform.skip_reason(e.plain_text) is None]
        if not candidates:
            if isinstance(directive, ReplaceDirective):
                message = f'No occurrences of "{directive.find_text}" found in the {scope.description}.'
            else:
                message = f"No text to update in the {scope.description}."
            return UserFacingResult(True, message, can_undo, directive)

        snapshot_id = self.undo.snapshot(transform.label, candidates, evict=False)
        try:
            result = self.engine.run(elements, transform, scope.description, cancel_token)
        except Exception:
            self.undo.discard(snapshot_id)
            raise
        if result.total_mutated:
            self.undo.commit(snapshot_id)
        else:
            # Nothing changed, so the snapshot would only restore identical text.
            self.undo.discard(snapshot_id)
        can_undo = self.undo.depth > 0

        if result.aborted is not None:
            message = str(result.aborted)
            if SETUP_HINT not in message:
                message += f" {SETUP_HINT}"
            if result.total_mutated:
                message += f"\n{_plural(result.total_mutated, 'element')} had already been updated."
            return UserFacingResult(False, message, can_undo, directive, result)

        message = summarize_result(result)
        if isinstance(directive, TranslateDirective) and result.total_mutated:
            message += "\n" + TRANSLATION_DISCLAIMER
        logger.info(
            "%s: %d mutated, %d skipped, %d failed",
            result.label,
            result.total_mutated,
            result.total_skipped,
            result.total_failed,
        )
        success = bool(result.total_mutated) or not result.total_failed
        return UserFacingResult(success, message, can_undo, directive, result)
