import logging
from typing import Optional

from .completions import BaseCompletionClient, build_completion_client
from .directive import UnclearDirective
from .dispatcher import OperationDispatcher, UserFacingResult
from .engine import BulkMutationEngine, CancellationToken, FixedDelayPolicy
from .errors import AssistantError
from .intent import IntentExtractor
from .models import DocumentSummary
from .session import SessionContext
from .translation import build_translator
from .undo import UndoCoordinator

logger = logging.getLogger(__name__)


class SlideAssistant:
    """One-call surface for a UI: an utterance in, a :class:`UserFacingResult` out.

    ``route_request`` and ``revert_last`` never raise; anything unexpected is
    logged and reported as an unsuccessful result.
    """

    def __init__(
        self,
        document,
        session: SessionContext,
        completion: Optional[BaseCompletionClient] = None,
        translator=None,
        engine: Optional[BulkMutationEngine] = None,
    ):
        self.document = document
        self.session = session
        settings = session.settings
        self.engine = engine or BulkMutationEngine(
            document,
            batch_size=settings.batch_size,
            rate_policy=FixedDelayPolicy(settings.batch_pause),
        )
        self.undo = UndoCoordinator(document, session)
        self.extractor = IntentExtractor(completion, max_tokens=settings.intent_max_tokens)
        self.dispatcher = OperationDispatcher(
            document, self.undo, self.engine, translator=translator, completion=completion
        )

    @classmethod
    def build(cls, document, session: SessionContext, show_progress: bool = False) -> "SlideAssistant":
        settings = session.settings
        completion = build_completion_client(settings)
        translator = build_translator(settings, completion)
        engine = BulkMutationEngine(
            document,
            batch_size=settings.batch_size,
            rate_policy=FixedDelayPolicy(settings.batch_pause),
            show_progress=show_progress,
        )
        return cls(document, session, completion, translator, engine)

    def context_summary(self) -> Optional[DocumentSummary]:
        try:
            return self.document.summary()
        except AssistantError as exc:
            logger.warning("Could not summarise the presentation: %s", exc)
            return None

    def route_request(
        self, utterance, cancel_token: Optional[CancellationToken] = None
    ) -> UserFacingResult:
        if not isinstance(utterance, str) or not utterance.strip():
            return UserFacingResult(True, UnclearDirective().clarification_prompt, False)
        try:
            directive = self.extractor.extract_directive(utterance, self.context_summary())
            logger.debug("Directive: %r", directive)
            return self.dispatcher.dispatch(directive, cancel_token)
        except Exception as exc:
            logger.exception("Request %r failed", utterance[:80])
            return UserFacingResult(
                False, f"Something went wrong: {exc}", self.undo.depth > 0
            )

    def revert_last(self) -> UserFacingResult:
        try:
            reverted = self.undo.revert()
        except Exception as exc:
            logger.exception("Undo failed")
            return UserFacingResult(False, f"Undo failed: {exc}", self.undo.depth > 0)
        return UserFacingResult(reverted.success, reverted.message, self.undo.depth > 0)
