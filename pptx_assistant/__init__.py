"""
Plain-language editing assistant for PPTX decks.

This package turns requests such as "Spanish" or 'Replace "A" with "B"' into
directives, applies them element by element with python-pptx, and keeps an
undo history of what it changed.
"""

from .assistant import SlideAssistant
from .config import Settings, load_settings
from .directive import (
    Directive,
    EnhanceDirective,
    EnhanceStyle,
    Operation,
    ReplaceDirective,
    TranslateDirective,
    UnclearDirective,
    UndoDirective,
    parse_tagged_reply,
)
from .dispatcher import OperationDispatcher, UserFacingResult
from .document import PptxDocument
from .engine import (
    BulkMutationEngine,
    CancellationToken,
    FixedDelayPolicy,
    OperationResult,
    OutcomeStatus,
    TokenBucketPolicy,
)
from .errors import (
    AssistantError,
    CompletionError,
    ConfigError,
    DocumentAccessError,
    MalformedResponseError,
    TransientError,
    TranslationError,
)
from .intent import IntentExtractor
from .session import SessionContext
from .undo import JsonSnapshotStore, MemorySnapshotStore, Snapshot, UndoCoordinator

__all__ = [
    "SlideAssistant",
    "Settings",
    "load_settings",
    "Directive",
    "TranslateDirective",
    "ReplaceDirective",
    "EnhanceDirective",
    "EnhanceStyle",
    "UndoDirective",
    "UnclearDirective",
    "Operation",
    "parse_tagged_reply",
    "OperationDispatcher",
    "UserFacingResult",
    "PptxDocument",
    "BulkMutationEngine",
    "CancellationToken",
    "FixedDelayPolicy",
    "TokenBucketPolicy",
    "OperationResult",
    "OutcomeStatus",
    "AssistantError",
    "CompletionError",
    "ConfigError",
    "TransientError",
    "MalformedResponseError",
    "TranslationError",
    "DocumentAccessError",
    "IntentExtractor",
    "SessionContext",
    "Snapshot",
    "UndoCoordinator",
    "MemorySnapshotStore",
    "JsonSnapshotStore",
]
