"""Walk / transform / apply / report core shared by translate, replace and enhance."""

import logging
import threading
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Optional, Sequence

from tqdm import tqdm

from .errors import ConfigError, DocumentAccessError
from .models import Locator, TextElement
from .operations import ElementTransform

logger = logging.getLogger(__name__)


def trunc(s: Optional[str], limit: int = 120) -> Optional[str]:
    if s is None:
        return None
    return (s[:limit] + "...") if len(s) > limit else s


class OutcomeStatus(str, Enum):
    SUCCESS = "success"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass
class ElementOutcome:
    locator: Locator
    before: str
    after: Optional[str]
    status: OutcomeStatus
    error: Optional[str] = None
    detail: Optional[str] = None


@dataclass
class OperationResult:
    label: str
    scope_description: str
    total_elements_considered: int = 0
    outcomes: List[ElementOutcome] = field(default_factory=list)
    cancelled: bool = False
    aborted: Optional[Exception] = None

    def _count(self, status: OutcomeStatus) -> int:
        return sum(1 for o in self.outcomes if o.status == status)

    @property
    def total_mutated(self) -> int:
        return self._count(OutcomeStatus.SUCCESS)

    @property
    def total_failed(self) -> int:
        return self._count(OutcomeStatus.FAILED)

    @property
    def total_skipped(self) -> int:
        return self._count(OutcomeStatus.SKIPPED)

    @property
    def slides_affected(self) -> List[int]:
        return sorted(
            {o.locator.slide_index + 1 for o in self.outcomes if o.status == OutcomeStatus.SUCCESS}
        )


class RatePolicy(ABC):
    @abstractmethod
    def wait(self):
        raise NotImplementedError


class FixedDelayPolicy(RatePolicy):
    def __init__(self, seconds: float, sleep: Callable[[float], None] = time.sleep):
        self.seconds = seconds
        self.sleep = sleep

    def wait(self):
        if self.seconds > 0:
            self.sleep(self.seconds)


class TokenBucketPolicy(RatePolicy):
    """Allow ``rate`` batches per second with bursts of up to ``capacity``."""

    def __init__(
        self,
        rate: float,
        capacity: float = 1.0,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        if rate <= 0:
            raise ValueError("rate must be positive")
        self.rate = rate
        self.capacity = capacity
        self.sleep = sleep
        self.clock = clock
        self.tokens = capacity
        self._last = clock()

    def wait(self):
        now = self.clock()
        self.tokens = min(self.capacity, self.tokens + (now - self._last) * self.rate)
        self._last = now
        if self.tokens < 1:
            delay = (1 - self.tokens) / self.rate
            self.sleep(delay)
            self.tokens = 1
            self._last = self.clock()
        self.tokens -= 1


class CancellationToken:
    def __init__(self):
        self._event = threading.Event()

    def cancel(self):
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


class BulkMutationEngine:
    """Applies an :class:`ElementTransform` to a sequence of text elements.

    Elements are processed one at a time in document order, in batches of
    ``batch_size`` with ``rate_policy.wait()`` between batches. A failing
    element is recorded and skipped; only a :class:`ConfigError` stops the
    run, because every later call would fail the same way.
    """

    def __init__(
        self,
        document,
        batch_size: int = 10,
        rate_policy: Optional[RatePolicy] = None,
        show_progress: bool = False,
    ):
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        self.document = document
        self.batch_size = batch_size
        self.rate_policy = rate_policy or FixedDelayPolicy(0.1)
        self.show_progress = show_progress

    def run(
        self,
        elements: Sequence[TextElement],
        transform: ElementTransform,
        scope_description: str = "",
        cancel_token: Optional[CancellationToken] = None,
    ) -> OperationResult:
        ordered = sorted(elements, key=lambda e: e.locator.sort_key())
        result = OperationResult(
            label=transform.label,
            scope_description=scope_description,
            total_elements_considered=len(ordered),
        )
        batches = [
            ordered[i : i + self.batch_size] for i in range(0, len(ordered), self.batch_size)
        ]
        logger.info(
            "%s: %d elements in %d batches (%s)",
            transform.label,
            len(ordered),
            len(batches),
            scope_description or "unspecified scope",
        )

        progress = tqdm(total=len(ordered), desc=transform.label, disable=not self.show_progress)
        try:
            for b_idx, batch in enumerate(batches):
                if cancel_token is not None and cancel_token.cancelled:
                    result.cancelled = True
                    logger.info("%s cancelled before batch %d", transform.label, b_idx + 1)
                    self._skip_rest(result, batches[b_idx:], "cancelled")
                    break
                if b_idx > 0:
                    self.rate_policy.wait()
                for e_idx, element in enumerate(batch):
                    try:
                        result.outcomes.append(self._process(element, transform))
                    except ConfigError as exc:
                        logger.error("%s aborted: %s", transform.label, exc)
                        result.aborted = exc
                        rest = [batch[e_idx:]] + batches[b_idx + 1 :]
                        self._skip_rest(result, rest, "aborted")
                        return result
                    progress.update(1)
        finally:
            progress.close()
        return result

    @staticmethod
    def _skip_rest(result: OperationResult, batches, reason: str):
        for batch in batches:
            for element in batch:
                result.outcomes.append(
                    ElementOutcome(
                        element.locator,
                        trunc(element.plain_text),
                        None,
                        OutcomeStatus.SKIPPED,
                        detail=reason,
                    )
                )

    def _process(self, element: TextElement, transform: ElementTransform) -> ElementOutcome:
        before = element.plain_text
        reason = transform.skip_reason(before)
        if reason:
            return ElementOutcome(
                element.locator, trunc(before), None, OutcomeStatus.SKIPPED, detail=reason
            )

        try:
            style = self.document.get_style(element.element_id)
            after = transform.transform(before)
        except ConfigError:
            raise
        except Exception as exc:
            logger.warning("%s failed on %s: %s", transform.label, element.container_id, exc)
            return ElementOutcome(
                element.locator, trunc(before), None, OutcomeStatus.FAILED, error=str(exc)
            )

        if after is None or after == before:
            return ElementOutcome(
                element.locator, trunc(before), None, OutcomeStatus.SKIPPED, detail="unchanged"
            )
        if not transform.accepts(before, after):
            logger.warning(
                "%s: rejected output for %s: %r", transform.label, element.container_id, after[:80]
            )
            return ElementOutcome(
                element.locator, trunc(before), trunc(after), OutcomeStatus.SKIPPED, detail="rejected"
            )

        try:
            transform.apply(self.document, element.element_id, after, style)
        except DocumentAccessError as exc:
            return ElementOutcome(
                element.locator, trunc(before), None, OutcomeStatus.FAILED, error=str(exc)
            )
        return ElementOutcome(
            element.locator,
            trunc(before),
            trunc(after),
            OutcomeStatus.SUCCESS,
            detail=transform.describe(before, after),
        )
