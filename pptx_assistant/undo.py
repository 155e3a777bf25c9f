"""Pre-mutation snapshots and revert.

A snapshot is taken strictly before an operation touches the deck and holds
only the elements that operation is about to change. Snapshots stack per
session; reverting to one also reverts everything taken after it.
"""

import json
import logging
import os
import time
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from .errors import DocumentAccessError
from .models import Locator, StyleSnapshot, TextElement

logger = logging.getLogger(__name__)


@dataclass
class CapturedElement:
    locator: Locator
    text_before: str
    style_before: StyleSnapshot
    markup: Optional[str] = None  # serialized text body; None -> text + style only

    def to_dict(self) -> Dict[str, Any]:
        return {
            "locator": self.locator.key,
            "text_before": self.text_before,
            "style_before": self.style_before.to_dict(),
            "markup": self.markup,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CapturedElement":
        locator = Locator.from_key(data.get("locator", ""))
        if locator is None:
            raise ValueError(f"Bad locator in snapshot: {data.get('locator')!r}")
        return cls(
            locator=locator,
            text_before=data.get("text_before", ""),
            style_before=StyleSnapshot.from_dict(data.get("style_before")),
            markup=data.get("markup"),
        )


@dataclass
class Snapshot:
    operation_label: str
    captured_elements: List[CapturedElement] = field(default_factory=list)
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    timestamp: float = field(default_factory=time.time)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "timestamp": self.timestamp,
            "operation_label": self.operation_label,
            "captured_elements": [c.to_dict() for c in self.captured_elements],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Snapshot":
        return cls(
            operation_label=data.get("operation_label", ""),
            captured_elements=[
                CapturedElement.from_dict(c) for c in data.get("captured_elements") or []
            ],
            id=data["id"],
            timestamp=float(data.get("timestamp", 0.0)),
        )


class SnapshotStore(ABC):
    @abstractmethod
    def load(self, session_id: str) -> List[Snapshot]:
        raise NotImplementedError

    @abstractmethod
    def save(self, session_id: str, snapshots: Sequence[Snapshot]):
        raise NotImplementedError


class MemorySnapshotStore(SnapshotStore):
    def __init__(self):
        self._data: Dict[str, List[Dict[str, Any]]] = {}

    def load(self, session_id: str) -> List[Snapshot]:
        return [Snapshot.from_dict(d) for d in self._data.get(session_id, [])]

    def save(self, session_id: str, snapshots: Sequence[Snapshot]):
        self._data[session_id] = [s.to_dict() for s in snapshots]


class JsonSnapshotStore(SnapshotStore):
    """One ``<session_id>.json`` file per session under ``directory``."""

    def __init__(self, directory: str):
        self.directory = os.path.expanduser(directory)

    def _path(self, session_id: str) -> str:
        return os.path.join(self.directory, f"{session_id}.json")

    def load(self, session_id: str) -> List[Snapshot]:
        path = self._path(session_id)
        if not os.path.exists(path):
            return []
        try:
            with open(path, "r", encoding="utf-8") as f:
                raw = json.load(f)
            return [Snapshot.from_dict(d) for d in raw.get("snapshots", [])]
        except (OSError, ValueError, KeyError) as exc:
            logger.warning("Ignoring unreadable undo history %s: %s", path, exc)
            return []

    def save(self, session_id: str, snapshots: Sequence[Snapshot]):
        os.makedirs(self.directory, exist_ok=True)
        path = self._path(session_id)
        tmp = path + ".tmp"
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(
                {"session_id": session_id, "snapshots": [s.to_dict() for s in snapshots]},
                f,
                ensure_ascii=False,
            )
        os.replace(tmp, path)


@dataclass
class RevertResult:
    success: bool
    message: str
    restored: int = 0
    skipped: List[str] = field(default_factory=list)
    steps_reverted: int = 0

    @property
    def partial(self) -> bool:
        return self.success and bool(self.skipped)


class UndoCoordinator:
    def __init__(self, document, session, depth: Optional[int] = None):
        self.document = document
        self.session = session
        self.max_depth = depth or session.settings.undo_depth

    @property
    def stack(self) -> List[Snapshot]:
        return self.session.snapshots

    @property
    def depth(self) -> int:
        return len(self.stack)

    def history(self) -> List[Snapshot]:
        """Snapshots, newest first."""
        return list(reversed(self.stack))

    def snapshot(self, label: str, elements: Sequence[TextElement], evict: bool = True) -> str:
        """Capture ``elements`` and push the snapshot.

        With ``evict`` False the history may grow past its depth until
        :meth:`commit` trims it, so a snapshot later discarded costs nothing.
        """
        captured = []
        for element in elements:
            try:
                markup = self.document.export_markup(element.element_id)
            except DocumentAccessError:
                markup = None
            captured.append(
                CapturedElement(element.locator, element.plain_text, element.style, markup)
            )
        snap = Snapshot(label, captured)
        self.stack.append(snap)
        if evict:
            self._trim()
        logger.info("Snapshot %s: %s (%d elements)", snap.id[:8], label, len(captured))
        return snap.id

    def commit(self, snapshot_id: str) -> bool:
        """Keep a snapshot taken with ``evict=False``, dropping the oldest entries over depth."""
        if not any(s.id == snapshot_id for s in self.stack):
            return False
        self._trim()
        return True

    def _trim(self):
        while len(self.stack) > self.max_depth:
            dropped = self.stack.pop(0)
            logger.debug("Undo history full; dropped %r", dropped.operation_label)

    def discard(self, snapshot_id: str) -> bool:
        """Drop a snapshot without restoring anything."""
        for i, snap in enumerate(self.stack):
            if snap.id == snapshot_id:
                del self.stack[i]
                return True
        return False

    def _restore(self, captured: CapturedElement):
        element_id = captured.locator.key
        if captured.markup:
            self.document.restore_markup(element_id, captured.markup)
        else:
            self.document.set_text(element_id, captured.text_before)
            self.document.set_style(element_id, captured.style_before, overwrite=True)

    def revert(self, snapshot_id: Optional[str] = None) -> RevertResult:
        if not self.stack:
            return RevertResult(False, "Nothing to undo.")
        if snapshot_id is None:
            pos = len(self.stack) - 1
        else:
            pos = next((i for i, s in enumerate(self.stack) if s.id == snapshot_id), None)
            if pos is None:
                return RevertResult(False, f"No undo step with id {snapshot_id}.")

        restored = 0
        skipped: List[str] = []
        targets = list(reversed(self.stack[pos:]))
        for snap in targets:
            for captured in snap.captured_elements:
                try:
                    self._restore(captured)
                    restored += 1
                except Exception as exc:
                    logger.warning("Could not restore %s: %s", captured.locator.key, exc)
                    skipped.append(captured.locator.describe())
        del self.stack[pos:]

        label = targets[-1].operation_label
        message = f'Reverted "{label}"'
        if len(targets) > 1:
            message += f" and {len(targets) - 1} later change" + ("" if len(targets) == 2 else "s")
        message += f" ({restored} element" + ("" if restored == 1 else "s") + " restored)."
        if skipped:
            message += f" {len(skipped)} element(s) could not be restored: " + "; ".join(skipped[:5])
        return RevertResult(True, message, restored, skipped, len(targets))
