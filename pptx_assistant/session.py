import hashlib
import os
from dataclasses import dataclass, field
from typing import List, Optional

from .config import Settings
from .undo import MemorySnapshotStore, Snapshot, SnapshotStore


@dataclass
class SessionContext:
    """Per-presentation state passed explicitly to the dispatcher and undo coordinator."""

    session_id: str
    settings: Settings = field(default_factory=Settings)
    snapshots: List[Snapshot] = field(default_factory=list)
    store: Optional[SnapshotStore] = None

    @property
    def api_key(self) -> Optional[str]:
        return self.settings.openai_api_key

    @classmethod
    def for_presentation(
        cls, path: str, settings: Settings, store: Optional[SnapshotStore] = None
    ) -> "SessionContext":
        digest = hashlib.sha1(os.path.abspath(path).encode("utf-8")).hexdigest()[:16]
        store = store if store is not None else MemorySnapshotStore()
        return cls(digest, settings, store.load(digest), store)

    def persist(self):
        if self.store is not None:
            self.store.save(self.session_id, self.snapshots)
