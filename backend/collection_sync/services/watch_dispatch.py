from contextlib import nullcontext
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, ContextManager, Dict, Iterable

from loguru import logger

from collection_sync.core.errors import StoreError, TrackAlreadyIndexedError, TrackBuildError
from collection_sync.core.media_types import DEFAULT_TRACK_EXTENSIONS, is_track_file
from collection_sync.models.track import IndexedTrack
from collection_sync.services.reconciliation import ReconciliationEngine
from collection_sync.services.track_builder import TrackBuilder


class WatchEventKind(str, Enum):
    CREATED = "created"
    WRITE_COMPLETED = "write_completed"
    MOVED_IN = "moved_in"


@dataclass(frozen=True)
class WatchEvent:
    path: Path
    kind: WatchEventKind


class WatchDispatcher:
    """
    Applies one filesystem event to the store.

    Each event kind maps straight to one mutation, without the 4-way
    classification the full scan uses:

    - CREATED inserts, and fails if the hash is already indexed
    - MOVED_IN updates the record found by hash
    - WRITE_COMPLETED updates the record found by path, even when the
      content did not change

    With ``reconcile=True`` every event goes through
    ``ReconciliationEngine.reconcile`` instead, so watch and scan agree.
    """

    def __init__(
        self,
        builder: TrackBuilder,
        engine: ReconciliationEngine,
        extensions: Iterable[str] = DEFAULT_TRACK_EXTENSIONS,
        lock: ContextManager | None = None,
        reconcile: bool = False,
    ):
        self.builder = builder
        self.engine = engine
        self.extensions = frozenset(extensions)
        self.lock = lock
        self.reconcile = reconcile
        self.handlers: Dict[WatchEventKind, Callable[[IndexedTrack], bool]] = {
            WatchEventKind.CREATED: engine.add_track,
            WatchEventKind.MOVED_IN: engine.update_by_hash,
            WatchEventKind.WRITE_COMPLETED: engine.update_by_path,
        }

    def _guard(self) -> ContextManager:
        return self.lock if self.lock is not None else nullcontext()

    def handle_event(self, event: WatchEvent) -> bool:
        """
        Returns True when the event changed the store, or when reconcile mode
        found nothing to change. False for ignored or failed events, and for
        updates that matched no record.
        """
        if not is_track_file(event.path, self.extensions):
            return False

        logger.debug(f"Watch event {event.kind.value}: {event.path}")

        with self._guard():
            try:
                track = self.builder.build(event.path)
            except TrackBuildError as e:
                logger.warning(f"Failed to construct track to index: {e}")
                return False

            try:
                if self.reconcile:
                    self.engine.reconcile(track)
                    return True
                return self.handlers[event.kind](track)
            except TrackAlreadyIndexedError as e:
                logger.info(str(e))
                return False
            except StoreError as e:
                logger.error(f"Failed to index track {track.file_path}: {e}")
                return False
