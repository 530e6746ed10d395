from enum import Enum
from typing import Iterable, List, Protocol

from loguru import logger

from collection_sync.core.errors import TrackAlreadyIndexedError
from collection_sync.models.track import IndexedTrack, Track
from collection_sync.services.processors import TrackProcessor, run_processors


class TrackStore(Protocol):
    def count_by_hash(self, file_hash: str) -> int:
        ...

    def count_by_path(self, file_path: str) -> int:
        ...

    def insert(self, track: Track) -> int:
        ...

    def update_by_path(self, file_path: str, track: Track) -> int:
        ...

    def update_by_hash(self, file_hash: str, track: Track) -> int:
        ...


class Classification(str, Enum):
    UNCHANGED = "unchanged"
    MODIFIED = "modified"
    MOVED = "moved"
    NEW = "new"


def classify_counts(hash_count: int, path_count: int) -> Classification:
    if hash_count > 0 and path_count > 0:
        return Classification.UNCHANGED
    if path_count > 0:
        return Classification.MODIFIED
    if hash_count > 0:
        return Classification.MOVED
    return Classification.NEW


class ReconciliationEngine:
    """
    Decides what a candidate track means for the store and applies it.

    The file hash is the durable identity and the path is where that identity
    currently lives. Two existence queries are enough to tell the four cases
    apart:

    =========  =========  ===========  ===============================
    by hash    by path    result       action
    =========  =========  ===========  ===============================
    yes        yes        UNCHANGED    nothing
    no         yes        MODIFIED     update the record at the path
    yes        no         MOVED        update the record with the hash
    no         no         NEW          insert
    =========  =========  ===========  ===============================

    A file that was both moved and edited since the last scan comes out as
    NEW. It is inserted and the old record is left dangling; records are
    never deleted here.

    Queries and writes are not wrapped in a transaction. Callers must not
    reconcile the same path or hash from two threads at once.
    """

    def __init__(self, store: TrackStore, processors: Iterable[TrackProcessor] = ()):
        self.store = store
        self.processors: List[TrackProcessor] = list(processors)

    def register_processor(self, processor: TrackProcessor) -> None:
        self.processors.append(processor)

    def classify(self, track: Track) -> Classification:
        hash_count = self.store.count_by_hash(track.file_hash)
        path_count = self.store.count_by_path(track.file_path)
        return classify_counts(hash_count, path_count)

    def reconcile(self, track: IndexedTrack) -> Classification:
        classification = self.classify(track)

        if classification is Classification.NEW:
            self._insert(track)
        elif classification is Classification.MODIFIED:
            self.update_by_path(track)
        elif classification is Classification.MOVED:
            self.update_by_hash(track)

        logger.debug(f"{track.file_path} reconciled as {classification.value}")
        return classification

    def add_track(self, track: IndexedTrack) -> bool:
        """Insert ``track``, refusing when its hash is already indexed."""
        if self.store.count_by_hash(track.file_hash) != 0:
            raise TrackAlreadyIndexedError(track.file_hash, track.file_path)
        self._insert(track)
        return True

    def update_by_path(self, track: IndexedTrack) -> bool:
        """Overwrite the record at ``track.file_path`` (content changed in place)."""
        updated = self.store.update_by_path(track.file_path, track.to_track())
        return self._after_update(track, updated, "path")

    def update_by_hash(self, track: IndexedTrack) -> bool:
        """Overwrite the record holding ``track.file_hash`` (file was moved)."""
        updated = self.store.update_by_hash(track.file_hash, track.to_track())
        return self._after_update(track, updated, "hash")

    def _insert(self, track: IndexedTrack) -> None:
        self.store.insert(track.to_track())
        logger.info(f"Indexed new track {track.file_path}")
        run_processors(self.processors, track)

    def _after_update(self, track: IndexedTrack, updated: int, key: str) -> bool:
        if not updated:
            logger.warning(f"No record matched by {key} for {track.file_path}, nothing updated")
            return False
        logger.info(f"Updated track {track.file_path} (matched by {key})")
        run_processors(self.processors, track)
        return True
