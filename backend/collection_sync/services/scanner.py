from contextlib import nullcontext
from pathlib import Path
from typing import ContextManager, Iterable, Set

from loguru import logger

from collection_sync.core.errors import StoreError, TrackAlreadyIndexedError, TrackBuildError
from collection_sync.core.media_types import DEFAULT_TRACK_EXTENSIONS
from collection_sync.models.api_return_models import ScanReport
from collection_sync.models.track import IndexedTrack
from collection_sync.services.discovery import find_track_files
from collection_sync.services.reconciliation import Classification, ReconciliationEngine
from collection_sync.services.track_builder import TrackBuilder

REPORT_FIELDS = {
    Classification.NEW: "added",
    Classification.MODIFIED: "modified",
    Classification.MOVED: "moved",
    Classification.UNCHANGED: "unchanged",
}


class FullScanner:
    """
    Walks the whole collection and reconciles every eligible file.

    Runs one file at a time. When a lock is given it is held around each
    file's build and reconcile, so the scan can share the store with the
    live watcher.

    Files are visited in sorted order and a hash is reconciled at most once
    per scan. Further copies of the same bytes are reported as duplicates
    and left alone, so the record keeps the first path in sort order.
    """

    def __init__(
        self,
        collection_dir: Path,
        builder: TrackBuilder,
        engine: ReconciliationEngine,
        extensions: Iterable[str] = DEFAULT_TRACK_EXTENSIONS,
        lock: ContextManager | None = None,
    ):
        self.collection_dir = collection_dir
        self.builder = builder
        self.engine = engine
        self.extensions = frozenset(extensions)
        self.lock = lock

    def _guard(self) -> ContextManager:
        return self.lock if self.lock is not None else nullcontext()

    def index_all(self) -> ScanReport:
        paths = sorted(find_track_files(self.collection_dir, self.extensions))
        logger.info(f"Scanning {len(paths)} files under {self.collection_dir}")

        report = ScanReport(files_found=len(paths))
        claimed_hashes: Set[str] = set()
        for path in paths:
            with self._guard():
                track = self._build(path)
                if track is None:
                    report.failed += 1
                    continue

                if track.file_hash in claimed_hashes:
                    logger.info(
                        f"Track {track.file_path} with hash {track.file_hash} is already indexed"
                    )
                    report.duplicates += 1
                    continue
                claimed_hashes.add(track.file_hash)

                classification = self._reconcile(track)

            if classification is None:
                report.failed += 1
                continue
            field = REPORT_FIELDS[classification]
            setattr(report, field, getattr(report, field) + 1)

        logger.info(
            f"Scan finished: {report.added} added, {report.modified} modified, "
            f"{report.moved} moved, {report.unchanged} unchanged, "
            f"{report.duplicates} duplicates, {report.failed} failed"
        )
        return report

    def index_file(self, path: Path) -> Classification | None:
        with self._guard():
            track = self._build(path)
            if track is None:
                return None
            return self._reconcile(track)

    def _build(self, path: Path) -> IndexedTrack | None:
        try:
            return self.builder.build(path)
        except TrackBuildError as e:
            logger.warning(f"Failed to construct track to index: {e}")
            return None

    def _reconcile(self, track: IndexedTrack) -> Classification | None:
        try:
            return self.engine.reconcile(track)
        except TrackAlreadyIndexedError as e:
            logger.info(str(e))
            return None
        except StoreError as e:
            logger.error(f"Failed to index track {track.file_path}: {e}")
            return None
