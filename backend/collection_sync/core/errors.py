from pathlib import Path


class CollectionSyncError(Exception):
    """Base class for every error raised by the sync engine."""


class TrackBuildError(CollectionSyncError):
    """A single file could not be opened, extracted or hashed.

    Scoped to that one file. Scans and the watch loop log it and move on.
    """

    def __init__(self, file_path: Path, reason: str):
        self.file_path = file_path
        self.reason = reason
        super().__init__(f"Failed to build track for {file_path}: {reason}")


class StoreError(CollectionSyncError):
    """The track store failed to answer a query or apply a mutation."""


class TrackAlreadyIndexedError(CollectionSyncError):
    """An insert targeted a file hash that is already persisted.

    Informational, not an I/O fault.
    """

    def __init__(self, file_hash: str, file_path: str):
        self.file_hash = file_hash
        self.file_path = file_path
        super().__init__(f"Track {file_path} with hash {file_hash} is already indexed")


class WatchSetupError(CollectionSyncError):
    """Subscribing to filesystem notifications failed."""
