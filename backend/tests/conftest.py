from pathlib import Path

import pytest

from collection_sync.core.errors import TrackBuildError
from collection_sync.database.database import Database, DatabaseContext
from collection_sync.models.track_meta_data import TrackMetaData


class StemExtractor:
    """Extractor double: title is the file stem, and chosen names fail."""

    def __init__(self):
        self.failing: set[str] = set()
        self.overrides: dict[str, TrackMetaData] = {}

    def extract(self, file_path: Path) -> TrackMetaData:
        if file_path.name in self.failing:
            raise TrackBuildError(file_path, "unreadable tags")
        if file_path.name in self.overrides:
            return self.overrides[file_path.name]
        return TrackMetaData(title=file_path.stem, artist="Artist", year="2020")


@pytest.fixture
def database(tmp_path: Path) -> Database:
    db = Database(DatabaseContext(database_path=tmp_path / "data" / "collection.db"))
    db.initialize()
    return db


@pytest.fixture
def collection_dir(tmp_path: Path) -> Path:
    path = tmp_path / "collection"
    path.mkdir()
    return path


@pytest.fixture
def extractor() -> StemExtractor:
    return StemExtractor()
