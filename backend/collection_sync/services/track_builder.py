import hashlib
import os
from pathlib import Path

from collection_sync.core.errors import TrackBuildError
from collection_sync.models.track import IndexedTrack
from collection_sync.models.track_meta_data import TrackMetaData
from collection_sync.services.metadata import MetadataExtractor, MutagenExtractor

HASH_CHUNK_SIZE = 1024 * 1024

# Tracks without artwork all share the digest of empty input.
EMPTY_ARTWORK_HASH = hashlib.md5(b"").hexdigest()


def hash_file(file_path: Path) -> str:
    digest = hashlib.md5()
    try:
        with open(file_path, "rb") as f:
            for chunk in iter(lambda: f.read(HASH_CHUNK_SIZE), b""):
                digest.update(chunk)
    except OSError as e:
        raise TrackBuildError(file_path, f"could not hash file: {e}") from e
    return digest.hexdigest()


def hash_artwork(artwork: bytes) -> str:
    if not artwork:
        return EMPTY_ARTWORK_HASH
    return hashlib.md5(artwork).hexdigest()


def parse_year(year_val: str) -> int:
    """
    Best-effort year extraction from a year tag.
    Common values: "2021", "2021-06-01". Anything else is 0.
    """
    if not year_val or not year_val.strip():
        return 0
    try:
        return int(year_val.strip().split("-")[0])
    except ValueError:
        return 0


def parse_bpm(bpm_val: str) -> float:
    if not bpm_val or not bpm_val.strip():
        return 0.0
    try:
        return float(bpm_val.strip())
    except ValueError:
        return 0.0


class TrackBuilder:
    """
    Turns a file on disk into a candidate IndexedTrack.

    The file is read exactly once, to compute its content hash. Metadata comes
    from the injected extractor.
    """

    def __init__(self, collection_dir: Path, extractor: MetadataExtractor | None = None):
        self.collection_dir = collection_dir
        self.extractor = extractor if extractor is not None else MutagenExtractor()

    def relative_path(self, file_path: Path) -> str:
        try:
            root = Path(os.path.abspath(self.collection_dir))
            return Path(os.path.abspath(file_path)).relative_to(root).as_posix()
        except ValueError as e:
            raise TrackBuildError(
                file_path, f"not inside collection {self.collection_dir}"
            ) from e

    def build(self, file_path: Path) -> IndexedTrack:
        relative_path = self.relative_path(file_path)

        try:
            metadata: TrackMetaData = self.extractor.extract(file_path)
        except TrackBuildError:
            raise
        except Exception as e:
            raise TrackBuildError(file_path, f"metadata extraction failed: {e}") from e

        return IndexedTrack(
            file_path=relative_path,
            file_hash=hash_file(file_path),
            artwork_hash=hash_artwork(metadata.artwork),
            artist=metadata.artist,
            title=metadata.title,
            album=metadata.album,
            remixer=metadata.remixer,
            publisher=metadata.publisher,
            release=metadata.release,
            genre=metadata.genre,
            key=metadata.key,
            year=parse_year(metadata.year),
            disc_number=metadata.disc_number,
            track_number=metadata.track_number,
            bpm=parse_bpm(metadata.bpm),
            artwork=metadata.artwork,
        )
