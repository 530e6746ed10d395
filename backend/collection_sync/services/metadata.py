from pathlib import Path
from typing import Any, Protocol

from loguru import logger
from mutagen import File as MutagenFile
from mutagen import MutagenError

from collection_sync.core.errors import TrackBuildError
from collection_sync.models.track_meta_data import TrackMetaData

# Tag names tried in order: ID3 frames (mp3, aiff) first, then MP4 atoms and
# Vorbis comments.
TAG_NAMES: dict[str, list[str]] = {
    "artist": ["TPE1", "\xa9ART", "ARTIST", "artist"],
    "title": ["TIT2", "\xa9nam", "TITLE", "title"],
    "album": ["TALB", "\xa9alb", "ALBUM", "album"],
    "remixer": ["TPE4", "REMIXER", "remixer"],
    "publisher": ["TPUB", "LABEL", "PUBLISHER", "label", "publisher"],
    "release": ["COMM", "\xa9cmt", "COMMENT", "comment"],
    "key": ["TKEY", "INITIALKEY", "KEY", "initialkey", "key"],
    "bpm": ["TBPM", "tmpo", "BPM", "bpm"],
    "year": ["TDRC", "TYER", "\xa9day", "DATE", "YEAR", "date", "year"],
    "track_number": ["TRCK", "trkn", "TRACKNUMBER", "tracknumber"],
    "disc_number": ["TPOS", "disk", "DISCNUMBER", "discnumber"],
    "genre": ["TCON", "\xa9gen", "GENRE", "genre"],
}


class MetadataExtractor(Protocol):
    def extract(self, file_path: Path) -> TrackMetaData:
        ...


def get_tag_value(tags: Any, tag_names: list[str]) -> str:
    """First non-empty value among ``tag_names``, as text."""
    for tag_name in tag_names:
        try:
            value = tags.getall(tag_name) if hasattr(tags, "getall") else tags.get(tag_name)
        except (KeyError, ValueError):
            # Vorbis comments raise ValueError for keys they cannot hold
            continue
        if not value:
            continue
        if isinstance(value, list):
            value = value[0]
        # ID3 frames carry their values in .text
        text = getattr(value, "text", value)
        if isinstance(text, list):
            text = text[0] if text else ""
        # MP4 track/disc atoms are (number, total) tuples
        if isinstance(text, tuple):
            text = text[0]
        text = str(text).strip()
        if text:
            return text
    return ""


def get_artwork(audio_file: Any) -> bytes:
    tags = audio_file.tags
    if tags is None:
        return b""

    if hasattr(tags, "getall"):
        pictures = tags.getall("APIC")
        if pictures:
            return bytes(pictures[0].data)

    covers = tags.get("covr") if hasattr(tags, "get") else None
    if covers:
        return bytes(covers[0])

    pictures = getattr(audio_file, "pictures", None)
    if pictures:
        return bytes(pictures[0].data)

    return b""


def extract_track_metadata(file_path: Path) -> TrackMetaData:
    try:
        audio_file = MutagenFile(file_path)
    except (MutagenError, OSError) as e:
        raise TrackBuildError(file_path, f"could not read metadata: {e}") from e

    if audio_file is None:
        raise TrackBuildError(file_path, "unsupported audio format")

    tags = audio_file.tags
    if tags is None:
        logger.debug(f"{file_path} has no tags")
        return TrackMetaData()

    values = {field: get_tag_value(tags, names) for field, names in TAG_NAMES.items()}
    return TrackMetaData(**values, artwork=get_artwork(audio_file))


class MutagenExtractor:
    """Default MetadataExtractor, backed by mutagen."""

    def extract(self, file_path: Path) -> TrackMetaData:
        return extract_track_metadata(file_path)
