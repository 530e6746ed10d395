from pathlib import Path
from typing import FrozenSet, Iterable

DEFAULT_TRACK_EXTENSIONS: FrozenSet[str] = frozenset({
    ".aif",
    ".mp3",
})


def normalize_extensions(extensions: Iterable[str]) -> FrozenSet[str]:
    # Accept "mp3", ".mp3" and ".MP3" alike.
    return frozenset(
        ext.lower() if ext.startswith(".") else f".{ext.lower()}"
        for ext in extensions
        if ext
    )


def is_track_file(file_path: Path, extensions: Iterable[str] = DEFAULT_TRACK_EXTENSIONS) -> bool:
    return file_path.suffix.lower() in normalize_extensions(extensions)
