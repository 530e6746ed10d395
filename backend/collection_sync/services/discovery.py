import os
from pathlib import Path
from typing import Iterable, List

from loguru import logger

from collection_sync.core.media_types import DEFAULT_TRACK_EXTENSIONS, normalize_extensions


def find_track_files(
    collection_dir: Path, extensions: Iterable[str] = DEFAULT_TRACK_EXTENSIONS
) -> List[Path]:
    """
    Every file under ``collection_dir`` whose suffix is in ``extensions``.

    Unreadable directories are skipped rather than aborting the walk. The
    result has no defined order.
    """
    allowed = normalize_extensions(extensions)

    def on_walk_error(error: OSError):
        logger.debug(f"Skipping unreadable path during walk: {error}")

    paths: List[Path] = []
    for dirpath, _dirnames, filenames in os.walk(collection_dir, onerror=on_walk_error):
        for filename in filenames:
            path = Path(dirpath) / filename
            if path.suffix.lower() not in allowed:
                continue
            paths.append(path)

    return paths
