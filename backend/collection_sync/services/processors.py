from typing import Iterable, Protocol

from loguru import logger

from collection_sync.models.track import IndexedTrack


class TrackProcessor(Protocol):
    """Anything with a ``process(track)`` method can be registered."""

    def process(self, track: IndexedTrack) -> None:
        ...


def run_processors(processors: Iterable[TrackProcessor], track: IndexedTrack) -> None:
    # The store mutation is already committed and is never rolled back here.
    for processor in processors:
        try:
            processor.process(track)
        except Exception:
            logger.exception(
                f"Processor {type(processor).__name__} failed for {track.file_path}"
            )
