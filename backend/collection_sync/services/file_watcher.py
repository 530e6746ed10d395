from watchdog.observers import Observer
from watchdog.events import FileSystemEventHandler
from pathlib import Path
import os
import queue
import threading
from typing import Callable

from loguru import logger

from collection_sync.core.errors import WatchSetupError
from collection_sync.services.watch_dispatch import WatchEvent, WatchEventKind

_STOP = None


class FileWatcher(FileSystemEventHandler):
    """
    Feeds create, close-after-write and move-in notifications for the
    collection to ``on_event``, one at a time, on a single consumer thread.

    Deletes are never forwarded; records outlive accidental removals.

    The queue between watchdog's observer thread and the consumer holds a
    single event. A slow ``on_event`` stalls the observer, and the kernel
    may drop notifications once its own buffer fills; a periodic full scan
    picks those up.
    """

    def __init__(self, collection_dir: Path, on_event: Callable[[WatchEvent], object]):
        self.collection_dir = collection_dir
        self.on_event = on_event
        self.observer = None
        self.consumer = None
        self.events: queue.Queue[WatchEvent | None] = queue.Queue(maxsize=1)

    def _enqueue(self, raw_path, kind: WatchEventKind):
        self.events.put(WatchEvent(path=Path(os.fsdecode(raw_path)), kind=kind))

    def on_created(self, event):
        if event.is_directory:
            return
        self._enqueue(event.src_path, WatchEventKind.CREATED)

    def on_closed(self, event):
        if event.is_directory:
            return
        self._enqueue(event.src_path, WatchEventKind.WRITE_COMPLETED)

    def on_moved(self, event):
        if event.is_directory:
            return
        self._enqueue(event.dest_path, WatchEventKind.MOVED_IN)

    def is_running(self) -> bool:
        return self.observer is not None and self.observer.is_alive()

    def start_file_watcher(self):
        if self.is_running():
            return

        if self.consumer is None or not self.consumer.is_alive():
            self.consumer = threading.Thread(
                target=self.consume_events, name="collection-watch", daemon=True
            )
            self.consumer.start()

        self.observer = Observer()
        try:
            self.observer.schedule(self, str(self.collection_dir), recursive=True)
            self.observer.start()
        except OSError as e:
            self.observer = None
            self._stop_consumer()
            raise WatchSetupError(
                f"Unable to watch collection at {self.collection_dir}: {e}"
            ) from e

        logger.info(f"File watcher started for {self.collection_dir}")

    def stop_file_watcher(self):
        if self.observer is not None:
            self.observer.stop()
            self.observer.join()
            self.observer = None
            logger.info("File watcher stopped")
        self._stop_consumer()

    def _stop_consumer(self):
        if self.consumer is not None:
            self.events.put(_STOP)
            self.consumer.join()
            self.consumer = None

    def consume_events(self):
        while True:
            event = self.events.get()
            if event is _STOP:
                return
            try:
                self.on_event(event)
            except Exception:
                logger.exception(f"Unhandled error processing {event.kind.value} for {event.path}")
