import threading

from fastapi import FastAPI, HTTPException
from loguru import logger

from collection_sync.config import settings
from collection_sync.core.errors import StoreError
from collection_sync.core.logging import setup_logging
from collection_sync.database.database import Database, DatabaseContext
from collection_sync.models.api_return_models import GetTracksResponse, ScanReport, StatusResponse
from collection_sync.services.file_watcher import FileWatcher
from collection_sync.services.reconciliation import ReconciliationEngine
from collection_sync.services.scanner import FullScanner
from collection_sync.services.track_builder import TrackBuilder
from collection_sync.services.watch_dispatch import WatchDispatcher

app = FastAPI()


@app.on_event("startup")
def startup_event():
    setup_logging(settings.log_level, settings.log_file)

    database = Database(DatabaseContext(database_path=settings.database_path))
    database.initialize()
    app.state.database = database

    # Scan and watch share one lock so a path/hash is never reconciled from
    # both at the same time.
    sync_lock = threading.Lock()
    builder = TrackBuilder(settings.collection_dir)
    engine = ReconciliationEngine(database)
    app.state.engine = engine
    app.state.scanner = FullScanner(
        settings.collection_dir,
        builder,
        engine,
        extensions=settings.track_extensions,
        lock=sync_lock,
    )

    if settings.scan_on_startup:
        app.state.scanner.index_all()

    if settings.enable_file_watcher:
        dispatcher = WatchDispatcher(
            builder,
            engine,
            extensions=settings.track_extensions,
            lock=sync_lock,
            reconcile=settings.watch_reconciles,
        )
        watcher = FileWatcher(settings.collection_dir, dispatcher.handle_event)
        watcher.start_file_watcher()
        app.state.file_watcher = watcher


@app.on_event("shutdown")
def shutdown_event():
    watcher = getattr(app.state, "file_watcher", None)
    if watcher:
        watcher.stop_file_watcher()


@app.get("/", response_model=StatusResponse)
def read_root():
    watcher = getattr(app.state, "file_watcher", None)
    try:
        track_count = app.state.database.get_tracks_count()
    except StoreError as e:
        logger.error(f"Unable to count tracks: {e}")
        track_count = None

    return StatusResponse(
        collection_dir=str(settings.collection_dir),
        watcher_running=watcher is not None and watcher.is_running(),
        track_count=track_count,
    )


@app.post("/scan", response_model=ScanReport)
def run_scan():
    return app.state.scanner.index_all()


@app.get("/tracks", response_model=GetTracksResponse)
def get_tracks(limit: int = 100, offset: int = 0):
    try:
        tracks = app.state.database.get_tracks(limit=limit, offset=offset)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except StoreError as e:
        raise HTTPException(status_code=500, detail=str(e))

    next_cursor = offset + len(tracks) if len(tracks) == limit else None
    return GetTracksResponse(data=tracks, nextCursor=next_cursor)
