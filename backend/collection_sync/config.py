from pathlib import Path
from typing import Tuple

from pydantic_settings import BaseSettings, SettingsConfigDict

from collection_sync.core.media_types import DEFAULT_TRACK_EXTENSIONS


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    # Collection on disk and the catalog it is synced into
    collection_dir: Path = Path("./music")
    database_path: Path = Path("./data/collection.db")
    track_extensions: Tuple[str, ...] = tuple(sorted(DEFAULT_TRACK_EXTENSIONS))

    # Logging
    log_level: str = "INFO"
    log_file: Path | None = None

    # Server settings
    debug: bool = True
    host: str = "0.0.0.0"
    port: int = 8000

    # Feature flags
    enable_file_watcher: bool = True
    scan_on_startup: bool = True
    # Route watch events through the 4-way classifier instead of
    # dispatching straight to the mutation for each event kind.
    watch_reconciles: bool = False


settings = Settings()
