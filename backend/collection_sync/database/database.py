import sqlite3
import time
from dataclasses import dataclass
from pathlib import Path
from typing import List

from loguru import logger

from collection_sync.core.errors import StoreError, TrackAlreadyIndexedError
from collection_sync.models.track import Track

TRACK_COLUMNS = [
    "file_path",
    "file_hash",
    "artwork_hash",
    "artist",
    "title",
    "album",
    "remixer",
    "publisher",
    "release",
    "genre",
    "key",
    "year",
    "disc_number",
    "track_number",
    "bpm",
]

DEFAULT_INIT_SQL_PATH = Path(__file__).parent / "init.sql"


@dataclass(frozen=True)
class DatabaseContext:
    database_path: Path
    init_sql_path: Path = DEFAULT_INIT_SQL_PATH


def _quoted(columns: List[str]) -> str:
    return ", ".join(f'"{column}"' for column in columns)


def _track_values(track: Track) -> tuple:
    return tuple(getattr(track, column) for column in TRACK_COLUMNS)


def _row_to_track(row: sqlite3.Row) -> Track:
    return Track(**{column: row[column] for column in TRACK_COLUMNS})


class Database:
    """
    sqlite backed track store.

    Every operation opens its own connection, so a Database can be shared
    between the scanner and the watcher threads. Nothing here wraps more than
    one statement in a transaction; callers that check-then-write must
    serialize themselves.
    """

    def __init__(self, context: DatabaseContext):
        self.context = context

    def connect_to_database(self, timeout: float = 5) -> sqlite3.Connection:
        database_path = self.context.database_path
        try:
            conn = sqlite3.connect(database_path, timeout=timeout)
            conn.execute("PRAGMA journal_mode=WAL")
            conn.commit()
            conn.row_factory = sqlite3.Row
            return conn
        except sqlite3.Error as e:
            raise StoreError(
                f"Error connecting to the sqlite database at {database_path}: {e}"
            ) from e

    def initialize(self) -> bool:
        self.context.database_path.parent.mkdir(parents=True, exist_ok=True)

        with open(self.context.init_sql_path, "r") as f:
            init_script = f.read()

        conn = self.connect_to_database()
        try:
            conn.executescript(init_script)
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            raise StoreError(
                f"Error loading sqlite init script {self.context.init_sql_path}: {e}"
            ) from e
        finally:
            conn.close()

        logger.debug(f"Database ready at {self.context.database_path}")
        return True

    def _count(self, column: str, value: str, timeout: float) -> int:
        conn = self.connect_to_database(timeout=timeout)
        try:
            row = conn.execute(
                f'SELECT COUNT(*) FROM tracks WHERE "{column}" = ?', (value,)
            ).fetchone()
        except sqlite3.Error as e:
            raise StoreError(f"Failed to count tracks by {column}: {e}") from e
        finally:
            conn.close()
        return int(row[0])

    def count_by_hash(self, file_hash: str, timeout: float = 5) -> int:
        return self._count("file_hash", file_hash, timeout)

    def count_by_path(self, file_path: str, timeout: float = 5) -> int:
        return self._count("file_path", file_path, timeout)

    def insert(self, track: Track, timeout: float = 5) -> int:
        now = int(time.time())
        query = (
            f"INSERT INTO tracks ({_quoted(TRACK_COLUMNS)}, created_at, last_updated) "
            f"VALUES ({', '.join('?' for _ in TRACK_COLUMNS)}, ?, ?)"
        )

        conn = self.connect_to_database(timeout=timeout)
        try:
            cursor = conn.execute(query, _track_values(track) + (now, now))
            conn.commit()
            return cursor.lastrowid
        except sqlite3.IntegrityError as e:
            conn.rollback()
            if "tracks.file_hash" in str(e):
                raise TrackAlreadyIndexedError(track.file_hash, track.file_path) from e
            raise StoreError(f"Failed to insert {track.file_path}: {e}") from e
        except sqlite3.Error as e:
            conn.rollback()
            raise StoreError(f"Failed to insert {track.file_path}: {e}") from e
        finally:
            conn.close()

    def _update_where(self, column: str, value: str, track: Track, timeout: float) -> int:
        assignments = ", ".join(f'"{c}" = ?' for c in TRACK_COLUMNS)
        query = f'UPDATE tracks SET {assignments}, last_updated = ? WHERE "{column}" = ?'

        conn = self.connect_to_database(timeout=timeout)
        try:
            cursor = conn.execute(
                query, _track_values(track) + (int(time.time()), value)
            )
            conn.commit()
            return cursor.rowcount
        except sqlite3.Error as e:
            conn.rollback()
            raise StoreError(
                f"Failed to update track where {column} = {value}: {e}"
            ) from e
        finally:
            conn.close()

    def update_by_path(self, file_path: str, track: Track, timeout: float = 5) -> int:
        """Overwrite the record stored at ``file_path``. Returns rows touched."""
        return self._update_where("file_path", file_path, track, timeout)

    def update_by_hash(self, file_hash: str, track: Track, timeout: float = 5) -> int:
        """Overwrite the record stored under ``file_hash``. Returns rows touched."""
        return self._update_where("file_hash", file_hash, track, timeout)

    def _get_one(self, column: str, value: str, timeout: float) -> Track | None:
        conn = self.connect_to_database(timeout=timeout)
        try:
            row = conn.execute(
                f'SELECT * FROM tracks WHERE "{column}" = ?', (value,)
            ).fetchone()
        except sqlite3.Error as e:
            raise StoreError(f"Failed to fetch track by {column}: {e}") from e
        finally:
            conn.close()
        return _row_to_track(row) if row is not None else None

    def get_track_by_path(self, file_path: str, timeout: float = 5) -> Track | None:
        return self._get_one("file_path", file_path, timeout)

    def get_track_by_hash(self, file_hash: str, timeout: float = 5) -> Track | None:
        return self._get_one("file_hash", file_hash, timeout)

    def get_tracks(self, limit: int = 100, offset: int = 0, timeout: float = 5) -> List[Track]:
        if limit <= 0 or limit > 1000 or offset < 0:
            raise ValueError(
                f"Limit {limit} or Offset {offset} was set incorrectly for database.get_tracks"
            )

        conn = self.connect_to_database(timeout=timeout)
        try:
            rows = conn.execute(
                "SELECT * FROM tracks ORDER BY id LIMIT ? OFFSET ?", (limit, offset)
            ).fetchall()
        except sqlite3.Error as e:
            raise StoreError(f"Failed to list tracks: {e}") from e
        finally:
            conn.close()
        return [_row_to_track(row) for row in rows]

    def get_tracks_count(self, timeout: float = 5) -> int:
        conn = self.connect_to_database(timeout=timeout)
        try:
            row = conn.execute("SELECT COUNT(*) FROM tracks").fetchone()
        except sqlite3.Error as e:
            raise StoreError(f"Failed to get count from database: {e}") from e
        finally:
            conn.close()
        return int(row[0])
