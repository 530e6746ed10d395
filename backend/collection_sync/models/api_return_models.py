from pydantic import BaseModel
from typing import List, Optional
from .track import Track


class GetTracksResponse(BaseModel):
    data: List[Track]
    nextCursor: Optional[int] = None


class StatusResponse(BaseModel):
    collection_dir: str
    watcher_running: bool
    track_count: Optional[int] = None


class ScanReport(BaseModel):
    files_found: int = 0
    added: int = 0
    modified: int = 0
    moved: int = 0
    unchanged: int = 0
    duplicates: int = 0
    failed: int = 0
