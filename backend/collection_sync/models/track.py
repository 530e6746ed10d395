from pydantic import BaseModel, Field


class Track(BaseModel):
    file_path: str
    file_hash: str
    artwork_hash: str

    artist: str = ""
    title: str = ""
    album: str = ""
    remixer: str = ""
    publisher: str = ""
    release: str = ""
    genre: str = ""
    key: str = ""
    year: int = 0
    disc_number: str = ""
    track_number: str = ""
    bpm: float = 0.0


class IndexedTrack(Track):
    # Raw artwork is handed to post-processors but never persisted.
    artwork: bytes = Field(default=b"", exclude=True, repr=False)

    def to_track(self) -> Track:
        return Track.model_validate(self.model_dump())
