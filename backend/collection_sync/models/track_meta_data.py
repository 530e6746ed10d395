from pydantic import BaseModel


class TrackMetaData(BaseModel):
    """Raw tag values as read from a file, before any parsing."""

    artist: str = ""
    title: str = ""
    album: str = ""
    remixer: str = ""
    publisher: str = ""
    release: str = ""
    key: str = ""
    bpm: str = ""
    year: str = ""
    track_number: str = ""
    disc_number: str = ""
    genre: str = ""

    artwork: bytes = b""

    def has_artwork(self) -> bool:
        return len(self.artwork) > 0
