import os
from pathlib import Path
from unittest.mock import patch

from collection_sync.services.discovery import find_track_files


def touch(path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(b"")
    return path


class TestFindTrackFiles:
    def test_find_track_files__nested_tree__returns_default_extensions_only(self, tmp_path: Path):
        expected = {
            touch(tmp_path / "a.mp3"),
            touch(tmp_path / "House" / "b.aif"),
            touch(tmp_path / "House" / "Deep" / "c.MP3"),
        }
        touch(tmp_path / "cover.jpg")
        touch(tmp_path / "House" / "d.flac")
        (tmp_path / "folder.mp3").mkdir()

        assert set(find_track_files(tmp_path)) == expected

    def test_find_track_files__custom_extensions__honored(self, tmp_path: Path):
        flac = touch(tmp_path / "a.flac")
        touch(tmp_path / "b.mp3")

        assert find_track_files(tmp_path, extensions={"flac"}) == [flac]

    def test_find_track_files__missing_root__returns_empty(self, tmp_path: Path):
        assert find_track_files(tmp_path / "missing") == []

    def test_find_track_files__file_without_suffix__skipped(self, tmp_path: Path):
        touch(tmp_path / "mp3")
        assert find_track_files(tmp_path) == []

    def test_find_track_files__unreadable_subdirectory__siblings_still_found(self, tmp_path: Path):
        locked = tmp_path / "Locked"
        touch(locked / "hidden.mp3")
        expected = {touch(tmp_path / "a.mp3"), touch(tmp_path / "Open" / "b.aif")}

        real_scandir = os.scandir

        def scandir(path):
            if Path(path) == locked:
                raise PermissionError(13, "Permission denied", str(path))
            return real_scandir(path)

        # Same failure os.walk sees for a chmod 000 directory, even when running as root.
        with patch.object(os, "scandir", side_effect=scandir):
            assert set(find_track_files(tmp_path)) == expected
