from unittest.mock import MagicMock

import pytest

from collection_sync.core.errors import StoreError, TrackAlreadyIndexedError
from collection_sync.models.track import IndexedTrack
from collection_sync.services.reconciliation import (
    Classification,
    ReconciliationEngine,
    classify_counts,
)


def make_track(path: str, file_hash: str, title: str = "title", artwork: bytes = b"") -> IndexedTrack:
    return IndexedTrack(
        file_path=path,
        file_hash=file_hash,
        artwork_hash="d41d8cd98f00b204e9800998ecf8427e",
        title=title,
        artwork=artwork,
    )


class RecordingProcessor:
    def __init__(self):
        self.seen: list[IndexedTrack] = []

    def process(self, track: IndexedTrack) -> None:
        self.seen.append(track)


class FailingProcessor:
    def process(self, track: IndexedTrack) -> None:
        raise RuntimeError("thumbnailer crashed")


class TestClassifyCounts:
    @pytest.mark.parametrize(
        "hash_count,path_count,expected",
        [
            (1, 1, Classification.UNCHANGED),
            (0, 1, Classification.MODIFIED),
            (1, 0, Classification.MOVED),
            (0, 0, Classification.NEW),
        ],
    )
    def test_classify_counts(self, hash_count: int, path_count: int, expected: Classification):
        assert classify_counts(hash_count, path_count) is expected


class TestReconcile:
    def test_reconcile__unseen_track__inserted_as_new(self, database):
        engine = ReconciliationEngine(database)

        assert engine.reconcile(make_track("a.mp3", "h1")) is Classification.NEW
        assert database.get_tracks_count() == 1

    def test_reconcile__same_track_twice__second_is_unchanged(self, database):
        engine = ReconciliationEngine(database)
        engine.reconcile(make_track("a.mp3", "h1"))

        assert engine.reconcile(make_track("a.mp3", "h1", title="ignored")) is Classification.UNCHANGED
        assert database.get_track_by_path("a.mp3").title == "title"

    def test_reconcile__renamed__updates_path_of_record(self, database):
        engine = ReconciliationEngine(database)
        engine.reconcile(make_track("a.mp3", "h1"))

        assert engine.reconcile(make_track("b.mp3", "h1")) is Classification.MOVED

        tracks = database.get_tracks()
        assert [(t.file_path, t.file_hash) for t in tracks] == [("b.mp3", "h1")]

    def test_reconcile__edited_in_place__updates_hash_and_fields(self, database):
        engine = ReconciliationEngine(database)
        engine.reconcile(make_track("a.mp3", "h1", title="old"))

        assert engine.reconcile(make_track("a.mp3", "h2", title="new")) is Classification.MODIFIED

        tracks = database.get_tracks()
        assert [(t.file_path, t.file_hash, t.title) for t in tracks] == [("a.mp3", "h2", "new")]

    def test_reconcile__moved_and_edited__inserted_new_leaving_old_dangling(self, database):
        engine = ReconciliationEngine(database)
        engine.reconcile(make_track("a.mp3", "h1"))

        assert engine.reconcile(make_track("c.mp3", "h3")) is Classification.NEW

        tracks = sorted((t.file_path, t.file_hash) for t in database.get_tracks())
        assert tracks == [("a.mp3", "h1"), ("c.mp3", "h3")]

    def test_reconcile__store_unreachable__raises_store_error(self):
        store = MagicMock()
        store.count_by_hash.side_effect = StoreError("database is locked")
        engine = ReconciliationEngine(store)

        with pytest.raises(StoreError):
            engine.reconcile(make_track("a.mp3", "h1"))

        store.insert.assert_not_called()


class TestAddTrack:
    def test_add_track__hash_already_indexed__raises_already_indexed(self, database):
        engine = ReconciliationEngine(database)
        engine.add_track(make_track("a.mp3", "h1"))

        with pytest.raises(TrackAlreadyIndexedError):
            engine.add_track(make_track("copy.mp3", "h1"))

        assert database.get_tracks_count() == 1

    def test_add_track__already_indexed_is_not_a_store_error(self):
        assert not issubclass(TrackAlreadyIndexedError, StoreError)


class TestUpdates:
    def test_update_by_path__no_record__returns_false(self, database):
        engine = ReconciliationEngine(database)
        processor = RecordingProcessor()
        engine.register_processor(processor)

        assert engine.update_by_path(make_track("a.mp3", "h1")) is False
        assert processor.seen == []

    def test_update_by_hash__existing__returns_true(self, database):
        engine = ReconciliationEngine(database)
        engine.add_track(make_track("a.mp3", "h1"))

        assert engine.update_by_hash(make_track("b.mp3", "h1")) is True


class TestProcessors:
    def test_processors__run_in_order_with_artwork_after_insert(self, database):
        calls = []

        class Named:
            def __init__(self, name):
                self.name = name

            def process(self, track):
                calls.append((self.name, track.artwork))

        engine = ReconciliationEngine(database, [Named("first"), Named("second")])
        engine.reconcile(make_track("a.mp3", "h1", artwork=b"cover"))

        assert calls == [("first", b"cover"), ("second", b"cover")]

    def test_processors__not_run_when_unchanged(self, database):
        processor = RecordingProcessor()
        engine = ReconciliationEngine(database)
        engine.reconcile(make_track("a.mp3", "h1"))
        engine.register_processor(processor)

        engine.reconcile(make_track("a.mp3", "h1"))

        assert processor.seen == []

    def test_processors__run_after_modify_and_move(self, database):
        processor = RecordingProcessor()
        engine = ReconciliationEngine(database)
        engine.reconcile(make_track("a.mp3", "h1"))
        engine.register_processor(processor)

        engine.reconcile(make_track("a.mp3", "h2"))
        engine.reconcile(make_track("b.mp3", "h2"))

        assert [(t.file_path, t.file_hash) for t in processor.seen] == [("a.mp3", "h2"), ("b.mp3", "h2")]

    def test_processors__failure_is_swallowed_and_mutation_kept(self, database):
        after = RecordingProcessor()
        engine = ReconciliationEngine(database, [FailingProcessor(), after])

        assert engine.reconcile(make_track("a.mp3", "h1")) is Classification.NEW

        assert database.get_tracks_count() == 1
        assert len(after.seen) == 1
