from datetime import datetime, timezone

from photopicker.adapters.sqlite_storage import SQLiteStorage
from photopicker.domain.models import (
    ArchiveBatch,
    ArchiveMove,
    Decision,
    DecisionAction,
    MoveFailure,
    Photo,
)


def _decision(decision_id: str, photo_id: str, action: DecisionAction) -> Decision:
    return Decision(
        decision_id=decision_id,
        photo_id=photo_id,
        action=action,
        created_at=datetime(2025, 1, 1, 12, 0, 0, tzinfo=timezone.utc),
    )


def _move(index: int, photo_id: str, decision_id: str) -> ArchiveMove:
    return ArchiveMove(
        index=index,
        photo_id=photo_id,
        decision_id=decision_id,
        original_path=f"/photos/{photo_id}.jpg",
        archived_path=f"/archive/{photo_id}.jpg",
    )


def _batch(batch_id: str) -> ArchiveBatch:
    return ArchiveBatch(
        batch_id=batch_id,
        created_at=datetime(2025, 1, 1, 12, 30, 0, tzinfo=timezone.utc),
        archive_root="/archive",
    )


def test_photos_round_trip_and_replace(tmp_path) -> None:
    storage = SQLiteStorage(str(tmp_path / "test.db"))
    photo = Photo(
        photo_id="p1",
        path="/photos/a.jpg",
        filename="a.jpg",
        size=123,
        date_taken=datetime(2024, 5, 1, 10, 0, 0),
    )
    storage.save_photos([photo, Photo("p2", "/photos/b.jpg", "b.jpg", 0)])

    assert storage.get_photo("p1") == photo
    assert [item.photo_id for item in storage.list_photos()] == ["p1", "p2"]

    storage.save_photos([photo])
    assert storage.get_photo("p2") is None


def test_replace_pending_decision_keeps_one_per_photo(tmp_path) -> None:
    storage = SQLiteStorage(str(tmp_path / "test.db"))
    storage.replace_pending_decision(_decision("d1", "p1", DecisionAction.KEEP))
    storage.replace_pending_decision(_decision("d2", "p2", DecisionAction.KEEP))

    replaced = storage.replace_pending_decision(_decision("d3", "p1", DecisionAction.ARCHIVE))

    assert replaced == ["d1"]
    pending = storage.list_decisions(executed=False)
    assert [decision.decision_id for decision in pending] == ["d2", "d3"]
    assert pending[1].action is DecisionAction.ARCHIVE
    assert storage.get_decision("d1") is None


def test_batch_log_tracks_move_states(tmp_path) -> None:
    storage = SQLiteStorage(str(tmp_path / "test.db"))
    storage.replace_pending_decision(_decision("d1", "p1", DecisionAction.ARCHIVE))
    storage.replace_pending_decision(_decision("d2", "p2", DecisionAction.ARCHIVE))
    storage.create_batch(_batch("b1"))

    storage.begin_move("b1", _move(0, "p1", "d1"))
    storage.complete_move("b1", 0)
    storage.begin_move("b1", _move(1, "p2", "d2"))
    storage.fail_move("b1", 1, "destination already exists")

    batch = storage.get_batch("b1")
    assert batch is not None
    assert batch.moves == [_move(0, "p1", "d1")]
    assert batch.decision_ids == ["d1"]
    assert batch.failure == MoveFailure(
        photo_id="p2",
        decision_id="d2",
        original_path="/photos/p2.jpg",
        archived_path="/archive/p2.jpg",
        reason="destination already exists",
    )
    executed = storage.get_decision("d1")
    assert executed is not None
    assert executed.executed is True
    assert executed.batch_id == "b1"
    assert storage.get_decision("d2").executed is False


def test_pending_move_reads_back_as_interrupted(tmp_path) -> None:
    db_path = str(tmp_path / "test.db")
    storage = SQLiteStorage(db_path)
    storage.create_batch(_batch("b1"))
    storage.begin_move("b1", _move(0, "p1", "d1"))

    reopened = SQLiteStorage(db_path)
    batch = reopened.get_batch("b1")

    assert batch is not None
    assert batch.moves == []
    assert batch.failure is not None
    assert batch.failure.reason == "interrupted"
    assert batch.interrupted == [_move(0, "p1", "d1")]


def test_record_batch_failure_without_move(tmp_path) -> None:
    storage = SQLiteStorage(str(tmp_path / "test.db"))
    storage.create_batch(_batch("b1"))
    failure = MoveFailure(
        photo_id="p9",
        decision_id="d9",
        original_path=None,
        archived_path=None,
        reason="photo not in catalog",
    )

    storage.record_batch_failure("b1", failure)

    assert storage.get_batch("b1").failure == failure


def test_mark_move_reversed_restores_decision(tmp_path) -> None:
    storage = SQLiteStorage(str(tmp_path / "test.db"))
    storage.replace_pending_decision(_decision("d1", "p1", DecisionAction.ARCHIVE))
    storage.create_batch(_batch("b1"))
    storage.begin_move("b1", _move(0, "p1", "d1"))
    storage.complete_move("b1", 0)

    restored = storage.mark_move_reversed("b1", 0)

    assert restored is True
    batch = storage.get_batch("b1")
    assert batch.moves == []
    assert batch.decision_ids == []
    decision = storage.get_decision("d1")
    assert decision.executed is False
    assert decision.batch_id is None


def test_restore_discards_decision_superseded_by_newer_pending(tmp_path) -> None:
    storage = SQLiteStorage(str(tmp_path / "test.db"))
    storage.replace_pending_decision(_decision("d1", "p1", DecisionAction.KEEP))
    storage.create_batch(_batch("b1"))
    storage.mark_decision_executed("b1", "d1")
    storage.replace_pending_decision(_decision("d2", "p1", DecisionAction.ARCHIVE))

    restored = storage.restore_decision("d1")

    assert restored is False
    assert storage.get_decision("d1") is None
    assert [decision.decision_id for decision in storage.list_decisions()] == ["d2"]


def test_list_batches_most_recent_first_and_delete(tmp_path) -> None:
    storage = SQLiteStorage(str(tmp_path / "test.db"))
    storage.create_batch(_batch("b1"))
    storage.create_batch(_batch("b2"))

    assert [batch.batch_id for batch in storage.list_batches()] == ["b2", "b1"]

    storage.delete_batch("b2")
    assert storage.get_batch("b2") is None
    assert [batch.batch_id for batch in storage.list_batches()] == ["b1"]


def test_archived_photo_survives_rescan_until_reversed(tmp_path) -> None:
    storage = SQLiteStorage(str(tmp_path / "test.db"))
    photo = Photo("p1", "/photos/p1.jpg", "p1.jpg", 10)
    other = Photo("p2", "/photos/p2.jpg", "p2.jpg", 20)
    storage.save_photos([photo, other])
    storage.replace_pending_decision(_decision("d1", "p1", DecisionAction.ARCHIVE))
    storage.create_batch(_batch("b1"))
    storage.begin_move("b1", _move(0, "p1", "d1"))
    storage.complete_move("b1", 0)

    storage.save_photos([other])

    assert storage.list_photos() == [other]
    assert storage.get_photo("p1") == photo

    storage.mark_move_reversed("b1", 0)

    assert storage.list_photos() == [photo, other]


def test_failed_move_returns_photo_to_listing(tmp_path) -> None:
    storage = SQLiteStorage(str(tmp_path / "test.db"))
    photo = Photo("p1", "/photos/p1.jpg", "p1.jpg", 10)
    storage.save_photos([photo])
    storage.create_batch(_batch("b1"))
    storage.begin_move("b1", _move(0, "p1", "d1"))

    storage.fail_move("b1", 0, "destination already exists")

    assert storage.list_photos() == [photo]
