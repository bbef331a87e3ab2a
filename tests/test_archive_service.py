from pathlib import Path
from unittest.mock import Mock, patch

import pytest
from loguru import logger

from photopicker.adapters.local_filesystem import LocalFileSystemAdapter
from photopicker.adapters.sqlite_storage import SQLiteStorage
from photopicker.domain.errors import MoveFailedError
from photopicker.domain.models import ArchiveConfig, DecisionAction, Photo
from photopicker.services.archive_service import ArchiveExecutor
from photopicker.services.decision_service import DecisionTracker


def _setup(tmp_path: Path, names: list[str]):
    source_root = tmp_path / "photos"
    archive_root = tmp_path / "archive"
    photos = []
    for name in names:
        path = source_root / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(f"data-{name}".encode())
        photos.append(
            Photo(photo_id=Path(name).stem, path=str(path), filename=path.name, size=path.stat().st_size)
        )
    storage = SQLiteStorage(str(tmp_path / "state.db"))
    storage.save_photos(photos)
    tracker = DecisionTracker(storage)
    executor = ArchiveExecutor(
        storage,
        LocalFileSystemAdapter(),
        ArchiveConfig(archive_root=str(archive_root), source_roots=(str(source_root),)),
    )
    return storage, tracker, executor, source_root, archive_root


def test_execute_moves_files_preserving_layout(tmp_path) -> None:
    storage, tracker, executor, source_root, archive_root = _setup(
        tmp_path, ["2024/trip/a.jpg", "2024/b.jpg"]
    )
    first = tracker.record_decision("a", DecisionAction.ARCHIVE)
    second = tracker.record_decision("b", DecisionAction.ARCHIVE)

    batch = executor.execute()

    assert not batch.is_partial
    assert [move.photo_id for move in batch.moves] == ["a", "b"]
    assert [move.index for move in batch.moves] == [0, 1]
    assert batch.decision_ids == [first.decision_id, second.decision_id]
    assert (archive_root / "2024" / "trip" / "a.jpg").read_bytes() == b"data-2024/trip/a.jpg"
    assert (archive_root / "2024" / "b.jpg").exists()
    assert not (source_root / "2024" / "trip" / "a.jpg").exists()
    assert tracker.list_pending() == []
    assert executor.get_batch(batch.batch_id).moves == batch.moves


def test_execute_marks_keep_decisions_without_moving(tmp_path) -> None:
    storage, tracker, executor, source_root, archive_root = _setup(tmp_path, ["a.jpg", "b.jpg"])
    keep = tracker.record_decision("a", DecisionAction.KEEP)
    archive = tracker.record_decision("b", DecisionAction.ARCHIVE)

    batch = executor.execute()

    assert batch.decision_ids == [keep.decision_id, archive.decision_id]
    assert [move.photo_id for move in batch.moves] == ["b"]
    assert (source_root / "a.jpg").exists()
    assert tracker.get_decision(keep.decision_id).executed is True


def test_execute_stops_at_first_failed_move(tmp_path) -> None:
    storage, tracker, executor, source_root, archive_root = _setup(
        tmp_path, ["a.jpg", "b.jpg", "c.jpg"]
    )
    blocker = archive_root / "b.jpg"
    blocker.parent.mkdir(parents=True)
    blocker.write_bytes(b"existing")
    blocker.chmod(0o444)
    decisions = [
        tracker.record_decision(photo_id, DecisionAction.ARCHIVE) for photo_id in ("a", "b", "c")
    ]

    batch = executor.execute()

    assert batch.is_partial
    assert len(batch.moves) == 1
    assert batch.moves[0].photo_id == "a"
    assert batch.failure.photo_id == "b"
    assert batch.failure.reason == "destination already exists"
    assert tracker.get_decision(decisions[0].decision_id).executed is True
    assert [decision.decision_id for decision in tracker.list_pending()] == [
        decisions[1].decision_id,
        decisions[2].decision_id,
    ]
    assert (source_root / "b.jpg").exists()
    assert (source_root / "c.jpg").exists()
    assert blocker.read_bytes() == b"existing"

    stored = executor.get_batch(batch.batch_id)
    assert stored.moves == batch.moves
    assert stored.failure == batch.failure


def test_execute_fails_for_photo_outside_source_roots(tmp_path) -> None:
    storage, tracker, executor, source_root, archive_root = _setup(tmp_path, ["a.jpg"])
    stray = tmp_path / "elsewhere" / "x.jpg"
    stray.parent.mkdir()
    stray.write_bytes(b"x")
    storage.save_photos(
        storage.list_photos() + [Photo(photo_id="x", path=str(stray), filename="x.jpg", size=1)]
    )
    tracker.record_decision("x", DecisionAction.ARCHIVE)
    tracker.record_decision("a", DecisionAction.ARCHIVE)

    batch = executor.execute()

    assert batch.moves == []
    assert batch.failure.archived_path is None
    assert "not under any source root" in batch.failure.reason
    assert stray.exists()
    assert (source_root / "a.jpg").exists()
    assert executor.get_batch(batch.batch_id).failure == batch.failure


def test_execute_with_nothing_pending_returns_empty_batch(tmp_path) -> None:
    storage, tracker, executor, source_root, archive_root = _setup(tmp_path, ["a.jpg"])

    batch = executor.execute()

    assert batch.moves == []
    assert batch.decision_ids == []
    assert executor.list_batches() == []


def test_execute_records_move_before_and_after_attempt() -> None:
    storage = Mock()
    decision = Mock(decision_id="d1", photo_id="p1", action=DecisionAction.ARCHIVE)
    storage.list_decisions.return_value = [decision]
    storage.get_photo.return_value = Photo(
        photo_id="p1", path="/photos/a.jpg", filename="a.jpg", size=1
    )
    filesystem = Mock()
    filesystem.move_file.side_effect = MoveFailedError("/photos/a.jpg", "/archive/a.jpg", "disk full")
    executor = ArchiveExecutor(
        storage, filesystem, ArchiveConfig(archive_root="/archive", source_roots=("/photos",))
    )

    batch = executor.execute()

    storage.begin_move.assert_called_once()
    recorded = storage.begin_move.call_args.args[1]
    assert recorded.archived_path == "/archive/a.jpg"
    storage.fail_move.assert_called_once_with(batch.batch_id, 0, "disk full")
    storage.complete_move.assert_not_called()
    assert batch.failure.reason == "disk full"


def test_storage_error_mid_batch_names_the_batch(tmp_path) -> None:
    storage, tracker, executor, source_root, archive_root = _setup(tmp_path, ["a.jpg"])
    tracker.record_decision("a", DecisionAction.ARCHIVE)
    messages: list[str] = []
    sink_id = logger.add(messages.append, level="ERROR")
    try:
        with patch.object(
            storage, "complete_move", side_effect=RuntimeError("Failed to complete move")
        ):
            with pytest.raises(RuntimeError, match="Failed to complete move"):
                executor.execute()
    finally:
        logger.remove(sink_id)

    batch = executor.list_batches()[0]
    assert [move.photo_id for move in batch.interrupted] == ["a"]
    assert any(batch.batch_id in message for message in messages)
    assert (archive_root / "a.jpg").exists()
