from PIL import Image

from photopicker.container import build_services
from photopicker.domain.models import DecisionAction, GroupReason


def test_build_services_end_to_end(tmp_path) -> None:
    source_root = tmp_path / "photos"
    source_root.mkdir()
    for index in (1, 2):
        exif = Image.Exif()
        exif[306] = f"2024:05:01 10:00:0{index}"
        Image.new("RGB", (8, 8)).save(source_root / f"IMG_000{index}.jpg", "JPEG", exif=exif)

    services = build_services(
        str(tmp_path / "state.db"), str(tmp_path / "archive"), [str(source_root)]
    )
    photos = services["catalog_service"].refresh()
    groups = services["grouping_service"].group(photos)

    assert len(photos) == 2
    assert GroupReason.TIMESTAMP in {group.reason for group in groups}
    assert GroupReason.FILENAME in {group.reason for group in groups}

    tracker = services["decision_tracker"]
    target = photos[1]
    tracker.record_decision(target.photo_id, DecisionAction.ARCHIVE, groups[0].group_id)
    batch = services["archive_executor"].execute()

    assert (tmp_path / "archive" / target.filename).exists()
    assert services["catalog_service"].refresh() == [photos[0]]

    result = services["undo_manager"].undo(batch.batch_id)

    assert result.batch_deleted
    assert (source_root / target.filename).exists()
    assert tracker.list_pending()[0].group_id == groups[0].group_id


def test_undo_after_rescan_puts_photo_back_in_catalog(tmp_path) -> None:
    source_root = tmp_path / "photos"
    source_root.mkdir()
    for name in ("a.jpg", "b.jpg"):
        Image.new("RGB", (8, 8)).save(source_root / name, "JPEG")
    services = build_services(
        str(tmp_path / "state.db"), str(tmp_path / "archive"), [str(source_root)]
    )
    catalog = services["catalog_service"]
    tracker = services["decision_tracker"]
    executor = services["archive_executor"]
    photos = {photo.filename: photo for photo in catalog.refresh()}

    tracker.record_decision(photos["a.jpg"].photo_id, DecisionAction.ARCHIVE)
    executor.execute()
    catalog.refresh()
    assert [photo.filename for photo in catalog.list_photos()] == ["b.jpg"]

    services["undo_manager"].undo_last()

    assert [photo.filename for photo in catalog.list_photos()] == ["a.jpg", "b.jpg"]
    tracker.record_decision(photos["b.jpg"].photo_id, DecisionAction.ARCHIVE)
    batch = executor.execute()

    assert batch.failure is None
    assert [move.photo_id for move in batch.moves] == [
        photos["a.jpg"].photo_id,
        photos["b.jpg"].photo_id,
    ]
    assert (tmp_path / "archive" / "a.jpg").exists()
    assert (tmp_path / "archive" / "b.jpg").exists()
