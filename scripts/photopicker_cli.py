from __future__ import annotations

import argparse
from pathlib import Path

from dotenv import load_dotenv

_REPO_ROOT = Path(__file__).resolve().parents[1]
load_dotenv(_REPO_ROOT / ".env", override=False)

from photopicker.container import build_services
from photopicker.domain.errors import PhotoPickerError
from photopicker.domain.models import ArchiveBatch, SimilarityConfig
from photopicker.logging_setup import init_logging
from photopicker.settings import (
    ARCHIVE_ROOT,
    GROUPING_WORKERS,
    LOG_DIR,
    LOG_LEVEL,
    MAX_SEQUENCE_GAP,
    SIZE_THRESHOLD_PERCENT,
    SOURCE_ROOTS,
    SQLITE_PATH,
    TIME_THRESHOLD_SECONDS,
)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Group similar photos and archive rejects.")
    parser.add_argument("--db", default=SQLITE_PATH, help="SQLite state file")
    parser.add_argument("--archive-root", default=ARCHIVE_ROOT)
    parser.add_argument(
        "--source-root",
        action="append",
        dest="source_roots",
        help="Photo source root (repeatable); defaults to SOURCE_ROOTS",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("scan", help="Rescan source roots into the catalog")

    groups = sub.add_parser("groups", help="Print similarity groups for the catalog")
    groups.add_argument("--time-threshold", type=float, default=TIME_THRESHOLD_SECONDS)
    groups.add_argument("--size-threshold", type=float, default=SIZE_THRESHOLD_PERCENT)
    groups.add_argument("--max-gap", type=int, default=MAX_SEQUENCE_GAP)

    decide = sub.add_parser("decide", help="Record a keep/archive decision")
    decide.add_argument("photo_id")
    decide.add_argument("action", choices=["keep", "archive"])
    decide.add_argument("--group-id")

    sub.add_parser("pending", help="List pending decisions")

    forget = sub.add_parser("forget", help="Remove a pending decision")
    forget.add_argument("decision_id")

    sub.add_parser("execute", help="Archive all pending decisions")
    sub.add_parser("batches", help="List retained archive batches")

    undo = sub.add_parser("undo", help="Reverse an archive batch (latest by default)")
    undo.add_argument("batch_id", nargs="?")
    return parser


def _print_batch(batch: ArchiveBatch) -> None:
    print(f"batch {batch.batch_id} at {batch.created_at.isoformat()}")
    for move in batch.moves:
        print(f"  [{move.index}] {move.original_path} -> {move.archived_path}")
    print(f"  decisions executed: {len(batch.decision_ids)}")
    if batch.failure is not None:
        print(f"  stopped at photo {batch.failure.photo_id}: {batch.failure.reason}")


def main() -> None:
    args = _build_parser().parse_args()
    init_logging(LOG_DIR or None, LOG_LEVEL)
    source_roots = args.source_roots or SOURCE_ROOTS
    services = build_services(
        args.db,
        args.archive_root,
        source_roots,
        grouping_workers=GROUPING_WORKERS,
    )
    catalog = services["catalog_service"]
    tracker = services["decision_tracker"]
    executor = services["archive_executor"]
    undo_manager = services["undo_manager"]

    try:
        if args.command == "scan":
            if not source_roots:
                raise SystemExit("No source roots (use --source-root or SOURCE_ROOTS).")
            photos = catalog.refresh()
            print(f"Cataloged {len(photos)} photos")
        elif args.command == "groups":
            config = SimilarityConfig(
                time_threshold_seconds=args.time_threshold,
                size_threshold_percent=args.size_threshold,
                max_sequence_gap=args.max_gap,
            )
            photos = {photo.photo_id: photo for photo in catalog.list_photos()}
            for group in services["grouping_service"].group(photos.values(), config):
                print(f"{group.group_id} {group.reason.value} confidence={group.confidence:.2f}")
                for photo_id in group.photo_ids:
                    print(f"  {photo_id}  {photos[photo_id].path}")
        elif args.command == "decide":
            decision = tracker.record_decision(args.photo_id, args.action, args.group_id)
            print(f"{decision.decision_id} {decision.action.value} {decision.photo_id}")
        elif args.command == "pending":
            for decision in tracker.list_pending():
                print(f"{decision.decision_id} {decision.action.value} {decision.photo_id}")
        elif args.command == "forget":
            tracker.undo_decision(args.decision_id)
            print(f"Removed {args.decision_id}")
        elif args.command == "execute":
            batch = executor.execute()
            if not batch.decision_ids and batch.failure is None:
                print("Nothing pending")
            else:
                _print_batch(batch)
        elif args.command == "batches":
            for batch in executor.list_batches():
                _print_batch(batch)
        elif args.command == "undo":
            if args.batch_id:
                result = undo_manager.undo(args.batch_id)
            else:
                result = undo_manager.undo_last()
            print(f"Reversed {len(result.reversed)} move(s) in {result.batch_id}")
            for failure in result.failed:
                print(f"  could not restore {failure.move.original_path}: {failure.reason}")
            if not result.batch_deleted:
                print("Batch retained for retry")
    except PhotoPickerError as exc:
        raise SystemExit(str(exc)) from exc


if __name__ == "__main__":
    main()
