from __future__ import annotations

from datetime import datetime, timezone
from uuid import uuid4

from loguru import logger

from photopicker.domain.archive_paths import archive_destination
from photopicker.domain.errors import MoveFailedError, NotFoundError
from photopicker.domain.models import (
    ArchiveBatch,
    ArchiveConfig,
    ArchiveMove,
    Decision,
    DecisionAction,
    MoveFailure,
)
from photopicker.ports.filesystem_port import FileSystemPort
from photopicker.ports.storage_port import StoragePort
from photopicker.services.operation_guard import OperationGuard


class ArchiveExecutor:
    """Apply pending decisions as one archive batch.

    Moves run one at a time in decision order and stop at the first failure.
    Each move is persisted as pending before the file is touched and as
    completed or failed afterwards, so the batch log always accounts for
    every file.
    """

    def __init__(
        self,
        storage: StoragePort,
        filesystem: FileSystemPort,
        config: ArchiveConfig,
        guard: OperationGuard | None = None,
    ) -> None:
        self._storage = storage
        self._fs = filesystem
        self._config = config
        self._guard = guard or OperationGuard()

    def execute(self) -> ArchiveBatch:
        with self._guard.exclusive("execute"):
            return self._execute()

    def get_batch(self, batch_id: str) -> ArchiveBatch:
        batch = self._storage.get_batch(batch_id)
        if batch is None:
            raise NotFoundError("Archive batch", batch_id)
        return batch

    def list_batches(self) -> list[ArchiveBatch]:
        return self._storage.list_batches()

    def _execute(self) -> ArchiveBatch:
        batch = ArchiveBatch(
            batch_id=str(uuid4()),
            created_at=datetime.now(timezone.utc),
            archive_root=self._config.archive_root,
        )
        pending = self._storage.list_decisions(executed=False)
        if not pending:
            logger.info("No pending decisions; nothing to archive")
            return batch

        self._storage.create_batch(batch)
        logger.info(
            "Archive batch {} started with {} pending decisions", batch.batch_id, len(pending)
        )
        try:
            self._apply(batch, pending)
        except RuntimeError:
            logger.exception(
                "Archive batch {} aborted after {} move(s); undo it to restore moved files",
                batch.batch_id,
                len(batch.moves),
            )
            raise

        logger.info(
            "Archive batch {} finished: {} moved, {} decisions executed, partial={}",
            batch.batch_id,
            len(batch.moves),
            len(batch.decision_ids),
            batch.is_partial,
        )
        return batch

    def _apply(self, batch: ArchiveBatch, pending: list[Decision]) -> None:
        for decision in pending:
            if decision.action is DecisionAction.KEEP:
                self._storage.mark_decision_executed(batch.batch_id, decision.decision_id)
                batch.decision_ids.append(decision.decision_id)
                continue
            failure = self._archive_one(batch, decision)
            if failure is not None:
                batch.failure = failure
                logger.warning(
                    "Archive batch {} stopped after {} move(s): {}",
                    batch.batch_id,
                    len(batch.moves),
                    failure.reason,
                )
                return

    def _archive_one(self, batch: ArchiveBatch, decision: Decision) -> MoveFailure | None:
        photo = self._storage.get_photo(decision.photo_id)
        if photo is None:
            return self._fail_unplanned(batch, decision, None, "photo not in catalog")
        try:
            destination = archive_destination(
                photo.path, self._config.source_roots, self._config.archive_root
            )
        except ValueError as exc:
            return self._fail_unplanned(batch, decision, photo.path, str(exc))

        move = ArchiveMove(
            index=len(batch.moves),
            photo_id=photo.photo_id,
            decision_id=decision.decision_id,
            original_path=photo.path,
            archived_path=destination,
        )
        self._storage.begin_move(batch.batch_id, move)
        try:
            self._fs.move_file(move.original_path, move.archived_path)
        except MoveFailedError as exc:
            self._storage.fail_move(batch.batch_id, move.index, exc.reason)
            return MoveFailure(
                photo_id=move.photo_id,
                decision_id=move.decision_id,
                original_path=move.original_path,
                archived_path=move.archived_path,
                reason=exc.reason,
            )
        self._storage.complete_move(batch.batch_id, move.index)
        batch.moves.append(move)
        batch.decision_ids.append(decision.decision_id)
        logger.debug("Archived {} -> {}", move.original_path, move.archived_path)
        return None

    def _fail_unplanned(
        self,
        batch: ArchiveBatch,
        decision: Decision,
        original_path: str | None,
        reason: str,
    ) -> MoveFailure:
        failure = MoveFailure(
            photo_id=decision.photo_id,
            decision_id=decision.decision_id,
            original_path=original_path,
            archived_path=None,
            reason=reason,
        )
        self._storage.record_batch_failure(batch.batch_id, failure)
        return failure
