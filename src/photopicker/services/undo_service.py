from __future__ import annotations

from pathlib import PurePath

from loguru import logger

from photopicker.domain.errors import MoveFailedError, NotFoundError
from photopicker.domain.models import (
    ArchiveBatch,
    ArchiveMove,
    DecisionAction,
    ReverseFailure,
    UndoResult,
)
from photopicker.ports.filesystem_port import FileSystemPort
from photopicker.ports.storage_port import StoragePort
from photopicker.services.operation_guard import OperationGuard


class UndoManager:
    def __init__(
        self,
        storage: StoragePort,
        filesystem: FileSystemPort,
        guard: OperationGuard | None = None,
    ) -> None:
        self._storage = storage
        self._fs = filesystem
        self._guard = guard or OperationGuard()

    def undo(self, batch_id: str) -> UndoResult:
        with self._guard.exclusive("undo"):
            batch = self._storage.get_batch(batch_id)
            if batch is None:
                raise NotFoundError("Archive batch", batch_id)
            return self._undo(batch)

    def undo_last(self) -> UndoResult:
        with self._guard.exclusive("undo"):
            batches = self._storage.list_batches()
            if not batches:
                raise NotFoundError("Archive batch", "<latest>")
            return self._undo(batches[0])

    def _undo(self, batch: ArchiveBatch) -> UndoResult:
        result = UndoResult(batch_id=batch.batch_id)
        interrupted = {move.index for move in batch.interrupted}
        ordered = sorted(
            [*batch.moves, *batch.interrupted], key=lambda item: item.index, reverse=True
        )
        for move in ordered:
            if move.index in interrupted and not self._resolve_interrupted(batch, move, result):
                continue
            try:
                self._fs.move_file(move.archived_path, move.original_path, create_parents=False)
            except MoveFailedError as exc:
                logger.warning(
                    "Could not reverse {} -> {}: {}",
                    move.archived_path,
                    move.original_path,
                    exc.reason,
                )
                result.failed.append(ReverseFailure(move=move, reason=exc.reason))
                continue
            restored = self._storage.mark_move_reversed(batch.batch_id, move.index)
            if not restored:
                logger.info(
                    "Decision {} superseded by a newer pending decision; discarded",
                    move.decision_id,
                )
            archived_dir = str(PurePath(move.archived_path).parent)
            self._fs.prune_empty_dirs(archived_dir, batch.archive_root)
            result.reversed.append(move)

        if result.failed:
            logger.warning(
                "Undo of batch {} left {} move(s) archived; batch retained",
                batch.batch_id,
                len(result.failed),
            )
            return result

        moved_decisions = {move.decision_id for move in batch.moves}
        for decision_id in batch.decision_ids:
            if decision_id in moved_decisions:
                continue
            decision = self._storage.get_decision(decision_id)
            if decision is not None and decision.action is DecisionAction.KEEP:
                self._storage.restore_decision(decision_id)
        self._storage.delete_batch(batch.batch_id)
        result.batch_deleted = True
        logger.info(
            "Batch {} fully reversed ({} move(s)); batch deleted",
            batch.batch_id,
            len(result.reversed),
        )
        return result

    def _resolve_interrupted(
        self, batch: ArchiveBatch, move: ArchiveMove, result: UndoResult
    ) -> bool:
        """Locate the file of a move that was never confirmed.

        Returns True when the file sits in the archive and must be moved back.
        """
        if self._fs.exists(move.original_path):
            self._storage.mark_move_reversed(batch.batch_id, move.index)
            logger.info(
                "Interrupted move {} of batch {} never left {}",
                move.index,
                batch.batch_id,
                move.original_path,
            )
            return False
        if self._fs.exists(move.archived_path):
            return True
        reason = "interrupted move: file is at neither the original nor the archived path"
        logger.warning("Batch {} move {}: {}", batch.batch_id, move.index, reason)
        result.failed.append(ReverseFailure(move=move, reason=reason))
        return False
