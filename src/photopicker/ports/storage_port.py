from __future__ import annotations

from typing import Protocol

from photopicker.domain.models import ArchiveBatch, ArchiveMove, Decision, MoveFailure, Photo


class StoragePort(Protocol):
    def save_photos(self, photos: list[Photo]) -> None:
        """Replace the catalog with the given snapshot, keeping archived photos."""

    def list_photos(self) -> list[Photo]:
        """Return cataloged photos that are not archived, ordered by path."""

    def get_photo(self, photo_id: str) -> Photo | None:
        """Return a photo by id, archived or not, or None if missing."""

    def replace_pending_decision(self, decision: Decision) -> list[str]:
        """Persist a decision, discarding the photo's pending one. Return discarded ids."""

    def get_decision(self, decision_id: str) -> Decision | None:
        """Return a decision by id, or None if missing."""

    def list_decisions(self, executed: bool | None = None) -> list[Decision]:
        """Return decisions in insertion order, optionally filtered by executed state."""

    def delete_decision(self, decision_id: str) -> None:
        """Remove a decision by id."""

    def create_batch(self, batch: ArchiveBatch) -> None:
        """Persist a new, empty archive batch."""

    def mark_decision_executed(self, batch_id: str, decision_id: str) -> None:
        """Mark a decision executed by the batch without a file move."""

    def begin_move(self, batch_id: str, move: ArchiveMove) -> None:
        """Record a move intent and flag its photo archived before touching files."""

    def complete_move(self, batch_id: str, move_index: int) -> None:
        """Mark a move completed and its decision executed."""

    def fail_move(self, batch_id: str, move_index: int, reason: str) -> None:
        """Mark a move failed with the given reason."""

    def record_batch_failure(self, batch_id: str, failure: MoveFailure) -> None:
        """Record a failure that happened before a move could be planned."""

    def get_batch(self, batch_id: str) -> ArchiveBatch | None:
        """Return a batch with its unreversed completed moves, or None."""

    def list_batches(self) -> list[ArchiveBatch]:
        """Return retained batches, most recent first."""

    def mark_move_reversed(self, batch_id: str, move_index: int) -> bool:
        """Mark a move reversed and restore its decision; False if the decision was discarded."""

    def restore_decision(self, decision_id: str) -> bool:
        """Return an executed decision to pending; False if it was discarded instead."""

    def delete_batch(self, batch_id: str) -> None:
        """Remove a batch and its move log."""
