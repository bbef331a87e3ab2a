from __future__ import annotations

from datetime import datetime, timezone
from uuid import uuid4

from loguru import logger

from photopicker.domain.errors import (
    AlreadyExecutedError,
    InvalidReferenceError,
    NotFoundError,
)
from photopicker.domain.models import Decision, DecisionAction
from photopicker.ports.storage_port import StoragePort
from photopicker.services.operation_guard import OperationGuard


class DecisionTracker:
    """Ledger of keep/archive choices; never touches the file system."""

    def __init__(self, storage: StoragePort, guard: OperationGuard | None = None) -> None:
        self._storage = storage
        self._guard = guard or OperationGuard()

    def record_decision(
        self,
        photo_id: str,
        action: DecisionAction | str,
        group_id: str | None = None,
    ) -> Decision:
        decision_action = DecisionAction(action)
        with self._guard.exclusive("record_decision"):
            if self._storage.get_photo(photo_id) is None:
                raise InvalidReferenceError(photo_id)
            decision = Decision(
                decision_id=str(uuid4()),
                photo_id=photo_id,
                action=decision_action,
                created_at=datetime.now(timezone.utc),
                group_id=group_id,
            )
            replaced = self._storage.replace_pending_decision(decision)
        if replaced:
            logger.info(
                "Decision {} for photo {} replaced pending {}",
                decision.decision_id,
                photo_id,
                ", ".join(replaced),
            )
        return decision

    def list_pending(self) -> list[Decision]:
        return self._storage.list_decisions(executed=False)

    def list_decisions(self) -> list[Decision]:
        return self._storage.list_decisions()

    def get_decision(self, decision_id: str) -> Decision:
        decision = self._storage.get_decision(decision_id)
        if decision is None:
            raise NotFoundError("Decision", decision_id)
        return decision

    def undo_decision(self, decision_id: str) -> None:
        with self._guard.exclusive("undo_decision"):
            decision = self.get_decision(decision_id)
            if decision.executed:
                raise AlreadyExecutedError(decision_id)
            self._storage.delete_decision(decision_id)
        logger.info("Removed pending decision {} for photo {}", decision_id, decision.photo_id)
