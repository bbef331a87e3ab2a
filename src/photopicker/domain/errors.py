from __future__ import annotations


class PhotoPickerError(Exception):
    """Base class for engine failures surfaced to callers."""


class InvalidReferenceError(PhotoPickerError):
    def __init__(self, photo_id: str) -> None:
        super().__init__(f"Photo not found in catalog: {photo_id}")
        self.photo_id = photo_id


class NotFoundError(PhotoPickerError):
    def __init__(self, kind: str, item_id: str) -> None:
        super().__init__(f"{kind} not found: {item_id}")
        self.kind = kind
        self.item_id = item_id


class AlreadyExecutedError(PhotoPickerError):
    def __init__(self, decision_id: str) -> None:
        super().__init__(
            f"Decision already executed: {decision_id} (undo its archive batch instead)"
        )
        self.decision_id = decision_id


class MoveFailedError(PhotoPickerError):
    """A single file move could not complete.

    The underlying OSError, if any, is chained as ``__cause__``.
    """

    def __init__(self, source: str, destination: str | None, reason: str) -> None:
        super().__init__(f"Move failed {source} -> {destination}: {reason}")
        self.source = source
        self.destination = destination
        self.reason = reason


class ReverseFailedError(PhotoPickerError):
    def __init__(self, batch_id: str, reasons: list[str]) -> None:
        super().__init__(
            f"{len(reasons)} move(s) in batch {batch_id} could not be reversed"
        )
        self.batch_id = batch_id
        self.reasons = reasons


class OperationInProgressError(PhotoPickerError):
    def __init__(self, operation: str, running: str) -> None:
        super().__init__(f"Cannot start {operation}: {running} is still running")
        self.operation = operation
        self.running = running
