from __future__ import annotations

import threading
from collections.abc import Iterator
from contextlib import contextmanager

from photopicker.domain.errors import OperationInProgressError


class OperationGuard:
    """Serializes state-mutating operations; a second caller fails instead of waiting."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._running: str | None = None

    @property
    def running(self) -> str | None:
        return self._running

    @contextmanager
    def exclusive(self, operation: str) -> Iterator[None]:
        if not self._lock.acquire(blocking=False):
            raise OperationInProgressError(operation, self._running or "another operation")
        self._running = operation
        try:
            yield
        finally:
            self._running = None
            self._lock.release()
