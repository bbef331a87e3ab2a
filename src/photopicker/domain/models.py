from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from .errors import ReverseFailedError


@dataclass(frozen=True)
class Photo:
    photo_id: str
    path: str
    filename: str
    size: int
    date_taken: datetime | None = None

    def __post_init__(self) -> None:
        if self.size < 0:
            raise ValueError(f"Photo size must be non-negative: {self.photo_id}")


class GroupReason(str, Enum):
    TIMESTAMP = "timestamp"
    FILENAME = "filename"
    CONTENT = "content"


@dataclass(frozen=True)
class SimilarityConfig:
    time_threshold_seconds: float = 5.0
    size_threshold_percent: float = 10.0
    max_sequence_gap: int = 2

    def __post_init__(self) -> None:
        if self.time_threshold_seconds < 0:
            raise ValueError("time_threshold_seconds must be >= 0")
        if self.size_threshold_percent < 0:
            raise ValueError("size_threshold_percent must be >= 0")
        if self.max_sequence_gap < 0:
            raise ValueError("max_sequence_gap must be >= 0")


@dataclass(frozen=True)
class SimilarityGroup:
    group_id: str
    photo_ids: tuple[str, ...]
    reason: GroupReason
    confidence: float


class DecisionAction(str, Enum):
    KEEP = "keep"
    ARCHIVE = "archive"


@dataclass
class Decision:
    decision_id: str
    photo_id: str
    action: DecisionAction
    created_at: datetime
    executed: bool = False
    group_id: str | None = None
    batch_id: str | None = None
    executed_at: datetime | None = None


@dataclass(frozen=True)
class ArchiveConfig:
    archive_root: str
    source_roots: tuple[str, ...]


@dataclass(frozen=True)
class ArchiveMove:
    index: int
    photo_id: str
    decision_id: str
    original_path: str
    archived_path: str


@dataclass(frozen=True)
class MoveFailure:
    photo_id: str
    decision_id: str
    original_path: str | None
    archived_path: str | None
    reason: str


@dataclass
class ArchiveBatch:
    batch_id: str
    created_at: datetime
    archive_root: str
    moves: list[ArchiveMove] = field(default_factory=list)
    decision_ids: list[str] = field(default_factory=list)
    failure: MoveFailure | None = None
    # Moves logged as started but never confirmed; the file may be at either path.
    interrupted: list[ArchiveMove] = field(default_factory=list)

    @property
    def is_partial(self) -> bool:
        return self.failure is not None


@dataclass(frozen=True)
class ReverseFailure:
    move: ArchiveMove
    reason: str


@dataclass
class UndoResult:
    batch_id: str
    reversed: list[ArchiveMove] = field(default_factory=list)
    failed: list[ReverseFailure] = field(default_factory=list)
    batch_deleted: bool = False

    @property
    def complete(self) -> bool:
        return not self.failed

    def raise_for_failures(self) -> None:
        """Raise ReverseFailedError when any move could not be reversed."""
        if self.failed:
            raise ReverseFailedError(self.batch_id, [failure.reason for failure in self.failed])
