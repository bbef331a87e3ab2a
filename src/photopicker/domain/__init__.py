from .archive_paths import archive_destination, find_source_root
from .errors import (
    AlreadyExecutedError,
    InvalidReferenceError,
    MoveFailedError,
    NotFoundError,
    OperationInProgressError,
    PhotoPickerError,
    ReverseFailedError,
)
from .grouping import group_photos, parse_sequence_name
from .models import (
    ArchiveBatch,
    ArchiveConfig,
    ArchiveMove,
    Decision,
    DecisionAction,
    GroupReason,
    MoveFailure,
    Photo,
    ReverseFailure,
    SimilarityConfig,
    SimilarityGroup,
    UndoResult,
)

__all__ = [
    "AlreadyExecutedError",
    "ArchiveBatch",
    "ArchiveConfig",
    "ArchiveMove",
    "Decision",
    "DecisionAction",
    "GroupReason",
    "InvalidReferenceError",
    "MoveFailedError",
    "MoveFailure",
    "NotFoundError",
    "OperationInProgressError",
    "Photo",
    "PhotoPickerError",
    "ReverseFailedError",
    "ReverseFailure",
    "SimilarityConfig",
    "SimilarityGroup",
    "UndoResult",
    "archive_destination",
    "find_source_root",
    "group_photos",
    "parse_sequence_name",
]
