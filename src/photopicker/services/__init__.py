from .archive_service import ArchiveExecutor
from .catalog_service import PhotoCatalogService
from .decision_service import DecisionTracker
from .grouping_service import GroupingService
from .operation_guard import OperationGuard
from .undo_service import UndoManager

__all__ = [
    "ArchiveExecutor",
    "DecisionTracker",
    "GroupingService",
    "OperationGuard",
    "PhotoCatalogService",
    "UndoManager",
]
