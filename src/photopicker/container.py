from __future__ import annotations

from pathlib import Path
from typing import Any

from photopicker.adapters.local_filesystem import LocalFileSystemAdapter
from photopicker.adapters.local_photo_source import LocalPhotoSource
from photopicker.adapters.sqlite_storage import SQLiteStorage
from photopicker.domain.models import ArchiveConfig, SimilarityConfig
from photopicker.services.archive_service import ArchiveExecutor
from photopicker.services.catalog_service import PhotoCatalogService
from photopicker.services.decision_service import DecisionTracker
from photopicker.services.grouping_service import GroupingService
from photopicker.services.operation_guard import OperationGuard
from photopicker.services.undo_service import UndoManager


def build_services(
    sqlite_path: str,
    archive_root: str,
    source_roots: list[str],
    similarity: SimilarityConfig | None = None,
    grouping_workers: int = 2,
) -> dict[str, Any]:
    archive_root = str(Path(archive_root).resolve())
    source_roots = [str(Path(root).resolve()) for root in source_roots]
    storage = SQLiteStorage(sqlite_path)
    filesystem = LocalFileSystemAdapter()
    source = LocalPhotoSource()
    guard = OperationGuard()
    archive_config = ArchiveConfig(archive_root=archive_root, source_roots=tuple(source_roots))
    return {
        "catalog_service": PhotoCatalogService(source, storage, source_roots, archive_root),
        "grouping_service": GroupingService(similarity, max_workers=grouping_workers),
        "decision_tracker": DecisionTracker(storage, guard),
        "archive_executor": ArchiveExecutor(storage, filesystem, archive_config, guard),
        "undo_manager": UndoManager(storage, filesystem, guard),
        "filesystem": filesystem,
        "guard": guard,
        "source": source,
        "storage": storage,
    }
