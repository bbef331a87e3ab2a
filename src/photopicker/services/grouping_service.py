from __future__ import annotations

from collections.abc import Iterable
from concurrent.futures import ThreadPoolExecutor

from loguru import logger

from photopicker.domain.grouping import (
    filename_clusters,
    merge_signal_clusters,
    timestamp_clusters,
)
from photopicker.domain.models import Photo, SimilarityConfig, SimilarityGroup


class GroupingService:
    def __init__(self, config: SimilarityConfig | None = None, max_workers: int = 2) -> None:
        self._config = config or SimilarityConfig()
        self._max_workers = max_workers

    @property
    def config(self) -> SimilarityConfig:
        return self._config

    def group(
        self, photos: Iterable[Photo], config: SimilarityConfig | None = None
    ) -> list[SimilarityGroup]:
        active = config or self._config
        snapshot = list(photos)
        _ensure_unique_ids(snapshot)
        if len(snapshot) < 2:
            return []

        if self._max_workers > 1:
            with ThreadPoolExecutor(max_workers=self._max_workers) as executor:
                by_timestamp = executor.submit(
                    timestamp_clusters, snapshot, active.time_threshold_seconds
                )
                by_filename = executor.submit(
                    filename_clusters, snapshot, active.max_sequence_gap
                )
                timestamp_result = by_timestamp.result()
                filename_result = by_filename.result()
        else:
            timestamp_result = timestamp_clusters(snapshot, active.time_threshold_seconds)
            filename_result = filename_clusters(snapshot, active.max_sequence_gap)

        groups = merge_signal_clusters(timestamp_result, filename_result, active)
        logger.info(
            "Grouped {} photos into {} groups ({} timestamp, {} filename, {} content)",
            len(snapshot),
            len(groups),
            len(timestamp_result),
            len(filename_result),
            len(groups) - len(timestamp_result) - len(filename_result),
        )
        return groups


def _ensure_unique_ids(photos: list[Photo]) -> None:
    seen: set[str] = set()
    for photo in photos:
        if photo.photo_id in seen:
            raise ValueError(f"Duplicate photo id: {photo.photo_id}")
        seen.add(photo.photo_id)
