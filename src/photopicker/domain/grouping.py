from __future__ import annotations

import re
import uuid
from collections.abc import Iterable
from dataclasses import dataclass

from .models import GroupReason, Photo, SimilarityConfig, SimilarityGroup

_GROUP_NAMESPACE = uuid.UUID("5b0e8f2c-6f1d-4c55-9a64-2f7f0f3c1a9e")
_SEQUENCE_STEM = re.compile(r"^(?P<prefix>.*?)(?P<number>\d+)(?P<tail>\D*)$")


@dataclass(frozen=True)
class SequenceName:
    prefix: str
    number: int
    suffix: str

    @property
    def pattern(self) -> tuple[str, str]:
        return self.prefix, self.suffix


def parse_sequence_name(filename: str) -> SequenceName | None:
    """
    Split a filename into a non-numeric pattern and its last numeric run.

    The extension never contributes digits; it is folded into the suffix.

    Examples:
        >>> parse_sequence_name("IMG_0042.jpg")
        SequenceName(prefix='IMG_', number=42, suffix='.jpg')
        >>> parse_sequence_name("DSC01234-edit.NEF")
        SequenceName(prefix='DSC', number=1234, suffix='-edit.NEF')
        >>> parse_sequence_name("holiday.jpg") is None
        True
    """
    stem, dot, ext = filename.rpartition(".")
    if dot == "" or stem == "":
        stem, ext = filename, ""
    else:
        ext = f".{ext}"
    match = _SEQUENCE_STEM.match(stem)
    if match is None:
        return None
    return SequenceName(
        prefix=match.group("prefix"),
        number=int(match.group("number")),
        suffix=f"{match.group('tail')}{ext}",
    )


def relative_size_delta(a: int, b: int) -> float:
    larger = max(a, b)
    if larger == 0:
        return 0.0
    return (larger - min(a, b)) / larger


def timestamp_clusters(photos: Iterable[Photo], threshold_seconds: float) -> list[list[Photo]]:
    """Chain photos by capture time; a gap above the threshold splits clusters."""
    dated = sorted(
        (photo for photo in photos if photo.date_taken is not None),
        key=lambda photo: (photo.date_taken, photo.photo_id),
    )
    clusters: list[list[Photo]] = []
    current: list[Photo] = []
    for photo in dated:
        if current and _seconds_between(current[-1], photo) > threshold_seconds:
            clusters.append(current)
            current = []
        current.append(photo)
    if current:
        clusters.append(current)
    return [cluster for cluster in clusters if len(cluster) >= 2]


def timestamp_confidence(cluster: list[Photo], threshold_seconds: float) -> float:
    if threshold_seconds <= 0:
        return 1.0
    span = _seconds_between(cluster[0], cluster[-1])
    avg_gap = span / (len(cluster) - 1)
    return max(0.0, 1.0 - avg_gap / threshold_seconds)


def filename_clusters(photos: Iterable[Photo], max_gap: int) -> list[list[Photo]]:
    """Cluster photos sharing a filename pattern whose numbers are near-consecutive."""
    by_pattern: dict[tuple[str, str], list[tuple[int, Photo]]] = {}
    for photo in photos:
        parsed = parse_sequence_name(photo.filename)
        if parsed is None:
            continue
        by_pattern.setdefault(parsed.pattern, []).append((parsed.number, photo))

    clusters: list[list[Photo]] = []
    for pattern in sorted(by_pattern):
        numbered = sorted(by_pattern[pattern], key=lambda item: (item[0], item[1].photo_id))
        current: list[Photo] = []
        previous: int | None = None
        for number, photo in numbered:
            if previous is not None and number - previous > max_gap:
                if len(current) >= 2:
                    clusters.append(current)
                current = []
            current.append(photo)
            previous = number
        if len(current) >= 2:
            clusters.append(current)
    return clusters


def filename_confidence(cluster: list[Photo]) -> float:
    numbers = [_sequence_number(photo) for photo in cluster]
    max_gap = max(b - a for a, b in zip(numbers, numbers[1:]))
    return 1.0 / (1.0 + max_gap)


def size_clusters(
    parents: Iterable[list[Photo]], threshold_percent: float
) -> list[list[Photo]]:
    """Split each parent cluster into runs whose sizes are pairwise within the threshold."""
    limit = threshold_percent / 100.0
    clusters: list[list[Photo]] = []
    seen: set[tuple[str, ...]] = set()
    for parent in parents:
        ordered = sorted(parent, key=lambda photo: (photo.size, photo.photo_id))
        runs: list[list[Photo]] = []
        current: list[Photo] = []
        for photo in ordered:
            if current and relative_size_delta(current[0].size, photo.size) > limit:
                runs.append(current)
                current = []
            current.append(photo)
        if current:
            runs.append(current)
        for run in runs:
            if len(run) < 2:
                continue
            key = tuple(photo.photo_id for photo in run)
            if key in seen:
                continue
            seen.add(key)
            clusters.append(run)
    return clusters


def size_confidence(cluster: list[Photo]) -> float:
    sizes = [photo.size for photo in cluster]
    return 1.0 - relative_size_delta(min(sizes), max(sizes))


def merge_signal_clusters(
    by_timestamp: list[list[Photo]],
    by_filename: list[list[Photo]],
    config: SimilarityConfig,
) -> list[SimilarityGroup]:
    """
    Turn per-signal clusters into tagged groups.

    Size proximity only refines clusters the other two signals already found.
    Groups are concatenated, never intersected.
    """
    groups = [
        _make_group(
            cluster,
            GroupReason.TIMESTAMP,
            timestamp_confidence(cluster, config.time_threshold_seconds),
        )
        for cluster in by_timestamp
    ]
    groups.extend(
        _make_group(cluster, GroupReason.FILENAME, filename_confidence(cluster))
        for cluster in by_filename
    )
    groups.extend(
        _make_group(cluster, GroupReason.CONTENT, size_confidence(cluster))
        for cluster in size_clusters(
            [*by_timestamp, *by_filename], config.size_threshold_percent
        )
    )
    return groups


def group_photos(photos: Iterable[Photo], config: SimilarityConfig) -> list[SimilarityGroup]:
    snapshot = list(photos)
    return merge_signal_clusters(
        timestamp_clusters(snapshot, config.time_threshold_seconds),
        filename_clusters(snapshot, config.max_sequence_gap),
        config,
    )


def _make_group(cluster: list[Photo], reason: GroupReason, confidence: float) -> SimilarityGroup:
    photo_ids = tuple(photo.photo_id for photo in cluster)
    group_id = uuid.uuid5(_GROUP_NAMESPACE, f"{reason.value}:{','.join(photo_ids)}")
    return SimilarityGroup(
        group_id=str(group_id),
        photo_ids=photo_ids,
        reason=reason,
        confidence=min(1.0, max(0.0, confidence)),
    )


def _seconds_between(earlier: Photo, later: Photo) -> float:
    return (later.date_taken - earlier.date_taken).total_seconds()


def _sequence_number(photo: Photo) -> int:
    parsed = parse_sequence_name(photo.filename)
    if parsed is None:
        raise ValueError(f"Filename has no sequence number: {photo.filename}")
    return parsed.number
