from __future__ import annotations

from collections.abc import Iterable
from pathlib import PurePath


def find_source_root(path: str, source_roots: Iterable[str]) -> str | None:
    """
    Return the most specific source root containing `path`, or None.

    Example:
        find_source_root("/photos/2024/trip/a.jpg", ["/photos", "/photos/2024"])
        # '/photos/2024'
    """
    candidate = PurePath(path)
    best: PurePath | None = None
    for root in source_roots:
        root_path = PurePath(root)
        if candidate == root_path or not candidate.is_relative_to(root_path):
            continue
        if best is None or len(root_path.parts) > len(best.parts):
            best = root_path
    return str(best) if best is not None else None


def archive_destination(path: str, source_roots: Iterable[str], archive_root: str) -> str:
    """
    Map a photo path into the archive, preserving its layout under the source root.

    Example:
        archive_destination("/photos/2024/a.jpg", ["/photos"], "/archive")
        # '/archive/2024/a.jpg'
    """
    root = find_source_root(path, source_roots)
    if root is None:
        raise ValueError(f"Path is not under any source root: {path}")
    relative = PurePath(path).relative_to(root)
    return str(PurePath(archive_root) / relative)
