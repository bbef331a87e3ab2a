from __future__ import annotations

from typing import Protocol


class FileSystemPort(Protocol):
    def move_file(self, source: str, destination: str, create_parents: bool = True) -> None:
        """Move a file without overwriting; raise MoveFailedError on failure."""

    def exists(self, path: str) -> bool:
        """Return True if a file or directory exists at path."""

    def prune_empty_dirs(self, start_dir: str, stop_dir: str) -> None:
        """Remove empty directories from start_dir upward, stopping below stop_dir."""
