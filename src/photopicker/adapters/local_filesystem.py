"""Local file moves that never drop a file.

The destination name is claimed with ``O_EXCL`` first, so an existing file is
never replaced. Same-volume moves then ``os.replace`` onto the claimed name.
Cross-device moves copy to a temporary sibling, fsync and verify it, replace
the claim with it, and only then remove the source.
"""

from __future__ import annotations

import errno
import hashlib
import os
import shutil
from pathlib import Path

from loguru import logger

from photopicker.domain.errors import MoveFailedError
from photopicker.ports.filesystem_port import FileSystemPort

_CHUNK_SIZE = 1024 * 1024


class LocalFileSystemAdapter(FileSystemPort):
    def move_file(self, source: str, destination: str, create_parents: bool = True) -> None:
        src = Path(source)
        dst = Path(destination)
        if not src.is_file():
            raise MoveFailedError(source, destination, "source file does not exist")
        if not dst.parent.is_dir():
            if not create_parents:
                raise MoveFailedError(source, destination, "destination directory does not exist")
            try:
                dst.parent.mkdir(parents=True, exist_ok=True)
            except OSError as exc:
                raise MoveFailedError(
                    source, destination, f"cannot create directory: {exc}"
                ) from exc

        _claim(src, dst)
        try:
            os.replace(src, dst)
            logger.debug("Renamed {} -> {}", src, dst)
            return
        except OSError as exc:
            if exc.errno != errno.EXDEV:
                _discard(dst)
                raise MoveFailedError(source, destination, str(exc)) from exc
        self._copy_verify_remove(src, dst)

    def exists(self, path: str) -> bool:
        return os.path.exists(path)

    def prune_empty_dirs(self, start_dir: str, stop_dir: str) -> None:
        stop = Path(stop_dir).resolve()
        current = Path(start_dir).resolve()
        while current != stop and current.is_relative_to(stop):
            try:
                current.rmdir()
            except OSError:
                # Not empty, or not ours to remove.
                return
            logger.debug("Removed empty directory {}", current)
            current = current.parent

    def _copy_verify_remove(self, src: Path, dst: Path) -> None:
        partial = dst.with_name(f".{dst.name}.partial")
        try:
            shutil.copy2(src, partial)
            with partial.open("rb") as handle:
                os.fsync(handle.fileno())
            if partial.stat().st_size != src.stat().st_size or _sha256(partial) != _sha256(src):
                raise MoveFailedError(str(src), str(dst), "copy verification failed")
            os.replace(partial, dst)
        except OSError as exc:
            _discard(partial)
            _discard(dst)
            raise MoveFailedError(str(src), str(dst), f"copy failed: {exc}") from exc
        except MoveFailedError:
            _discard(partial)
            _discard(dst)
            raise

        try:
            src.unlink()
        except OSError as exc:
            # Source still holds the file; drop the copy so the move reads as not done.
            logger.warning("Copied {} -> {} but could not remove source: {}", src, dst, exc)
            _discard(dst)
            raise MoveFailedError(
                str(src), str(dst), f"cannot remove source after copy: {exc}"
            ) from exc
        logger.debug("Copied across devices {} -> {}", src, dst)


def _claim(src: Path, dst: Path) -> None:
    try:
        fd = os.open(dst, os.O_WRONLY | os.O_CREAT | os.O_EXCL)
    except FileExistsError as exc:
        raise MoveFailedError(str(src), str(dst), "destination already exists") from exc
    except OSError as exc:
        raise MoveFailedError(str(src), str(dst), f"cannot claim destination: {exc}") from exc
    os.close(fd)


def _sha256(path: Path) -> str:
    digest = hashlib.sha256()
    with path.open("rb") as handle:
        for chunk in iter(lambda: handle.read(_CHUNK_SIZE), b""):
            digest.update(chunk)
    return digest.hexdigest()


def _discard(path: Path) -> None:
    try:
        path.unlink(missing_ok=True)
    except OSError as exc:
        logger.warning("Could not remove {}: {}", path, exc)
