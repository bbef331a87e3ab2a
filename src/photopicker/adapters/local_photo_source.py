"""Discover photos on the local file system.

Capture time comes from EXIF via Pillow and is left as None when the file
carries no usable capture metadata. Discovery never raises for a single bad
file; it logs and moves on.
"""

from __future__ import annotations

import hashlib
import os
from datetime import datetime
from pathlib import Path
from typing import Any

from loguru import logger
from PIL import Image, UnidentifiedImageError

from photopicker.domain.models import Photo
from photopicker.ports.photo_source_port import PhotoSourcePort

PHOTO_EXTENSIONS = frozenset(
    {".jpg", ".jpeg", ".png", ".heic", ".heif", ".tif", ".tiff", ".webp", ".dng", ".nef", ".cr2"}
)

# EXIF DateTimeOriginal, then DateTime.
_EXIF_DATE_TAGS = (36867, 306)
_EXIF_IFD_POINTER = 0x8769


def photo_id_for_path(path: str) -> str:
    return hashlib.sha1(str(Path(path).resolve()).encode("utf-8")).hexdigest()


def read_capture_time(path: str) -> datetime | None:
    """Return EXIF capture time, or None if unavailable or unparseable."""
    try:
        with Image.open(path) as image:
            exif = image.getexif()
            if not exif:
                return None
            values: dict[int, Any] = dict(exif)
            values.update(exif.get_ifd(_EXIF_IFD_POINTER))
    except (OSError, UnidentifiedImageError, ValueError) as ex:
        logger.debug("EXIF read failed for {}: {}", path, ex)
        return None

    for tag in _EXIF_DATE_TAGS:
        raw = values.get(tag)
        if not raw:
            continue
        text = str(raw).strip().rstrip("\x00")
        try:
            return datetime.strptime(text, "%Y:%m:%d %H:%M:%S")
        except ValueError:
            logger.debug("Unparseable EXIF date {!r} in {}", text, path)
    return None


class LocalPhotoSource(PhotoSourcePort):
    def __init__(self, extensions: frozenset[str] = PHOTO_EXTENSIONS) -> None:
        self._extensions = {ext.lower() for ext in extensions}

    def list_photos(self, source_roots: list[str], exclude: list[str] | None = None) -> list[Photo]:
        excluded = [Path(path).resolve() for path in exclude or []]
        photos: dict[str, Photo] = {}
        for root in source_roots:
            root_path = Path(root)
            if not root_path.is_dir():
                logger.warning("Source root does not exist: {}", root)
                continue
            for dirpath, dirnames, filenames in os.walk(root_path):
                current = Path(dirpath).resolve()
                if any(current == ex or current.is_relative_to(ex) for ex in excluded):
                    dirnames[:] = []
                    continue
                dirnames.sort()
                for filename in sorted(filenames):
                    if Path(filename).suffix.lower() not in self._extensions:
                        continue
                    photo = self._build_photo(current / filename)
                    if photo is not None:
                        photos.setdefault(photo.photo_id, photo)
        logger.info("Discovered {} photos under {} root(s)", len(photos), len(source_roots))
        return sorted(photos.values(), key=lambda photo: photo.path)

    def _build_photo(self, path: Path) -> Photo | None:
        try:
            size = path.stat().st_size
        except OSError as ex:
            logger.warning("Skipping unreadable file {}: {}", path, ex)
            return None
        return Photo(
            photo_id=photo_id_for_path(str(path)),
            path=str(path),
            filename=path.name,
            size=size,
            date_taken=read_capture_time(str(path)),
        )
