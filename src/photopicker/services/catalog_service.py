from __future__ import annotations

from loguru import logger

from photopicker.domain.models import Photo
from photopicker.ports.photo_source_port import PhotoSourcePort
from photopicker.ports.storage_port import StoragePort


class PhotoCatalogService:
    def __init__(
        self,
        source: PhotoSourcePort,
        storage: StoragePort,
        source_roots: list[str],
        archive_root: str | None = None,
    ) -> None:
        self._source = source
        self._storage = storage
        self._source_roots = list(source_roots)
        self._archive_root = archive_root

    def refresh(self) -> list[Photo]:
        exclude = [self._archive_root] if self._archive_root else []
        photos = self._source.list_photos(self._source_roots, exclude=exclude)
        self._storage.save_photos(photos)
        logger.info("Catalog refreshed with {} photos", len(photos))
        return photos

    def list_photos(self) -> list[Photo]:
        return self._storage.list_photos()

    def get_photo(self, photo_id: str) -> Photo | None:
        return self._storage.get_photo(photo_id)
