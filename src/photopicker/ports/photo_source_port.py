from __future__ import annotations

from typing import Protocol

from photopicker.domain.models import Photo


class PhotoSourcePort(Protocol):
    def list_photos(self, source_roots: list[str], exclude: list[str] | None = None) -> list[Photo]:
        """Return photos found under the source roots in stable order."""
