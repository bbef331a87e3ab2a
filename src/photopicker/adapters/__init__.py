from .local_filesystem import LocalFileSystemAdapter
from .local_photo_source import LocalPhotoSource
from .sqlite_storage import SQLiteStorage

__all__ = ["LocalFileSystemAdapter", "LocalPhotoSource", "SQLiteStorage"]
