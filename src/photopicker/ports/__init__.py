from .filesystem_port import FileSystemPort
from .photo_source_port import PhotoSourcePort
from .storage_port import StoragePort

__all__ = ["FileSystemPort", "PhotoSourcePort", "StoragePort"]
