"""Remote media store adapters."""
from .base import ListPage, RemoteStore, normalize_resource
from .cloudinary import CloudinaryStore

__all__ = ["ListPage", "RemoteStore", "CloudinaryStore", "normalize_resource"]
