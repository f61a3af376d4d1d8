"""Remote inventory enumeration."""
from .scanner import RemoteAsset, RemoteInventoryScanner

__all__ = ["RemoteAsset", "RemoteInventoryScanner"]
