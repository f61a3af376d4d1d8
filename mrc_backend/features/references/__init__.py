"""Reference discovery across document collections."""
from .classify import classify_reference, extract_asset_id, is_remote_url
from .scanner import LiveReference, LiveReferenceScanner
from .sources import ALL_SOURCES, RECONCILE_SOURCES, ReferenceSource, source_by_name

__all__ = [
    "ALL_SOURCES",
    "RECONCILE_SOURCES",
    "LiveReference",
    "LiveReferenceScanner",
    "ReferenceSource",
    "classify_reference",
    "extract_asset_id",
    "is_remote_url",
    "source_by_name",
]
