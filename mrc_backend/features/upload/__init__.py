"""Upload pipeline and legacy reference migration."""
from .migration import MigrationSummary, ReferenceMigrator
from .pipeline import ContentProbe, UploadedAsset, UploadPipeline, probe_image

__all__ = [
    "ContentProbe",
    "MigrationSummary",
    "ReferenceMigrator",
    "UploadPipeline",
    "UploadedAsset",
    "probe_image",
]
