"""Asset reconciliation and deduplication engine for an append-only remote media store."""

__version__ = "1.0.0"
