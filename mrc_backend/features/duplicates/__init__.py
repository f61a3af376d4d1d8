"""Duplicate grouping and retention."""
from .grouper import DuplicateGroup, DuplicateGrouper
from .retention import (
    DUPLICATE_OF_USED,
    UNUSED,
    RemovalCandidate,
    RetentionDecision,
    RetentionPolicy,
    decide,
    newest_first,
)

__all__ = [
    "DUPLICATE_OF_USED",
    "UNUSED",
    "DuplicateGroup",
    "DuplicateGrouper",
    "RemovalCandidate",
    "RetentionDecision",
    "RetentionPolicy",
    "decide",
    "newest_first",
]
