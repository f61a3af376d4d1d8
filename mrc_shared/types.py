"""
Shared types, enums, and constants.
"""
from enum import Enum
from typing import Literal

# Identity families produced by the asset name parser
AssetFamily = Literal["entity-scoped", "sequence-scoped", "fallback"]

# Shapes a stored reference value can take
ReferenceKind = Literal["remote", "inline", "local", "external"]

# Why a duplicate group member is slated for removal
RemovalReason = Literal["duplicate-of-used", "unused"]

# Health classification of a recorded URL
Verdict = Literal["healthy", "remote-404", "unknown"]


class ErrorCode(str, Enum):
    """Standardized error codes (string enum)."""

    # Client / validation
    INVALID_INPUT = "INVALID_INPUT"
    NOT_FOUND = "NOT_FOUND"
    CONFIG_MISSING = "CONFIG_MISSING"

    # Server / infrastructure
    DB_ERROR = "DB_ERROR"
    TIMEOUT = "TIMEOUT"
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"
    REMOTE_ERROR = "REMOTE_ERROR"

    # Reconciliation
    SCAN_FAILED = "SCAN_FAILED"
    DELETE_FAILED = "DELETE_FAILED"
    UPLOAD_FAILED = "UPLOAD_FAILED"

    # Parsing
    PARSE_ERROR = "PARSE_ERROR"
