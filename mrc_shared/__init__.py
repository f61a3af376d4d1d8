"""Shared utilities for the media reconciler."""
from .errors import sanitize_error_message
from .log import get_logger, log_structured, log_success, run_id_var
from .result import Result
from .time import ms, now, parse_iso_ms, timer
from .types import AssetFamily, ErrorCode, ReferenceKind, RemovalReason, Verdict

__all__ = [
    "Result",
    "get_logger",
    "log_success",
    "log_structured",
    "run_id_var",
    "now",
    "ms",
    "parse_iso_ms",
    "timer",
    "ErrorCode",
    "AssetFamily",
    "ReferenceKind",
    "RemovalReason",
    "Verdict",
    "sanitize_error_message",
]
