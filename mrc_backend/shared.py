"""Backend-facing alias for shared utilities.

Backend modules import everything shared through this module so the
`mrc_shared` package can move without touching every feature.
"""

from __future__ import annotations

import mrc_shared as _root_shared

Result = _root_shared.Result
ErrorCode = _root_shared.ErrorCode
get_logger = _root_shared.get_logger
log_success = _root_shared.log_success
log_structured = _root_shared.log_structured
run_id_var = _root_shared.run_id_var
sanitize_error_message = _root_shared.sanitize_error_message
AssetFamily = _root_shared.AssetFamily
ReferenceKind = _root_shared.ReferenceKind
RemovalReason = _root_shared.RemovalReason
Verdict = _root_shared.Verdict
ms = _root_shared.ms
parse_iso_ms = _root_shared.parse_iso_ms
timer = _root_shared.timer

__all__ = [
    "Result",
    "ErrorCode",
    "get_logger",
    "log_success",
    "log_structured",
    "run_id_var",
    "sanitize_error_message",
    "AssetFamily",
    "ReferenceKind",
    "RemovalReason",
    "Verdict",
    "ms",
    "parse_iso_ms",
    "timer",
]
