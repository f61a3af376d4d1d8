"""Report and cleanup runs."""
from .report import ReconciliationReport, public_id_list, removal_list, render_report_lines
from .service import CleanupSummary, Reconciler

__all__ = [
    "CleanupSummary",
    "ReconciliationReport",
    "Reconciler",
    "public_id_list",
    "removal_list",
    "render_report_lines",
]
