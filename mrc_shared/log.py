"""
Reconciler logging: one prefixed line per record, tagged with the current run id.
"""
import json
import logging
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any

PREFIX = "🧹 Reconciler"
SUCCESS_LEVEL = 25

LEVEL_MARKS = {
    "DEBUG": "🔍",
    "INFO": "ℹ️",
    "SUCCESS": "✅",
    "WARNING": "⚠️",
    "ERROR": "❌",
    "CRITICAL": "🔥",
}

# Set by each report or cleanup run.
run_id_var: ContextVar[str] = ContextVar("run_id", default="")

logging.addLevelName(SUCCESS_LEVEL, "SUCCESS")


class CorrelationFilter(logging.Filter):
    """Copy the active run id onto the record as `run_id`."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.run_id = run_id_var.get()
        return True


class EmojiFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        mark = LEVEL_MARKS.get(record.levelname, "🧹")
        run_id = getattr(record, "run_id", "")
        run_part = f" [{run_id}]" if run_id else ""
        line = f"{PREFIX} [{mark}] {record.name}{run_part}: {record.getMessage()}"
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


def get_logger(name: str) -> logging.Logger:
    """
    Logger under the `reconciler.` namespace.

    `mrc_backend.features.reconcile.service` becomes
    `reconciler.features.reconcile.service`. The handler is attached once.
    """
    head, _, rest = name.partition(".")
    if head in ("mrc_backend", "mrc_shared") and rest:
        name = rest
    logger = logging.getLogger(f"reconciler.{name}")
    if not any(isinstance(f, CorrelationFilter) for f in logger.filters):
        logger.addFilter(CorrelationFilter())
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(EmojiFormatter())
        logger.addHandler(handler)
        logger.setLevel(logging.INFO)
    return logger


def log_success(logger: logging.Logger, message: str) -> None:
    logger.log(SUCCESS_LEVEL, message)


def log_structured(logger: logging.Logger, level: int, message: str, **context: Any) -> None:
    """Emit `{"message", "timestamp", "context"}` as one JSON line."""
    payload = {
        "message": message,
        "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        "context": context,
    }
    logger.log(level, json.dumps(payload, ensure_ascii=False, default=str))
