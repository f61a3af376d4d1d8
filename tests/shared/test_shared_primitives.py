"""
Tests for mrc_shared: result.py, errors.py, time.py, log.py.
"""
from __future__ import annotations

import json
import logging
from enum import Enum

import pytest

from mrc_shared import errors as errors_mod
from mrc_shared import log as log_mod
from mrc_shared import result as result_mod
from mrc_shared import time as time_mod
from mrc_shared.types import ErrorCode


# ─── result.py ─────────────────────────────────────────────────────────────


class _EC(Enum):
    NOT_FOUND = "NOT_FOUND"


def test_result_err_with_enum_code():
    r = result_mod.Result.Err(_EC.NOT_FOUND, "asset missing")
    assert not r.ok
    assert r.code == "NOT_FOUND"
    assert r.error == "asset missing"


def test_result_err_with_error_code_and_meta():
    r = result_mod.Result.Err(ErrorCode.SCAN_FAILED, "boom", pages=2)
    assert r.code == "SCAN_FAILED"
    assert r.meta == {"pages": 2}


def test_result_map_and_unwrap():
    r = result_mod.Result.Ok(5, source="x")
    mapped = r.map(lambda x: x * 2)
    assert mapped.ok and mapped.data == 10
    assert mapped.meta == {"source": "x"}
    assert mapped.unwrap() == 10


def test_result_unwrap_error_raises():
    r = result_mod.Result.Err("DB_ERROR", "nope")
    with pytest.raises(ValueError, match="DB_ERROR"):
        r.unwrap()
    assert r.unwrap_or(3) == 3


# ─── errors.py ─────────────────────────────────────────────────────────────


def test_sanitize_masks_credentials():
    msg = errors_mod.sanitize_error_message("POST failed api_key=abc&signature=deadbeef", "Upload failed")
    assert "abc" not in msg
    assert "deadbeef" not in msg
    assert msg.startswith("Upload failed:")


def test_sanitize_masks_paths():
    msg = errors_mod.sanitize_error_message("cannot open /var/data/uploads/a.jpg", "Read failed")
    assert "/var/data" not in msg
    assert "[path]" in msg


def test_sanitize_empty_uses_fallback():
    assert errors_mod.sanitize_error_message(None, "Oops") == "Oops"
    assert errors_mod.sanitize_error_message("", "") == "An error occurred"


# ─── time.py ───────────────────────────────────────────────────────────────


def test_parse_iso_ms_utc_suffix():
    assert time_mod.parse_iso_ms("1970-01-01T00:00:01Z") == 1000


def test_parse_iso_ms_invalid_is_zero():
    assert time_mod.parse_iso_ms("") == 0
    assert time_mod.parse_iso_ms(None) == 0
    assert time_mod.parse_iso_ms("yesterday") == 0


def test_ms_returns_int():
    v = time_mod.ms()
    assert isinstance(v, int) and v > 0


# ─── log.py ────────────────────────────────────────────────────────────────


def test_log_structured_emits_json(caplog):
    log = logging.getLogger("test_structured")
    with caplog.at_level(logging.INFO, logger="test_structured"):
        log_mod.log_structured(log, logging.INFO, "reconcile.report", groups=3)
    payload = json.loads(caplog.records[-1].message)
    assert payload["message"] == "reconcile.report"
    assert payload["context"] == {"groups": 3}


def test_correlation_filter_attaches_run_id():
    token = log_mod.run_id_var.set("abc123")
    try:
        record = logging.LogRecord("x", logging.INFO, __file__, 1, "hello", None, None)
        assert log_mod.CorrelationFilter().filter(record) is True
        assert record.run_id == "abc123"
        line = log_mod.EmojiFormatter().format(record)
        assert "[abc123]" in line and "hello" in line
    finally:
        log_mod.run_id_var.reset(token)


def test_get_logger_strips_package_prefix():
    logger = log_mod.get_logger("mrc_backend.features.reconcile.service")
    assert logger.name == "reconciler.features.reconcile.service"


def test_log_success_uses_success_level(caplog):
    log = logging.getLogger("test_success")
    with caplog.at_level(logging.INFO, logger="test_success"):
        log_mod.log_success(log, "done")
    record = caplog.records[-1]
    assert record.levelname == "SUCCESS"
    assert "[✅]" in log_mod.EmojiFormatter().format(record)
