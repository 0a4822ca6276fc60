# tests/webswitch/core/test_logging.py
from __future__ import annotations
import json
import logging
from types import SimpleNamespace

from webswitch.core.logging import clearLogContext, getLogContext, setLogContext
from webswitch.core.logging import filters
from webswitch.core.logging.filters import RecurringSuppressFilter
from webswitch.core.logging.formatters import DevFormatter, JsonFormatter


def _record(msg: str, *, name: str = "webswitch.test", level: int = logging.INFO) -> logging.LogRecord:
    return logging.LogRecord(name, level, __file__, 1, msg, None, None)

# ----------------------------------------
# Context
# ----------------------------------------

def test_logContext_mergesAndIgnoresNone() -> None:
    clearLogContext()
    setLogContext(operation="activate", package=None)
    setLogContext(package="MCA")
    assert getLogContext() == {"operation": "activate", "package": "MCA"}
    clearLogContext()
    assert getLogContext() is None

# ----------------------------------------
# Formatters
# ----------------------------------------

def test_devFormatter_appendsContext() -> None:
    setLogContext(operation="activate", environment="/srv/PeekVri_UK_1")
    try:
        line = DevFormatter().format(_record("Backup created"))
    finally:
        clearLogContext()
    assert "INFO: [webswitch.test] Backup created" in line
    assert line.endswith("[activate//srv/PeekVri_UK_1]")


def test_jsonFormatter_emitsOneJsonObject() -> None:
    setLogContext(package="Swarco")
    try:
        payload = json.loads(JsonFormatter().format(_record("Added package")))
    finally:
        clearLogContext()
    assert payload["msg"] == "Added package"
    assert payload["level"] == "info"
    assert payload["ctx"] == {"package": "Swarco"}

# ----------------------------------------
# RecurringSuppressFilter
# ----------------------------------------

def test_recurringSuppressFilter_dropsAfterLimit() -> None:
    flt = RecurringSuppressFilter(windowSeconds=60, maxPerWindow=2)
    results = [flt.filter(_record("Active fingerprint: (missing content folder)")) for _ in range(5)]
    assert results == [True, True, False, False, False]
    # Different message has its own bucket
    assert flt.filter(_record("other")) is True


def test_recurringSuppressFilter_summaryRecordsPass() -> None:
    flt = RecurringSuppressFilter(maxPerWindow=1)
    record = _record("x")
    record._noRecurringSuppress = True
    assert all(flt.filter(record) for _ in range(3))


def test_recurringSuppressFilter_evictsKeysOutsideWindow(monkeypatch) -> None:
    clock = [1000.0]
    monkeypatch.setattr(filters, "time", SimpleNamespace(monotonic=lambda: clock[0]))
    flt = RecurringSuppressFilter(windowSeconds=10, maxPerWindow=1)

    for idx in range(50):
        flt.filter(_record(f"Hashing content folder #{idx}"))
    flt.filter(_record("flooding"))
    assert flt.filter(_record("flooding")) is False
    assert len(flt._buckets) == 51

    clock[0] += 11
    assert flt.filter(_record("latest")) is True

    assert list(flt._buckets) == [("webswitch.test", logging.INFO, "latest")]
    assert dict(flt._suppressedCounts) == {}
