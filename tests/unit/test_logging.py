from __future__ import annotations

import json
import logging
import sys
from typing import Any

import pytest

from gsi_manager.logging import CloudWatchFormatter, handler_logging


def _record(**extra: object) -> logging.LogRecord:
    record = logging.LogRecord(
        name="gsi_manager.sequencer",
        level=logging.INFO,
        pathname="/var/task/gsi_manager/sequencer.py",
        lineno=42,
        msg="started %s %s",
        args=("CREATE", "GSI1"),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def _payload(line: str) -> dict[str, Any]:
    _, _, data = line.partition(" Data: ")
    return json.loads(data)


def test_cloudwatch_formatter_emits_json_line() -> None:
    line = CloudWatchFormatter().format(_record(table="tbl", index="GSI1", aws_request_id="req-1"))

    assert line.startswith("INFO RequestId: req-1 Data: ")
    payload = _payload(line)
    assert payload["message"] == "started CREATE GSI1"
    assert payload["logger"] == "gsi_manager.sequencer"
    assert payload["sourceFile"] == "gsi_manager/sequencer.py"
    assert payload["sourceLine"] == 42
    assert payload["table"] == "tbl"
    assert payload["index"] == "GSI1"
    assert "request_type" not in payload


def test_cloudwatch_formatter_includes_exception_lines() -> None:
    try:
        raise RuntimeError("boom")
    except RuntimeError:
        record = logging.LogRecord(
            name="gsi_manager",
            level=logging.ERROR,
            pathname="handlers.py",
            lineno=1,
            msg="failed",
            args=None,
            exc_info=sys.exc_info(),
        )

    payload = _payload(CloudWatchFormatter().format(record))

    assert payload["requestId"] is None
    assert payload["sourceFile"] == "handlers.py"
    assert any("RuntimeError: boom" in line for line in payload["exceptionInfo"])


def test_handler_logging_logs_and_reraises(caplog: pytest.LogCaptureFixture) -> None:
    @handler_logging
    def fails(event: object, context: object) -> None:
        raise ValueError(f"bad event {event}")

    with pytest.raises(ValueError, match="bad event 1"):
        fails(1, None)

    assert any(r.levelno == logging.ERROR and r.getMessage() == "bad event 1" for r in caplog.records)


def test_handler_logging_passes_results_through() -> None:
    @handler_logging
    def ok(event: dict[str, int], context: object) -> int:
        _ = context
        return event["value"]

    assert ok({"value": 3}, None) == 3
    assert ok.__name__ == "ok"
