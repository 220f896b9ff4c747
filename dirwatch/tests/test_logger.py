from __future__ import annotations

import json
import logging
from pathlib import Path

from dirwatch.logger import configure_logging, log_event
from dirwatch.watcher.sink import LoggingReportSink
from dirwatch.watcher.types import ChangeEvent, EventKind


def read_payloads(logger: logging.Logger, log_file: Path) -> list[dict]:
    for handler in logger.handlers:
        handler.flush()
    return [json.loads(line) for line in log_file.read_text(encoding="utf-8").splitlines()]


def test_log_event_sanitizes_home_directory(tmp_path: Path) -> None:
    log_file = tmp_path / "dirwatch.log"
    logger = configure_logging(log_file, level=logging.INFO)
    sensitive_path = Path.home() / "Documents" / "secret.txt"

    log_event(
        logger,
        level=logging.INFO,
        action="test",
        message="Processing",
        path=sensitive_path,
        handle=3,
    )

    payload = read_payloads(logger, log_file)[-1]
    assert payload["path"].startswith("~/")
    assert payload["handle"] == 3
    assert payload["action"] == "test"
    assert payload["level"] == "INFO"


def test_log_event_respects_level(tmp_path: Path) -> None:
    log_file = tmp_path / "dirwatch.log"
    logger = configure_logging(log_file, level=logging.INFO)

    log_event(logger, level=logging.DEBUG, action="hidden", message="not written")
    log_event(logger, level=logging.INFO, action="shown", message="written")

    assert [payload["action"] for payload in read_payloads(logger, log_file)] == ["shown"]


def test_logging_report_sink_writes_change_records(tmp_path: Path) -> None:
    log_file = tmp_path / "dirwatch.log"
    logger = configure_logging(log_file, level=logging.INFO)
    sink = LoggingReportSink(logging.getLogger("dirwatch.report"))

    sink.report(ChangeEvent(EventKind.CREATED, tmp_path / "sub", True))
    sink.report(ChangeEvent(EventKind.OVERFLOW, tmp_path, True))
    sink.milestone("loop.exhausted", "Nothing left to watch")

    payloads = read_payloads(logger, log_file)
    assert [payload["action"] for payload in payloads] == [
        "event.change",
        "event.overflow",
        "loop.exhausted",
    ]
    assert payloads[0]["kind"] == "CREATED"
    assert payloads[0]["is_directory"] is True
    assert payloads[0]["message"].endswith("[DIRECTORY]")
