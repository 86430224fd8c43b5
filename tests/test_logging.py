import io
import logging
import sys

import orjson
import pytest

from utils.logging import JsonFormatter, get_logger, setup_logging


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    for handler in list(root.handlers):
        root.removeHandler(handler)
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)


def make_record(**extra) -> logging.LogRecord:
    record = logging.LogRecord("watcher", logging.INFO, __file__, 1, "Snapshot %s", ("captured",), None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_json_formatter_includes_extra_fields() -> None:
    formatter = JsonFormatter(static_fields={"app": "hn-watcher"})

    payload = orjson.loads(formatter.format(make_record(items=30, file_path="/data/x.jl")))

    assert payload["message"] == "Snapshot captured"
    assert payload["level"] == "INFO"
    assert payload["logger"] == "watcher"
    assert payload["app"] == "hn-watcher"
    assert payload["items"] == 30
    assert payload["file_path"] == "/data/x.jl"
    assert "args" not in payload and "msg" not in payload


def test_json_formatter_renders_exceptions() -> None:
    formatter = JsonFormatter()
    try:
        raise ValueError("bad payload")
    except ValueError:
        record = logging.LogRecord("w", logging.ERROR, __file__, 1, "failed", (), sys.exc_info())

    payload = orjson.loads(formatter.format(record))

    assert "ValueError: bad payload" in payload["exc_info"]


def test_json_formatter_stringifies_unknown_types() -> None:
    payload = orjson.loads(JsonFormatter().format(make_record(error=ValueError("x"))))

    assert payload["error"] == "x"


def test_setup_logging_installs_single_stdout_handler(restore_root_logger, monkeypatch) -> None:
    stream = io.StringIO()
    monkeypatch.setattr("sys.stdout", stream)

    setup_logging(level="debug", format_type="text")
    setup_logging(level="debug", format_type="text")
    get_logger("apps.watcher").debug("hello")

    assert len(restore_root_logger.handlers) == 1
    assert restore_root_logger.level == logging.DEBUG
    assert " - apps.watcher - DEBUG - hello" in stream.getvalue()


def test_setup_logging_rejects_unknown_format(restore_root_logger) -> None:
    with pytest.raises(ValueError):
        setup_logging(format_type="xml")
