# Copyright (c) 2026 TableFSM Contributors. All Rights Reserved.
"""Unit tests for structured logging."""

import io
import json
import logging

import pytest

from table_fsm import build_table
from table_fsm.core.logging import StructuredFormatter, setup_logging

from conftest import Door, door_descriptor


@pytest.fixture
def fsm_log_stream():
    stream = io.StringIO()
    setup_logging("DEBUG", stream=stream)
    yield stream
    root = logging.getLogger("fsm")
    root.handlers.clear()
    root.setLevel(logging.NOTSET)


def _records(stream: io.StringIO) -> list:
    return [json.loads(line) for line in stream.getvalue().splitlines()]


class TestStructuredFormatter:
    def test_format_basic(self):
        record = logging.LogRecord("fsm.entry", logging.INFO, __file__, 1, "hello %s", ("world",), None)
        entry = json.loads(StructuredFormatter().format(record))
        assert entry["level"] == "INFO"
        assert entry["module"] == "fsm.entry"
        assert entry["message"] == "hello world"
        assert "state" not in entry

    def test_format_context(self):
        record = logging.LogRecord("fsm.entry", logging.DEBUG, __file__, 1, "step", (), None)
        record.state = "Closed"
        record.event = "Open"
        record.ret_code = 0
        entry = json.loads(StructuredFormatter().format(record))
        assert entry["state"] == "Closed"
        assert entry["event"] == "Open"
        assert entry["ret_code"] == 0


class TestSetupLogging:
    def test_build_and_transit_are_logged(self, fsm_log_stream):
        table = build_table(door_descriptor())
        door = Door("d")
        door.entry = table.new_entry(door)
        door.entry.transit("Open")
        door.entry.transit("Jump")

        records = _records(fsm_log_stream)
        modules = {r["module"] for r in records}
        assert {"fsm.builder", "fsm.entry"} <= modules

        built = [r for r in records if r["message"].startswith("Built FSM table")]
        assert len(built) == 1

        step = next(r for r in records if r["message"].startswith("FSM transition"))
        assert step["state"] == "Closed"
        assert step["event"] == "Open"
        assert step["next_state"] == "Opened"
        assert step["handler"] == "conftest.open_door"

        invalid = next(r for r in records if r["message"].startswith("FSM invalid event"))
        assert invalid["level"] == "WARNING"
        assert invalid["event"] == "Jump"

    def test_level_from_argument(self, fsm_log_stream):
        setup_logging("WARNING", stream=fsm_log_stream)
        assert logging.getLogger("fsm").level == logging.WARNING
