"""Tests for the gridcalc structured event logging system."""

from __future__ import annotations

import json
from pathlib import Path

import pytest


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def project_dir(tmp_path: Path) -> Path:
    """Create a minimal project directory."""
    (tmp_path / "logs").mkdir()
    return tmp_path


@pytest.fixture
def sink(project_dir: Path):
    from gridcalc.logging.sink import EventSink

    return EventSink(project_dir)


@pytest.fixture(autouse=True)
def _reset_sink():
    from gridcalc.logging import clear_project_dir

    yield
    clear_project_dir()


# ---------------------------------------------------------------------------
# A) Event schema
# ---------------------------------------------------------------------------


class TestGridcalcEvent:
    def test_event_defaults(self):
        from gridcalc.logging.events import EventLevel, EventType, GridcalcEvent

        evt = GridcalcEvent(
            level=EventLevel.info,
            event_type=EventType.cell_evaluated,
            message="hello",
        )
        assert evt.schema_version == 1
        assert evt.ts.endswith("Z")
        assert evt.level == "info"
        assert evt.event_type == "cell_evaluated"
        assert evt.context == {}
        assert evt.error_code is None

    def test_make_cell_event(self):
        from gridcalc.logging.events import EventLevel, EventType, make_cell_event

        evt = make_cell_event(
            EventType.cell_error,
            EventLevel.warning,
            "B1: DivideByZero",
            label="B1",
            formula=["1", "/", "0"],
            result=float("inf"),
            error="DivideByZero",
            error_code="formula_eval_error",
        )
        assert evt.context["label"] == "B1"
        assert evt.context["formula"] == ["1", "/", "0"]
        assert evt.context["error"] == "DivideByZero"
        assert evt.error_code == "formula_eval_error"

    def test_make_cell_event_omits_empty_fields(self):
        from gridcalc.logging.events import EventLevel, EventType, make_cell_event

        evt = make_cell_event(EventType.cell_evaluated, EventLevel.info, "ok", label="A1")
        assert evt.context == {"label": "A1"}


# ---------------------------------------------------------------------------
# B) Sink
# ---------------------------------------------------------------------------


class TestEventSink:
    def test_write_appends_ndjson(self, sink, project_dir: Path):
        from gridcalc.logging.events import EventLevel, EventType, GridcalcEvent

        for i in range(3):
            sink.write(GridcalcEvent(
                level=EventLevel.info,
                event_type=EventType.cell_evaluated,
                message=f"evt {i}",
            ))
        lines = (project_dir / "logs" / "events.ndjson").read_text().splitlines()
        assert len(lines) == 3
        first = json.loads(lines[0])
        assert first["message"] == "evt 0"
        assert first["level"] == "info"
        assert first["event_type"] == "cell_evaluated"

    def test_read_most_recent_first_with_limit(self, sink):
        from gridcalc.logging.events import EventLevel, EventType, GridcalcEvent

        for i in range(5):
            sink.write(GridcalcEvent(
                level=EventLevel.info,
                event_type=EventType.cell_evaluated,
                message=f"evt {i}",
            ))
        events = sink.read_global(limit=2)
        assert [e["message"] for e in events] == ["evt 4", "evt 3"]

    def test_filters(self, sink):
        from gridcalc.logging.events import EventLevel, EventType, make_cell_event

        sink.write(make_cell_event(EventType.cell_evaluated, EventLevel.info, "a", label="A1"))
        sink.write(make_cell_event(EventType.cell_error, EventLevel.warning, "b", label="B1"))

        assert [e["message"] for e in sink.read_global(level="warning")] == ["b"]
        assert [e["message"] for e in sink.read_global(event_type="cell_evaluated")] == ["a"]
        assert [e["message"] for e in sink.read_global(label="b1")] == ["b"]

    def test_corrupt_lines_skipped(self, sink, project_dir: Path):
        from gridcalc.logging.events import EventLevel, EventType, GridcalcEvent

        sink.write(GridcalcEvent(level=EventLevel.info, event_type=EventType.recalc_completed))
        with open(project_dir / "logs" / "events.ndjson", "a") as f:
            f.write("{not json\n")
        assert len(sink.read_global()) == 1

    def test_tail_read_bounds_memory(self, project_dir: Path):
        from gridcalc.logging.events import EventLevel, EventType, GridcalcEvent
        from gridcalc.logging.sink import EventSink

        small = EventSink(project_dir, tail_bytes=600)
        for i in range(50):
            small.write(GridcalcEvent(
                level=EventLevel.info,
                event_type=EventType.cell_evaluated,
                message=f"evt {i}",
            ))
        events = small.read_global(limit=2000)
        assert 0 < len(events) < 50
        assert events[0]["message"] == "evt 49"

    def test_missing_log_reads_empty(self, tmp_path: Path):
        from gridcalc.logging.sink import EventSink

        assert EventSink(tmp_path / "fresh").read_global() == []

    def test_reading_does_not_create_log_dir(self, tmp_path: Path):
        from gridcalc.logging.sink import EventSink

        sink = EventSink(tmp_path)
        assert sink.read_global() == []
        assert not (tmp_path / "logs").exists()

    def test_first_write_creates_log_dir(self, tmp_path: Path):
        from gridcalc.logging.events import EventLevel, EventType, GridcalcEvent
        from gridcalc.logging.sink import EventSink

        sink = EventSink(tmp_path)
        sink.write(GridcalcEvent(level=EventLevel.info, event_type=EventType.recalc_started))
        assert (tmp_path / "logs" / "events.ndjson").exists()

    def test_non_finite_result_written_as_string(self, sink, project_dir: Path):
        from gridcalc.logging.events import EventLevel, EventType, make_cell_event

        sink.write(make_cell_event(
            EventType.cell_error,
            EventLevel.warning,
            "B1: DivideByZero",
            label="B1",
            result=float("inf"),
            error="DivideByZero",
        ))
        raw = (project_dir / "logs" / "events.ndjson").read_text()
        assert "Infinity" in raw
        assert sink.read_global()[0]["context"]["result"] == "Infinity"


# ---------------------------------------------------------------------------
# C) Module-level emit
# ---------------------------------------------------------------------------


class TestEmit:
    def test_emit_without_sink_is_noop(self, project_dir: Path):
        from gridcalc.logging import EventType, emit_info

        emit_info(EventType.recalc_completed, "nothing configured")
        assert not (project_dir / "logs" / "events.ndjson").exists()

    def test_emit_after_set_project_dir(self, project_dir: Path):
        from gridcalc.logging import EventSink, EventType, emit_error, set_project_dir

        set_project_dir(project_dir)
        emit_error(EventType.cell_error, "boom", {"label": "A1"}, error_code="formula_eval_error")
        events = EventSink(project_dir).read_global()
        assert events[0]["level"] == "error"
        assert events[0]["error_code"] == "formula_eval_error"

    def test_set_project_dir_reads_config(self, project_dir: Path):
        from gridcalc.logging import events as ev

        (project_dir / "gridcalc.yaml").write_text("logging_fsync: true\nlogging_tail_bytes: 1024\n")
        ev.set_project_dir(project_dir)
        assert ev._sink._fsync is True
        assert ev._sink._tail_bytes == 1024

    def test_emit_never_raises(self, capsys):
        from gridcalc.logging import events as ev

        class _BrokenSink:
            def write(self, event):
                raise OSError("disk full")

        ev._sink = _BrokenSink()
        ev._last_stderr_ts = 0.0
        ev.emit_warning(ev.EventType.cell_error, "will fail")
        assert "logging failed" in capsys.readouterr().err
