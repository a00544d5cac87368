"""Structured event logging for gridcalc.

Provides a unified event schema, filesystem NDJSON sink, and safe
emit helpers that never raise uncaught exceptions.
"""

from gridcalc.logging.events import (
    FORMULA_EVAL_ERROR,
    FORMULA_PARSE_ERROR,
    SHEET_LOAD_ERROR,
    EventLevel,
    EventType,
    GridcalcEvent,
    clear_project_dir,
    emit,
    emit_error,
    emit_info,
    emit_warning,
    make_cell_event,
    set_project_dir,
)
from gridcalc.logging.sink import EventSink

__all__ = [
    "FORMULA_EVAL_ERROR",
    "FORMULA_PARSE_ERROR",
    "SHEET_LOAD_ERROR",
    "EventLevel",
    "EventSink",
    "EventType",
    "GridcalcEvent",
    "clear_project_dir",
    "emit",
    "emit_error",
    "emit_info",
    "emit_warning",
    "make_cell_event",
    "set_project_dir",
]
