"""Unified event schema and module-level emit helpers.

All timestamps use UTC ISO-8601 with ``Z`` suffix.  The ``emit()``
family of functions is safe to call from any context -- failures are
swallowed and printed to stderr.
"""

from __future__ import annotations

import math
import sys
import time
import traceback
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class EventLevel(str, Enum):
    info = "info"
    warning = "warning"
    error = "error"


class EventType(str, Enum):
    # Cell evaluation
    cell_evaluated = "cell_evaluated"
    cell_error = "cell_error"
    formula_rejected = "formula_rejected"

    # Sheet files
    sheet_load_failed = "sheet_load_failed"

    # Recalculation
    recalc_started = "recalc_started"
    recalc_completed = "recalc_completed"


# ---------------------------------------------------------------------------
# Error codes
# ---------------------------------------------------------------------------

FORMULA_EVAL_ERROR = "formula_eval_error"
FORMULA_PARSE_ERROR = "formula_parse_error"
SHEET_LOAD_ERROR = "sheet_load_error"


# ---------------------------------------------------------------------------
# Event model
# ---------------------------------------------------------------------------


def _utc_now() -> str:
    """Return current UTC timestamp in ISO-8601 with Z suffix."""
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%fZ")


class GridcalcEvent(BaseModel):
    """A single structured log event."""

    schema_version: int = 1
    ts: str = Field(default_factory=_utc_now)
    level: EventLevel
    event_type: EventType
    context: dict[str, Any] = Field(default_factory=dict)
    message: str = ""
    error_code: str | None = None


def _non_finite_str(value: float) -> str:
    if math.isnan(value):
        return "NaN"
    return "Infinity" if value > 0 else "-Infinity"


def make_cell_event(
    event_type: EventType,
    level: EventLevel,
    message: str,
    *,
    label: str,
    formula: list[str] | None = None,
    result: float | None = None,
    error: str | None = None,
    error_code: str | None = None,
) -> GridcalcEvent:
    """Build an event attributed to a single cell."""
    ctx: dict[str, Any] = {"label": label}
    if formula is not None:
        ctx["formula"] = formula
    if result is not None:
        ctx["result"] = result if math.isfinite(result) else _non_finite_str(result)
    if error:
        ctx["error"] = error
    return GridcalcEvent(
        level=level,
        event_type=event_type,
        message=message,
        context=ctx,
        error_code=error_code,
    )


# ---------------------------------------------------------------------------
# Module-level sink reference
# ---------------------------------------------------------------------------

# Lazily initialised when ``set_project_dir`` is called.
_sink: Any = None  # EventSink | None


def set_project_dir(project_dir: Any) -> None:
    """Configure the module-level event sink for a project directory.

    If it is never called, ``emit()`` silently discards events.

    Reads ``logging_fsync`` and ``logging_tail_bytes`` from the project
    config (``gridcalc.yaml``) to configure the sink.
    """
    global _sink
    from pathlib import Path

    from gridcalc.logging.sink import EventSink
    from gridcalc.project import load_project_config

    project_dir = Path(project_dir)
    cfg = load_project_config(project_dir)
    fsync = bool(cfg.get("logging_fsync", False))
    tail_bytes = cfg.get("logging_tail_bytes")
    _sink = EventSink(
        project_dir,
        fsync=fsync,
        tail_bytes=int(tail_bytes) if tail_bytes is not None else None,
    )


def clear_project_dir() -> None:
    """Detach the module-level sink; later events are discarded."""
    global _sink
    _sink = None


def _get_sink() -> Any:
    """Return the module-level sink, or None."""
    return _sink


# ---------------------------------------------------------------------------
# Rate-limited stderr warnings
# ---------------------------------------------------------------------------

_last_stderr_ts: float = 0.0
_STDERR_INTERVAL_SECS = 60.0


def _stderr_warning(msg: str) -> None:
    """Print a warning to stderr, rate-limited to one per 60 seconds."""
    global _last_stderr_ts
    now = time.monotonic()
    if now - _last_stderr_ts < _STDERR_INTERVAL_SECS:
        return
    _last_stderr_ts = now
    try:
        print(f"[gridcalc] {msg}", file=sys.stderr)
    except Exception:
        pass


# ---------------------------------------------------------------------------
# Safe emit helpers
# ---------------------------------------------------------------------------


def emit(event: GridcalcEvent) -> None:
    """Write an event to the project log.

    **Never raises.**  On failure, prints a rate-limited warning to stderr.
    """
    try:
        sink = _get_sink()
        if sink is None:
            return
        sink.write(event)
    except Exception:
        _stderr_warning(f"logging failed: {traceback.format_exc()}")


def emit_info(
    event_type: EventType,
    message: str,
    context: dict[str, Any] | None = None,
) -> None:
    """Convenience: emit an info-level event."""
    emit(
        GridcalcEvent(
            level=EventLevel.info,
            event_type=event_type,
            message=message,
            context=context or {},
        )
    )


def emit_warning(
    event_type: EventType,
    message: str,
    context: dict[str, Any] | None = None,
    *,
    error_code: str | None = None,
) -> None:
    """Convenience: emit a warning-level event."""
    emit(
        GridcalcEvent(
            level=EventLevel.warning,
            event_type=event_type,
            message=message,
            context=context or {},
            error_code=error_code,
        )
    )


def emit_error(
    event_type: EventType,
    message: str,
    context: dict[str, Any] | None = None,
    *,
    error_code: str | None = None,
) -> None:
    """Convenience: emit an error-level event."""
    emit(
        GridcalcEvent(
            level=EventLevel.error,
            event_type=event_type,
            message=message,
            context=context or {},
            error_code=error_code,
        )
    )
