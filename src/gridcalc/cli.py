"""Command-line interface for gridcalc."""

from __future__ import annotations

import json
from pathlib import Path

import click

from gridcalc import __version__
from gridcalc.sheet import format_value


@click.group()
@click.version_option(version=__version__, prog_name="gridcalc")
def main() -> None:
    """gridcalc -- evaluate spreadsheet cell formulas."""


# ---------------------------------------------------------------------------
# helpers
# ---------------------------------------------------------------------------


def _load_sheet_or_fail(path: str, config: dict | None = None):
    from gridcalc.formulas.errors import FormulaError
    from gridcalc.logging import SHEET_LOAD_ERROR, EventType, emit_error
    from gridcalc.project import load_sheet

    try:
        return load_sheet(Path(path), config)
    except (FormulaError, ValueError, OSError) as e:
        emit_error(
            EventType.sheet_load_failed,
            str(e),
            {"path": str(path)},
            error_code=SHEET_LOAD_ERROR,
        )
        raise click.ClickException(str(e))


# ---------------------------------------------------------------------------
# Eval
# ---------------------------------------------------------------------------


@main.command("eval")
@click.argument("formula")
@click.option("--sheet", "sheet_file", default=None, type=click.Path(exists=True), help="Resolve cell references against a sheet YAML file.")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON.")
def eval_cmd(formula: str, sheet_file: str | None, as_json: bool) -> None:
    """Evaluate a single FORMULA, e.g. "=A1 * (2 + 3)"."""
    from gridcalc.calculation import SheetCalculator
    from gridcalc.formulas import FormulaParseError, evaluate_formula, tokenize
    from gridcalc.sheet import SheetMemory

    try:
        tokens = tokenize(formula)
    except FormulaParseError as e:
        raise click.ClickException(str(e))

    if sheet_file:
        memory = _load_sheet_or_fail(sheet_file)
        SheetCalculator(memory).recalculate()
    else:
        memory = SheetMemory()

    outcome = evaluate_formula(tokens, memory)
    if as_json:
        click.echo(json.dumps({"tokens": tokens, **outcome.to_json_dict()}, allow_nan=False))
        return
    click.echo(format_value(outcome.result, 10))
    if outcome.error:
        click.echo(f"error: {outcome.error}")


# ---------------------------------------------------------------------------
# Sheet
# ---------------------------------------------------------------------------


@main.command("sheet")
@click.argument("sheet_file", type=click.Path(exists=True))
@click.option("--project", "project_dir", default=None, type=click.Path(exists=True, file_okay=False), help="Project directory for config and event log.")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON.")
def sheet_cmd(sheet_file: str, project_dir: str | None, as_json: bool) -> None:
    """Load SHEET_FILE, recalculate every formula and print the results."""
    from gridcalc.calculation import SheetCalculator
    from gridcalc.logging import set_project_dir
    from gridcalc.project import DEFAULT_CONFIG, load_project_config

    config = dict(DEFAULT_CONFIG)
    if project_dir:
        config = load_project_config(Path(project_dir))
        set_project_dir(Path(project_dir))

    memory = _load_sheet_or_fail(sheet_file, config)
    results = SheetCalculator(memory).recalculate()
    precision = int(config.get("display_precision", 10))

    if as_json:
        out = {
            label: {
                "formula": memory.get_cell_by_label(label).formula_text(),
                **outcome.to_json_dict(),
            }
            for label, outcome in results.items()
        }
        click.echo(json.dumps(out, indent=2, allow_nan=False))
        return

    if not results:
        click.echo("No formulas found.")
        return

    for cell in memory.cells():
        if cell.label not in results:
            continue
        line = f"{cell.label:6s} {format_value(cell.value, precision):>14s}  = {cell.formula_text()}"
        if cell.error:
            line += f"  [{cell.error}]"
        click.echo(line)


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------


@main.command("events")
@click.argument("directory", type=click.Path(exists=True))
@click.option("--level", default=None, type=click.Choice(["info", "warning", "error"]), help="Filter by level.")
@click.option("--type", "event_type", default=None, help="Filter by event type.")
@click.option("--label", default=None, help="Filter by cell label.")
@click.option("--limit", default=100, type=int, help="Maximum events to show.")
def events_cmd(
    directory: str,
    level: str | None,
    event_type: str | None,
    label: str | None,
    limit: int,
) -> None:
    """Show structured event log for DIRECTORY."""
    from gridcalc.logging.sink import EventSink

    sink = EventSink(Path(directory))
    events = sink.read_global(
        level=level,
        event_type=event_type,
        label=label,
        limit=limit,
    )

    if not events:
        click.echo("No events found.")
        return

    for evt in events:
        ts = evt.get("ts", "")
        lvl = evt.get("level", "").upper()
        etype = evt.get("event_type", "")
        msg = evt.get("message", "")
        err = evt.get("error_code")
        line = f"[{ts}] {lvl:7s} {etype}: {msg}"
        if err:
            line += f"  ({err})"
        click.echo(line)
