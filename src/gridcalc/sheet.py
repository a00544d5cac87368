"""In-memory cell store consumed by the formula evaluator.

A ``SheetMemory`` owns a rectangular grid of ``Cell`` objects addressed by
A1 labels.  Cells are created lazily on first lookup.
"""

from __future__ import annotations

import math
from typing import Any, Iterator, Sequence

from gridcalc.addresses import is_valid_cell_label, make_addr, parse_addr
from gridcalc.formulas.errors import EMPTY_FORMULA, FormulaRefError
from gridcalc.formulas.tokenizer import format_formula, tokenize


class Cell:
    """One cell: its formula tokens, last computed value and error kind.

    A cell that never had a formula carries the ``EmptyFormula`` error.
    """

    def __init__(self, label: str) -> None:
        self.label = label
        self._formula: list[str] = []
        self._value: float = 0.0
        self._error: str = EMPTY_FORMULA

    @property
    def formula(self) -> list[str]:
        return list(self._formula)

    @property
    def value(self) -> float:
        return self._value

    @property
    def error(self) -> str:
        return self._error

    def set_formula(self, tokens: Sequence[str]) -> None:
        """Replace the formula.  The value is left for the next evaluation."""
        self._formula = list(tokens)
        if not self._formula:
            self._value = 0.0
            self._error = EMPTY_FORMULA
        elif self._error == EMPTY_FORMULA:
            self._error = ""

    def set_value(self, value: float) -> None:
        self._value = float(value)

    def set_error(self, error: str) -> None:
        self._error = error

    def dependencies(self) -> list[str]:
        """Labels referenced by this cell's formula, in first-seen order."""
        seen: list[str] = []
        for tok in self._formula:
            if is_valid_cell_label(tok) and tok not in seen:
                seen.append(tok)
        return seen

    def formula_text(self) -> str:
        return format_formula(self._formula)

    def display_value(self, precision: int = 10) -> str:
        """Format the value for display, or the error kind if there is one."""
        if self._error == EMPTY_FORMULA:
            return ""
        if self._error:
            return f"#{self._error}"
        return format_value(self._value, precision)

    def __repr__(self) -> str:
        return (
            f"Cell({self.label!r}, formula={self._formula!r}, "
            f"value={self._value!r}, error={self._error!r})"
        )


class SheetMemory:
    """Grid of cells addressed by label.

    Parameters
    ----------
    n_rows : int
        Number of rows; labels may use rows ``1..n_rows``.
    n_cols : int
        Number of columns; labels may use columns ``A..``.
    """

    def __init__(self, n_rows: int = 100, n_cols: int = 26) -> None:
        if n_rows < 1 or n_cols < 1:
            raise ValueError(f"Sheet must have at least one cell, got {n_rows}x{n_cols}")
        self.n_rows = n_rows
        self.n_cols = n_cols
        self._cells: dict[str, Cell] = {}

    def _check_label(self, label: str) -> str:
        label = label.upper()
        if not is_valid_cell_label(label):
            raise FormulaRefError(label)
        row, col = parse_addr(label)
        if row >= self.n_rows or col >= self.n_cols:
            raise FormulaRefError(
                label,
                f"Cell {label!r} is outside the {self.n_rows}x{self.n_cols} sheet",
            )
        return label

    def get_cell_by_label(self, label: str) -> Cell:
        """Return the cell at *label*, creating an empty one if needed.

        Raises:
            FormulaRefError: If *label* is not a valid label or lies outside
                the sheet.
        """
        label = self._check_label(label)
        cell = self._cells.get(label)
        if cell is None:
            cell = Cell(label)
            self._cells[label] = cell
        return cell

    def find_cell(self, label: str) -> Cell | None:
        """Return the cell at *label* if it has been created, else None."""
        return self._cells.get(label.upper())

    def get_cell_by_position(self, row: int, col: int) -> Cell:
        """Return the cell at 0-based *row*, *col*."""
        return self.get_cell_by_label(make_addr(row, col))

    def set_cell_by_label(self, label: str, cell: Cell) -> None:
        label = self._check_label(label)
        cell.label = label
        self._cells[label] = cell

    def cells(self) -> Iterator[Cell]:
        """Iterate over the cells created so far, in row-major order."""
        for label in sorted(self._cells, key=parse_addr):
            yield self._cells[label]

    def labels_with_formulas(self) -> list[str]:
        return [cell.label for cell in self.cells() if cell.formula]

    @classmethod
    def from_spec(cls, spec: dict[str, Any]) -> "SheetMemory":
        """Build a sheet from a YAML-style dict.

        Example::

            {
                "n_rows": 10,
                "n_cols": 5,
                "cells": {
                    "A1": {"value": 10},
                    "B1": {"formula": "=A1 * 2"},
                },
            }

        Literal values become single-token formulas so that other cells can
        reference them.  A bare string (``"B1": "=A1 * 2"`` or ``"1 + 2"``)
        is tokenized as a formula; null cells are skipped.  Formulas are
        tokenized but not evaluated.
        """
        memory = cls(int(spec.get("n_rows", 100)), int(spec.get("n_cols", 26)))
        for label, cell_spec in (spec.get("cells") or {}).items():
            if isinstance(cell_spec, dict):
                if cell_spec.get("formula") is not None:
                    tokens = tokenize(str(cell_spec["formula"]))
                elif cell_spec.get("value") is not None:
                    tokens = [_literal_token(cell_spec["value"])]
                else:
                    continue
            elif cell_spec is None:
                # "A1:" with nothing after it
                continue
            elif isinstance(cell_spec, str):
                # Shorthand: "B1: =A1*2" or "B1: 1 + 2"
                tokens = tokenize(cell_spec)
            else:
                tokens = [_literal_token(cell_spec)]
            memory.get_cell_by_label(str(label)).set_formula(tokens)
        return memory


def format_value(value: float, precision: int = 10) -> str:
    """Format a numeric result for display: ``6``, ``0.3333333333``, ``inf``."""
    if not math.isfinite(value):
        return str(value)
    if value == int(value):
        return str(int(value))
    return f"{value:.{precision}g}"


def _literal_token(value: Any) -> str:
    if isinstance(value, bool):
        raise ValueError(f"Boolean cell values are not supported: {value!r}")
    if isinstance(value, (int, float)):
        return repr(value) if isinstance(value, float) else str(value)
    return str(value).strip()
