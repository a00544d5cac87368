"""Recalculation driver: evaluates formula cells and stores the outcomes.

Cells are evaluated dependencies-first.  Circular references are not
detected; the traversal visits each cell once per pass, so a cell in a
cycle sees whatever its dependencies currently hold.
"""

from __future__ import annotations

from typing import Sequence

from gridcalc.formulas.errors import FormulaParseError
from gridcalc.formulas.evaluator import FormulaEvaluator
from gridcalc.formulas.outcome import EvaluationOutcome
from gridcalc.formulas.tokenizer import tokenize
from gridcalc.logging.events import (
    FORMULA_EVAL_ERROR,
    FORMULA_PARSE_ERROR,
    EventLevel,
    EventType,
    emit,
    emit_info,
    emit_warning,
    make_cell_event,
)
from gridcalc.sheet import SheetMemory


class SheetCalculator:
    """Evaluate the formulas of a ``SheetMemory`` and write results back.

    Usage::

        calc = SheetCalculator(memory)
        calc.set_formula("A1", "=2 + 3")
        calc.set_formula("B1", "=A1 * 4")
        memory.get_cell_by_label("B1").value   # 20.0
    """

    def __init__(self, memory: SheetMemory) -> None:
        self.memory = memory
        self._evaluator = FormulaEvaluator(memory)

    def set_formula(self, label: str, formula: str | Sequence[str]) -> EvaluationOutcome:
        """Store a formula on *label* and recalculate the sheet.

        Args:
            label: Target cell, e.g. ``"B2"``.
            formula: Formula text (``"=A1 + 1"``) or an already tokenized
                list.

        Returns:
            The outcome now stored on the cell.

        Raises:
            FormulaParseError: If the text cannot be tokenized.  The cell
                is left unchanged.
            FormulaRefError: If *label* is not a cell of this sheet.
        """
        cell = self.memory.get_cell_by_label(label)
        if isinstance(formula, str):
            try:
                tokens = tokenize(formula)
            except FormulaParseError as exc:
                emit_warning(
                    EventType.formula_rejected,
                    str(exc),
                    {"label": cell.label, "text": formula},
                    error_code=FORMULA_PARSE_ERROR,
                )
                raise
        else:
            tokens = list(formula)

        cell.set_formula(tokens)
        self.recalculate()
        return EvaluationOutcome(result=cell.value, error=cell.error)

    def evaluate_cell(self, label: str) -> EvaluationOutcome:
        """Evaluate one cell's formula and store value and error on it."""
        cell = self.memory.get_cell_by_label(label)
        outcome = self._evaluator.evaluate(cell.formula)
        cell.set_value(outcome.result)
        cell.set_error(outcome.error)

        if outcome.ok:
            emit(make_cell_event(
                EventType.cell_evaluated,
                EventLevel.info,
                f"{cell.label} = {outcome.result!r}",
                label=cell.label,
                formula=cell.formula,
                result=outcome.result,
            ))
        else:
            emit(make_cell_event(
                EventType.cell_error,
                EventLevel.warning,
                f"{cell.label}: {outcome.error}",
                label=cell.label,
                formula=cell.formula,
                result=outcome.result,
                error=outcome.error,
                error_code=FORMULA_EVAL_ERROR,
            ))
        return outcome

    def recalculate(self) -> dict[str, EvaluationOutcome]:
        """Evaluate every formula cell, dependencies first.

        Returns:
            Mapping of label -> outcome, in evaluation order.
        """
        order = self.evaluation_order()
        emit_info(
            EventType.recalc_started,
            f"Recalculating {len(order)} cells",
            {"cells": len(order)},
        )
        results = {label: self.evaluate_cell(label) for label in order}
        n_errors = sum(1 for o in results.values() if not o.ok)
        emit_info(
            EventType.recalc_completed,
            f"Recalculated {len(results)} cells ({n_errors} with errors)",
            {"cells": len(results), "errors": n_errors},
        )
        return results

    def evaluation_order(self) -> list[str]:
        """Formula cells in depth-first post-order over their references.

        Each cell appears once.  Cells that are referenced but hold no
        formula are skipped; the evaluator reports them as ``InvalidCell``.
        """
        order: list[str] = []
        visited: set[str] = set()

        for root in self.memory.labels_with_formulas():
            if root in visited:
                continue
            visited.add(root)
            stack = [(root, iter(self._dependencies(root)))]
            while stack:
                label, deps = stack[-1]
                for dep in deps:
                    if dep not in visited:
                        visited.add(dep)
                        stack.append((dep, iter(self._dependencies(dep))))
                        break
                else:
                    stack.pop()
                    cell = self.memory.find_cell(label)
                    if cell is not None and cell.formula:
                        order.append(label)
        return order

    def _dependencies(self, label: str) -> list[str]:
        cell = self.memory.find_cell(label)
        return cell.dependencies() if cell is not None else []
