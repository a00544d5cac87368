"""Recursive-descent evaluator for tokenized cell formulas.

Grammar (left-associative, one token of lookahead)::

    Expression := Term (('+' | '-') Term)*
    Term       := Factor (('*' | '/') Factor)*
    Factor     := '(' Expression ')' | Operand
    Operand    := CellReference | NumberLiteral

Each grammar rule returns a ``_Step`` carrying either a value or an error
kind; the first error short-circuits every enclosing rule.  Cell references
are resolved through a ``CellSource`` (normally ``SheetMemory``).
"""

from __future__ import annotations

import logging
import math
from typing import Callable, NamedTuple, Protocol, Sequence

from gridcalc.addresses import is_valid_cell_label
from gridcalc.formulas.errors import (
    DIVIDE_BY_ZERO,
    EMPTY_FORMULA,
    INVALID_CELL,
    INVALID_FORMULA,
    INVALID_NUMBER,
    MISSING_PARENTHESES,
    FormulaRefError,
)
from gridcalc.formulas.outcome import EvaluationOutcome
from gridcalc.formulas.tokens import (
    ADDITIVE,
    LPAREN,
    MULTIPLICATIVE,
    RPAREN,
    is_operator,
    parse_number,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Cell source protocol
# ---------------------------------------------------------------------------


class ReferencedCell(Protocol):
    """The parts of a cell the evaluator reads."""

    @property
    def value(self) -> float: ...

    @property
    def formula(self) -> Sequence[str]: ...

    @property
    def error(self) -> str: ...


class CellSource(Protocol):
    """Protocol for looking up referenced cells by label."""

    def get_cell_by_label(self, label: str) -> ReferencedCell:
        """Return the cell for *label*; raise ``FormulaRefError`` if there is none."""
        ...


# ---------------------------------------------------------------------------
# Per-call parse state
# ---------------------------------------------------------------------------


class _Step(NamedTuple):
    value: float = 0.0
    error: str = ""


def _fail(kind: str) -> _Step:
    return _Step(0.0, kind)


class _FormulaCursor:
    """Forward-only cursor over one formula, plus the last scalar seen."""

    def __init__(self, tokens: Sequence[str]) -> None:
        self._tokens = tokens
        self.pos = 0
        self.last_scalar: float | None = None

    def peek(self) -> str | None:
        if self.pos < len(self._tokens):
            return self._tokens[self.pos]
        return None

    def advance(self) -> str | None:
        token = self.peek()
        self.pos += 1
        return token

    @property
    def exhausted(self) -> bool:
        return self.pos >= len(self._tokens)


# ---------------------------------------------------------------------------
# Evaluator
# ---------------------------------------------------------------------------


class FormulaEvaluator:
    """Evaluate token lists against a cell source.

    Usage::

        ev = FormulaEvaluator(memory)
        ev.evaluate(["A1", "*", "2"])
        ev.result, ev.error

    The only state kept between calls is the most recent outcome, which
    is replaced at the start of every ``evaluate``.
    """

    def __init__(
        self,
        memory: CellSource,
        is_valid_label: Callable[[str], bool] = is_valid_cell_label,
    ) -> None:
        self._memory = memory
        self._is_valid_label = is_valid_label
        self._outcome = EvaluationOutcome()

    @property
    def result(self) -> float:
        return self._outcome.result

    @property
    def error(self) -> str:
        return self._outcome.error

    @property
    def outcome(self) -> EvaluationOutcome:
        return self._outcome

    def evaluate(self, formula: Sequence[str]) -> EvaluationOutcome:
        """Evaluate *formula* and return (and remember) its outcome."""
        self._outcome = EvaluationOutcome()
        self._outcome = self._evaluate(list(formula))
        if self._outcome.error:
            logger.debug(
                "formula %r evaluated with error %s (result=%r)",
                list(formula), self._outcome.error, self._outcome.result,
            )
        return self._outcome

    def _evaluate(self, tokens: list[str]) -> EvaluationOutcome:
        if not tokens:
            return EvaluationOutcome(result=0.0, error=EMPTY_FORMULA)

        # A trailing operator is flagged, then dropped before parsing.
        flagged = ""
        if is_operator(tokens[-1]):
            flagged = INVALID_FORMULA
            tokens = tokens[:-1]

        cursor = _FormulaCursor(tokens)
        step = self._expression(cursor)
        if not step.error and not cursor.exhausted:
            step = _Step(step.value, INVALID_FORMULA)

        if not step.error:
            return EvaluationOutcome(result=step.value, error=flagged)

        result = step.value
        if step.error == DIVIDE_BY_ZERO:
            result = math.inf
        if result == 0 and cursor.last_scalar is not None:
            result = cursor.last_scalar
        return EvaluationOutcome(result=result, error=step.error)

    # -- grammar rules ------------------------------------------------------

    def _expression(self, cursor: _FormulaCursor) -> _Step:
        step = self._term(cursor)
        if step.error:
            return step
        total = step.value

        while cursor.peek() in ADDITIVE:
            op = cursor.advance()
            step = self._term(cursor)
            if step.error:
                return step
            if op == "+":
                total += step.value
            else:
                total -= step.value

        return _Step(total)

    def _term(self, cursor: _FormulaCursor) -> _Step:
        step = self._factor(cursor)
        if step.error:
            return step
        product = step.value

        while cursor.peek() in MULTIPLICATIVE:
            op = cursor.advance()
            step = self._factor(cursor)
            if step.error:
                return step
            if op == "*":
                product *= step.value
            else:
                if step.value == 0:
                    return _fail(DIVIDE_BY_ZERO)
                product /= step.value

        return _Step(product)

    def _factor(self, cursor: _FormulaCursor) -> _Step:
        if cursor.peek() != LPAREN:
            return self._operand(cursor)

        cursor.advance()
        step = self._expression(cursor)
        if step.error:
            return step
        if cursor.advance() != RPAREN:
            return _fail(MISSING_PARENTHESES)
        return step

    def _operand(self, cursor: _FormulaCursor) -> _Step:
        token = cursor.peek()

        if token is not None and self._is_valid_label(token):
            cursor.advance()
            step = self._resolve_cell(token)
            if not step.error:
                cursor.last_scalar = step.value
            return step

        number = parse_number(token)
        if number is None:
            return _fail(INVALID_NUMBER)
        cursor.advance()
        cursor.last_scalar = number
        return _Step(number)

    def _resolve_cell(self, label: str) -> _Step:
        try:
            cell = self._memory.get_cell_by_label(label)
        except FormulaRefError:
            return _fail(INVALID_CELL)

        # Referenced-cell errors pass through unchanged.
        if cell.error and cell.error != EMPTY_FORMULA:
            return _fail(cell.error)
        if len(cell.formula) == 0:
            return _fail(INVALID_CELL)
        return _Step(float(cell.value))


def evaluate_formula(
    tokens: Sequence[str],
    memory: CellSource,
    is_valid_label: Callable[[str], bool] = is_valid_cell_label,
) -> EvaluationOutcome:
    """Evaluate *tokens* once with a throwaway evaluator.

    Args:
        tokens: Formula tokens, e.g. ``["A1", "+", "2"]``.
        memory: Source used to resolve cell references.
        is_valid_label: Predicate deciding which tokens are cell labels.

    Returns:
        The ``EvaluationOutcome`` for this formula.
    """
    return FormulaEvaluator(memory, is_valid_label).evaluate(tokens)
