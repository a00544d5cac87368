"""Error kinds and exception types for formula evaluation.

Evaluation failures are reported as plain error-kind strings on the
``EvaluationOutcome`` so they can be stored directly on a cell.  The
exception classes below are only raised by the collaborators around the
evaluator (tokenizer, cell store), never to steer the parse itself.
"""

from __future__ import annotations


# ---------------------------------------------------------------------------
# Error kinds (caller-visible, must match verbatim)
# ---------------------------------------------------------------------------

EMPTY_FORMULA = "EmptyFormula"
INVALID_FORMULA = "InvalidFormula"
INVALID_NUMBER = "InvalidNumber"
DIVIDE_BY_ZERO = "DivideByZero"
MISSING_PARENTHESES = "MissingParentheses"
INVALID_CELL = "InvalidCell"

ERROR_KINDS = frozenset({
    EMPTY_FORMULA,
    INVALID_FORMULA,
    INVALID_NUMBER,
    DIVIDE_BY_ZERO,
    MISSING_PARENTHESES,
    INVALID_CELL,
})


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class FormulaError(Exception):
    """Base class for all formula-related errors."""


class FormulaParseError(FormulaError):
    """Formula text that cannot be split into tokens.

    Attributes:
        position: Character position where the error was detected.
    """

    def __init__(self, message: str, position: int | None = None) -> None:
        self.position = position
        full = f"Formula parse error: {message}"
        if position is not None:
            full += f" (at position {position})"
        super().__init__(full)


class FormulaRefError(FormulaError):
    """Reference to something that is not a cell label.

    Attributes:
        label: The offending label.
    """

    def __init__(self, label: str, message: str | None = None) -> None:
        self.label = label
        super().__init__(message or f"Invalid cell label: {label!r}")
