"""Tokenized cell formula evaluation.

Public API::

    from gridcalc.formulas import tokenize, FormulaEvaluator, evaluate_formula
"""

from gridcalc.formulas.errors import (
    DIVIDE_BY_ZERO,
    EMPTY_FORMULA,
    ERROR_KINDS,
    INVALID_CELL,
    INVALID_FORMULA,
    INVALID_NUMBER,
    MISSING_PARENTHESES,
    FormulaError,
    FormulaParseError,
    FormulaRefError,
)
from gridcalc.formulas.evaluator import CellSource, FormulaEvaluator, evaluate_formula
from gridcalc.formulas.outcome import EvaluationOutcome
from gridcalc.formulas.tokenizer import format_formula, tokenize
from gridcalc.formulas.tokens import is_number, is_operator, parse_number

__all__ = [
    "DIVIDE_BY_ZERO",
    "EMPTY_FORMULA",
    "ERROR_KINDS",
    "INVALID_CELL",
    "INVALID_FORMULA",
    "INVALID_NUMBER",
    "MISSING_PARENTHESES",
    "CellSource",
    "EvaluationOutcome",
    "FormulaError",
    "FormulaEvaluator",
    "FormulaParseError",
    "FormulaRefError",
    "evaluate_formula",
    "format_formula",
    "is_number",
    "is_operator",
    "parse_number",
    "tokenize",
]
