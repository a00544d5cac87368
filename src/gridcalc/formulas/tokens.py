"""Classification helpers for formula tokens.

Tokens carry no type tag; the evaluator classifies each one on demand
with the predicates below.
"""

from __future__ import annotations

import re

OPERATORS = ("+", "-", "*", "/")
ADDITIVE = ("+", "-")
MULTIPLICATIVE = ("*", "/")

LPAREN = "("
RPAREN = ")"

# Decimal literal with optional sign and exponent: 42, -1.5, .5, 3., 1e-3
_NUMBER_RE = re.compile(r"^[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?$")


def is_operator(token: str | None) -> bool:
    """True for the four binary operators."""
    return token in OPERATORS


def is_number(token: str | None) -> bool:
    """True if *token* is a decimal number literal.

    ``inf``, ``nan``, hex literals, blanks and embedded whitespace are
    rejected even though ``float()`` would accept some of them.
    """
    if not isinstance(token, str):
        return False
    return _NUMBER_RE.match(token) is not None


def parse_number(token: str | None) -> float | None:
    """Parse a number literal, or return ``None`` if it is not one."""
    if not is_number(token):
        return None
    return float(token)
