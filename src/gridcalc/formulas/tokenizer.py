"""Lark-based lexer turning formula text into evaluator tokens.

Only lexing happens here; the token list is evaluated by
``gridcalc.formulas.evaluator``.  Identifiers that are not cell labels are
passed through as tokens so the evaluator can report them as
``InvalidNumber`` instead of failing at lex time.
"""

from __future__ import annotations

from typing import Iterable

from lark import Lark
from lark.exceptions import UnexpectedInput

from gridcalc.formulas.errors import FormulaParseError

# A cell label beats a plain word only when the identifier ends there:
# "A1" is a label, "A1B" and "total2x" are words.
GRAMMAR = r"""
start: (NUMBER | CELL_REF | WORD | OPERATOR | LPAR | RPAR)*

NUMBER: /(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?/

CELL_REF.2: /[A-Za-z]{1,3}[0-9]+(?![A-Za-z0-9_])/

WORD.1: /[A-Za-z_][A-Za-z0-9_]*/

OPERATOR: "+" | "-" | "*" | "/"
LPAR: "("
RPAR: ")"

%import common.WS
%ignore WS
"""

_lexer = Lark(GRAMMAR, parser="lalr", lexer="basic", start="start")


def tokenize(text: str) -> list[str]:
    """Split formula text into tokens.

    Args:
        text: Formula text, with or without a leading ``=``,
            e.g. ``"=A1 * (2 + b3)"``.

    Returns:
        Token strings, e.g. ``["A1", "*", "(", "2", "+", "B3", ")"]``.
        Cell labels are upper-cased.

    Raises:
        FormulaParseError: If the text contains a character no token can
            start with.
    """
    text = text.strip()
    if text.startswith("="):
        text = text[1:]

    tokens: list[str] = []
    try:
        for tok in _lexer.lex(text):
            if tok.type == "CELL_REF":
                tokens.append(str(tok).upper())
            else:
                tokens.append(str(tok))
    except UnexpectedInput as exc:
        pos = getattr(exc, "column", None)
        raise FormulaParseError(str(exc).splitlines()[0], position=pos) from exc
    return tokens


def format_formula(tokens: Iterable[str]) -> str:
    """Render tokens back to display text, e.g. ``"A1 * (2 + B3)"``."""
    out = ""
    prev = None
    for tok in tokens:
        if prev is not None and prev != "(" and tok != ")":
            out += " "
        out += tok
        prev = tok
    return out
