"""A1-style cell label helpers.

``is_valid_cell_label`` is the label validator used by the evaluator: a
purely syntactic check that says nothing about whether the cell exists.
"""

from __future__ import annotations

import re

# Column letters (up to three) followed by a row number starting at 1.
_LABEL_RE = re.compile(r"^([A-Z]{1,3})([1-9][0-9]*)$")


def is_valid_cell_label(token: str | None) -> bool:
    """Return True if *token* looks like a cell label (``A1``, ``AB12``)."""
    if not isinstance(token, str):
        return False
    return _LABEL_RE.match(token) is not None


def col_letter_to_index(letters: str) -> int:
    """Convert column letter(s) to 0-based index.  A=0, B=1, ..., Z=25, AA=26."""
    idx = 0
    for ch in letters:
        idx = idx * 26 + (ord(ch) - ord("A") + 1)
    return idx - 1


def index_to_col_letter(idx: int) -> str:
    """Convert 0-based column index to letter(s).  0=A, 25=Z, 26=AA."""
    result = ""
    n = idx + 1
    while n > 0:
        n, rem = divmod(n - 1, 26)
        result = chr(65 + rem) + result
    return result


def parse_addr(label: str) -> tuple[int, int]:
    """Parse 'A1' -> (row_0based, col_0based).

    Raises ValueError on bad label.
    """
    m = _LABEL_RE.match(label.upper())
    if not m:
        raise ValueError(f"Invalid cell label: {label!r}")
    col = col_letter_to_index(m.group(1))
    row = int(m.group(2)) - 1
    return row, col


def make_addr(row: int, col: int) -> str:
    """Build cell label from 0-based row/col."""
    return f"{index_to_col_letter(col)}{row + 1}"
