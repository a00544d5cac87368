"""Tests for token classification, the lexer and A1 label helpers."""

from __future__ import annotations

import pytest

from gridcalc.addresses import (
    col_letter_to_index,
    index_to_col_letter,
    is_valid_cell_label,
    make_addr,
    parse_addr,
)
from gridcalc.formulas import (
    FormulaParseError,
    format_formula,
    is_number,
    is_operator,
    parse_number,
    tokenize,
)


class TestNumberClassification:
    @pytest.mark.parametrize("token", ["42", "0", "3.", ".5", "2.75", "1e3", "1.5E-2", "-2", "+7"])
    def test_numbers(self, token: str) -> None:
        assert is_number(token)
        assert parse_number(token) == float(token)

    @pytest.mark.parametrize("token", ["", " ", " 1", "1 ", "inf", "nan", "Infinity", "0x10", "1,000", "1.2.3", "A1", "+", "."])
    def test_not_numbers(self, token: str) -> None:
        assert not is_number(token)
        assert parse_number(token) is None

    def test_none_is_not_a_number(self) -> None:
        assert not is_number(None)
        assert parse_number(None) is None

    def test_operators(self) -> None:
        for op in ("+", "-", "*", "/"):
            assert is_operator(op)
        for tok in ("(", ")", "^", "%", "1", None):
            assert not is_operator(tok)


class TestCellLabels:
    @pytest.mark.parametrize("label", ["A1", "Z99", "AA10", "ZZZ9999"])
    def test_valid(self, label: str) -> None:
        assert is_valid_cell_label(label)

    @pytest.mark.parametrize("label", ["A0", "a1", "AAAA1", "1A", "A", "", "A01", "A1B", "$A$1"])
    def test_invalid(self, label: str) -> None:
        assert not is_valid_cell_label(label)

    def test_none_is_not_a_label(self) -> None:
        assert not is_valid_cell_label(None)

    def test_column_conversion(self) -> None:
        assert col_letter_to_index("A") == 0
        assert col_letter_to_index("Z") == 25
        assert col_letter_to_index("AA") == 26
        assert index_to_col_letter(0) == "A"
        assert index_to_col_letter(27) == "AB"

    def test_parse_and_make_addr(self) -> None:
        assert parse_addr("B3") == (2, 1)
        assert parse_addr("c3") == (2, 2)
        assert make_addr(2, 1) == "B3"

    def test_parse_addr_rejects_garbage(self) -> None:
        with pytest.raises(ValueError, match="Invalid cell label"):
            parse_addr("3B")


class TestTokenizer:
    def test_simple_expression(self) -> None:
        assert tokenize("1 + 2") == ["1", "+", "2"]

    def test_leading_equals_and_labels(self) -> None:
        assert tokenize("=A1 * (2 + b3)") == ["A1", "*", "(", "2", "+", "B3", ")"]

    def test_no_whitespace(self) -> None:
        assert tokenize("(1.5-A2)/.5") == ["(", "1.5", "-", "A2", ")", "/", ".5"]

    def test_empty(self) -> None:
        assert tokenize("") == []
        assert tokenize("=") == []
        assert tokenize("   ") == []

    def test_words_pass_through(self) -> None:
        assert tokenize("revenue * 2") == ["revenue", "*", "2"]

    @pytest.mark.parametrize("text, word", [("A1B + 2", "A1B"), ("a12b*3", "a12b"), ("total2x - 1", "total2x")])
    def test_mixed_identifier_is_one_word(self, text: str, word: str) -> None:
        tokens = tokenize(text)
        assert tokens[0] == word
        assert len(tokens) == 3

    def test_label_followed_by_operator(self) -> None:
        assert tokenize("a1") == ["A1"]
        assert tokenize("A1+B1") == ["A1", "+", "B1"]
        assert tokenize("(a1)") == ["(", "A1", ")"]

    def test_trailing_operator_kept(self) -> None:
        assert tokenize("1+2+") == ["1", "+", "2", "+"]

    def test_unknown_character(self) -> None:
        with pytest.raises(FormulaParseError) as exc_info:
            tokenize("2 $ 3")
        assert "Formula parse error" in str(exc_info.value)
        assert exc_info.value.position is not None

    def test_format_formula(self) -> None:
        assert format_formula(["A1", "*", "(", "2", "+", "B3", ")"]) == "A1 * (2 + B3)"
        assert format_formula([]) == ""
