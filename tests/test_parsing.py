"""Tests for loose number and text parsing helpers."""

from __future__ import annotations

import math

import pytest

from invoice_automator.utils.parsing import clean_text, coerce_number, is_number, parse_amount


class TestParseAmount:
    """Tests for parse_amount."""

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("1,250.00", 1250.0),
            ("1.250,5", 1250.5),
            ("1,234,567.89", 1234567.89),
            ("1.234.567,89", 1234567.89),
            ("12,5", 12.5),
            ("1,250", 1250.0),
            ("(45.10)", -45.1),
            ("-7", -7.0),
            ("LKR 300", 300.0),
            ("$ 19.99", 19.99),
            (42, 42.0),
            (2.5, 2.5),
        ],
    )
    def test_parses_common_formats(self, raw: object, expected: float) -> None:
        """Thousands separators, decimal commas, negatives and currency are handled."""
        assert parse_amount(raw) == pytest.approx(expected)

    @pytest.mark.parametrize("raw", [None, "", "-", "abc", True, math.nan])
    def test_unparseable_returns_none(self, raw: object) -> None:
        """Empty, non-numeric, boolean and NaN inputs give None."""
        assert parse_amount(raw) is None


class TestCoerceNumber:
    """Tests for coerce_number."""

    def test_numbers_pass_through(self) -> None:
        """Real numbers are returned unchanged."""
        assert coerce_number(3) == 3
        assert coerce_number(4.0) == 4.0

    def test_integral_strings_become_int(self) -> None:
        """'3' becomes 3, not 3.0."""
        result = coerce_number("3")
        assert result == 3
        assert isinstance(result, int)

    def test_fractional_strings_become_float(self) -> None:
        """Decimal text keeps its fraction."""
        assert coerce_number("2.5") == 2.5

    @pytest.mark.parametrize("raw", [None, "n/a", math.nan, False])
    def test_missing_values_use_default(self, raw: object) -> None:
        """Unusable values fall back to the default."""
        assert coerce_number(raw) == 0
        assert coerce_number(raw, default=-1) == -1


class TestHelpers:
    """Tests for is_number and clean_text."""

    def test_is_number_excludes_bool(self) -> None:
        """Booleans are not quantities."""
        assert is_number(1)
        assert is_number(1.5)
        assert not is_number(True)
        assert not is_number("1")

    def test_clean_text(self) -> None:
        """None becomes empty; everything else is stringified and trimmed."""
        assert clean_text(None) == ""
        assert clean_text("  INV-1 ") == "INV-1"
        assert clean_text(1001) == "1001"
