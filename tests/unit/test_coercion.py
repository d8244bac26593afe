"""
Unit tests for lenient value coercion.

Run: pytest tests/unit/test_coercion.py -v
"""

import pytest
from decimal import Decimal

from utils.coercion import to_decimal, to_positive_int, normalize_boolean


# ===================
# DECIMALS
# ===================

class TestToDecimal:
    """Tests for to_decimal."""

    def test_pads_to_two_places(self):
        assert to_decimal("12.3") == Decimal("12.30")
        assert str(to_decimal("12.3")) == "12.30"

    def test_rounds_half_up(self):
        assert to_decimal("12.345") == Decimal("12.35")
        assert to_decimal(0.125) == Decimal("0.13")

    def test_accepts_numbers(self):
        assert to_decimal(150) == Decimal("150.00")
        assert to_decimal(Decimal("9.999")) == Decimal("10.00")

    def test_trailing_garbage_is_none(self):
        """A partially numeric string never half-parses."""
        assert to_decimal("12.345abc") is None

    @pytest.mark.parametrize("value", [None, "", "   ", "abc", "1_000", "NaN", "inf", "-Infinity", True, False, [], {}])
    def test_non_numeric_is_none(self, value):
        assert to_decimal(value) is None

    @pytest.mark.parametrize("value", ["1e30", 1e40, Decimal("9" * 40)])
    def test_too_large_is_none(self, value):
        assert to_decimal(value) is None

    def test_strips_whitespace(self):
        assert to_decimal("  7.1 ") == Decimal("7.10")


class TestToPositiveInt:
    """Tests for to_positive_int."""

    def test_whole_numbers(self):
        assert to_positive_int(3) == 3
        assert to_positive_int("4") == 4

    @pytest.mark.parametrize("value", [0, -2, "2.5", None, "two"])
    def test_rejects_others(self, value):
        assert to_positive_int(value) is None


# ===================
# BOOLEANS
# ===================

class TestNormalizeBoolean:
    """Tests for normalize_boolean."""

    @pytest.mark.parametrize("value", ["true", "TRUE", "1", "yes", "Y", " yes "])
    def test_truthy_tokens(self, value):
        assert normalize_boolean(value) is True

    @pytest.mark.parametrize("value", ["false", "False", "0", "no", "N"])
    def test_falsy_tokens(self, value):
        assert normalize_boolean(value) is False

    def test_none_stays_none(self):
        assert normalize_boolean(None) is None

    def test_other_values_use_truthiness(self):
        assert normalize_boolean(1) is True
        assert normalize_boolean(0) is False
        assert normalize_boolean("insured") is True
        assert normalize_boolean("") is False
        assert normalize_boolean(True) is True
