"""
Unit tests for the service route classifier.

Run: pytest tests/unit/test_route_classifier.py -v
"""

import pytest

from services.route_classifier import (
    PH_TO_UAE,
    UAE_TO_PH,
    normalize_service_code,
    route_family,
    tracking_prefix_for,
)


class TestNormalizeServiceCode:
    """Tests for normalize_service_code."""

    def test_hyphenated_lowercase(self):
        assert normalize_service_code("ph-to-uae") == "PH_TO_UAE"

    def test_spaces_and_mixed_separators(self):
        assert normalize_service_code("  uae  to - ph ") == "UAE_TO_PH"

    def test_suffix_preserved(self):
        assert normalize_service_code("PH_TO_UAE_EXPRESS") == "PH_TO_UAE_EXPRESS"
        assert normalize_service_code("ph to uae express") == "PH_TO_UAE_EXPRESS"

    def test_prefix_needs_separator(self):
        """PH_TO_UAEX is not a PH_TO_UAE variant."""
        assert normalize_service_code("PH_TO_UAEX") == "PH_TO_UAEX"
        assert route_family("PH_TO_UAEX") is None

    @pytest.mark.parametrize("raw,expected", [
        ("uae-to-pinas", "UAE_TO_PH"),
        ("UAE_TO_PHILIPPINES", "UAE_TO_PH"),
        ("pinas to uae", "PH_TO_UAE"),
        ("Philippines-to-UAE", "PH_TO_UAE"),
    ])
    def test_aliases(self, raw, expected):
        assert normalize_service_code(raw) == expected

    def test_alias_suffix_kept(self):
        assert normalize_service_code("uae-to-pinas-express") == "UAE_TO_PH_EXPRESS"

    def test_unknown_code_normalized(self):
        assert normalize_service_code("sea cargo") == "SEA_CARGO"

    @pytest.mark.parametrize("raw", [None, "", "   "])
    def test_empty(self, raw):
        assert normalize_service_code(raw) is None

    def test_numbers_are_stringified(self):
        assert normalize_service_code(42) == "42"

    def test_unreadable_input(self):
        class Unprintable:
            def __str__(self):
                raise RuntimeError("no")

        assert normalize_service_code(Unprintable()) is None


class TestRouteFamily:
    """Tests for route_family and tracking prefixes."""

    def test_family_of_variants(self):
        assert route_family("PH_TO_UAE_EXPRESS") == PH_TO_UAE
        assert route_family("uae-to-pinas") == UAE_TO_PH
        assert route_family("SEA_CARGO") is None
        assert route_family(None) is None

    def test_tracking_prefix(self):
        assert tracking_prefix_for("ph-to-uae") == "PHL"
        assert tracking_prefix_for("PH_TO_UAE_EXPRESS") == "PHL"
        assert tracking_prefix_for("UAE_TO_PH") is None
        assert tracking_prefix_for(None) is None
