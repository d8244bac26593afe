"""
Unit tests for the shipment classifier.

Run: pytest tests/unit/test_shipment_classifier.py -v
"""

import pytest

from models.billing_request import ShipmentType
from services.shipment_classifier import classify_shipment, is_document_description


class TestClassifyShipment:
    """Tests for classify_shipment."""

    def test_document_keyword(self):
        assert classify_shipment(["Birth certificate Documents"]) == ShipmentType.DOCUMENT

    def test_any_item_is_enough(self):
        assert classify_shipment(["Shoes", "LETTER for mom"]) == ShipmentType.DOCUMENT

    def test_non_document(self):
        assert classify_shipment(["Dried mango", "Clothes"]) == ShipmentType.NON_DOCUMENT

    def test_empty_list(self):
        assert classify_shipment([]) == ShipmentType.NON_DOCUMENT

    def test_ignores_empty_descriptions(self):
        assert classify_shipment([None, ""]) == ShipmentType.NON_DOCUMENT

    @pytest.mark.parametrize("description", ["paper", "Papers", "file", "Files", "document"])
    def test_each_keyword(self, description):
        assert is_document_description(description) is True

    def test_substring_match(self):
        """Matching is by substring, so "Profile" counts as a file."""
        assert is_document_description("Profile frame") is True
