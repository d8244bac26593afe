"""
Unit tests for BillingRequestService.

Run: pytest tests/unit/test_billing_request_service.py -v
"""

import pytest
from decimal import Decimal

from services.billing_request_service import (
    BillingRequestService,
    get_billing_request_service,
    duplicate_column,
    quote_filter_value,
)
from models.billing_request import BillingRequestCreate, Verification
from exceptions import (
    BillingRequestNotFoundError,
    BillingRequestPersistenceError,
    DuplicateIdentifierError,
    DatabaseError,
)
from tests.factories import BillingRequestFactory


# ===================
# FIXTURES
# ===================

@pytest.fixture
def service(mock_db):
    """Service wired through the patched get_supabase_client."""
    return BillingRequestService()


@pytest.fixture
def create_data():
    return BillingRequestCreate(
        invoice_number="INV-250101-000001",
        tracking_code="PHL000000000001",
        service_code="PH_TO_UAE",
        booking_id="booking-1",
        customer_name="Maria Santos",
        declared_amount=Decimal("150.50"),
        created_by_employee_id="employee-1",
        verification=Verification(number_of_boxes=2),
    )


# ===================
# READ TESTS
# ===================

class TestGetBillingRequest:
    """Tests for lookups."""

    def test_get_by_id(self, service, mock_supabase):
        row = BillingRequestFactory.create(id="br-1", declared_amount=99.5)
        mock_supabase.set_table_data("billing_requests", [row])

        result = service.get_by_id("br-1")

        assert result.id == "br-1"
        assert result.declared_amount == Decimal("99.5")
        assert result.verification.number_of_boxes == 1

    def test_get_by_id_not_found(self, service):
        with pytest.raises(BillingRequestNotFoundError):
            service.get_by_id("missing")

    def test_get_by_booking_id(self, service, mock_supabase):
        mock_supabase.set_table_data("billing_requests", [
            BillingRequestFactory.create(booking_id="booking-1"),
            BillingRequestFactory.create(booking_id="booking-2", id="br-2"),
        ])

        assert service.get_by_booking_id("booking-2").id == "br-2"
        assert service.get_by_booking_id("booking-3") is None

    def test_tracking_lookup_checks_awb_alias(self, service, mock_supabase):
        mock_supabase.set_table_data("billing_requests", [
            BillingRequestFactory.create(id="br-1", tracking_code="T-1", awb_number="AWB-1")
        ])

        assert service.get_by_tracking_code("T-1").id == "br-1"
        assert service.get_by_tracking_code(" AWB-1 ").id == "br-1"
        assert service.tracking_code_exists("T-2") is False

    def test_tracking_lookup_with_reserved_characters(self, service, mock_supabase):
        awb = 'AWB 001, (002) "x" \\ y'
        mock_supabase.set_table_data("billing_requests", [
            BillingRequestFactory.create(id="br-1", tracking_code="T-1"),
            BillingRequestFactory.create(id="br-2", tracking_code=awb),
        ])

        assert service.get_by_tracking_code(awb).id == "br-2"
        assert service.tracking_code_exists("AWB 001") is False

    def test_invoice_number_exists(self, service, mock_supabase):
        mock_supabase.set_table_data("billing_requests", [BillingRequestFactory.create(invoice_number="INV-1")])

        assert service.invoice_number_exists("INV-1") is True
        assert service.invoice_number_exists("INV-2") is False

    def test_database_error(self, service, mock_supabase):
        mock_supabase.fail_on("billing_requests", "select")

        with pytest.raises(DatabaseError):
            service.get_by_booking_id("booking-1")


# ===================
# CREATE TESTS
# ===================

class TestCreateBillingRequest:
    """Tests for the single insert."""

    def test_create(self, service, mock_supabase, create_data):
        result = service.create(create_data)

        assert result.id
        assert result.awb_number == "PHL000000000001"
        assert result.declared_amount == Decimal("150.50")
        assert result.verification.number_of_boxes == 2

        stored = mock_supabase.rows("billing_requests")
        assert len(stored) == 1
        assert stored[0]["declared_amount"] == 150.5
        assert stored[0]["shipment_type"] == "NON_DOCUMENT"
        assert stored[0]["status"] == "SUBMITTED"

    def test_duplicate_tracking_code(self, service, mock_supabase, create_data):
        mock_supabase.set_table_data("billing_requests", [
            BillingRequestFactory.create(tracking_code="PHL000000000001", invoice_number="INV-OTHER")
        ])

        with pytest.raises(DuplicateIdentifierError) as exc_info:
            service.create(create_data)

        assert exc_info.value.field == "tracking_code"
        assert exc_info.value.value == "PHL000000000001"
        assert exc_info.value.code == "BILLING_REQUEST_TRACKING_CODE_EXISTS"

    def test_duplicate_invoice_number(self, service, mock_supabase, create_data):
        mock_supabase.set_table_data("billing_requests", [
            BillingRequestFactory.create(invoice_number="INV-250101-000001", tracking_code="T-OTHER")
        ])

        with pytest.raises(DuplicateIdentifierError) as exc_info:
            service.create(create_data)

        assert exc_info.value.field == "invoice_number"

    def test_other_failure_is_persistence_error(self, service, mock_supabase, create_data):
        mock_supabase.fail_on("billing_requests", "insert", Exception("statement timeout"))

        with pytest.raises(BillingRequestPersistenceError) as exc_info:
            service.create(create_data)

        assert exc_info.value.details["booking_id"] == "booking-1"
        assert exc_info.value.details["retryable"] is True
        assert mock_supabase.rows("billing_requests") == []


class TestDuplicateColumn:
    """Tests for unique-violation parsing."""

    def test_constraint_name(self):
        message = 'duplicate key value violates unique constraint "billing_requests_tracking_code_key"'
        assert duplicate_column(message) == "tracking_code"

    def test_postgrest_details(self):
        message = "{'code': '23505', 'details': 'Key (invoice_number)=(INV-1) already exists.'}"
        assert duplicate_column(message) == "invoice_number"

    def test_not_a_duplicate(self):
        assert duplicate_column("statement timeout on tracking_code index") is None


class TestQuoteFilterValue:
    """Tests for logic-filter quoting."""

    def test_plain(self):
        assert quote_filter_value("AWB 001, 002") == '"AWB 001, 002"'

    def test_escapes_quote_and_backslash(self):
        assert quote_filter_value('a"b\\c') == '"a\\"b\\\\c"'


class TestSingleton:
    """Tests for the service accessor."""

    def test_returns_same_instance(self, mock_db):
        import services.billing_request_service as module
        module._billing_request_service = None

        assert get_billing_request_service() is get_billing_request_service()

        module._billing_request_service = None
