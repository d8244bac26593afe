"""
Unit tests for the default responsible party lookup.

Run: pytest tests/unit/test_responsible_party_service.py -v
"""

import pytest

from services.responsible_party_service import EmployeeResponsiblePartyResolver
from exceptions import NotFoundError, DatabaseError
from tests.factories import EmployeeFactory


class TestEmployeeResponsiblePartyResolver:
    """Tests for resolve_default_party."""

    def test_first_employee(self, mock_supabase):
        mock_supabase.set_table_data("employees", [
            EmployeeFactory.create(id="employee-late", created_at="2024-06-01T00:00:00+00:00"),
            EmployeeFactory.create(id="employee-early", created_at="2023-01-01T00:00:00+00:00"),
        ])

        resolver = EmployeeResponsiblePartyResolver(db=mock_supabase)

        assert resolver.resolve_default_party() == "employee-early"

    def test_memoized(self, mock_supabase):
        resolver = EmployeeResponsiblePartyResolver(db=mock_supabase)

        resolver.resolve_default_party()
        resolver.resolve_default_party()

        assert mock_supabase.count_calls("employees", "select") == 1

    def test_no_employees(self, mock_supabase):
        mock_supabase.set_table_data("employees", [])

        with pytest.raises(NotFoundError) as exc_info:
            EmployeeResponsiblePartyResolver(db=mock_supabase).resolve_default_party()

        assert exc_info.value.code == "DEFAULT_EMPLOYEE_NOT_FOUND"

    def test_database_error(self, mock_supabase):
        mock_supabase.fail_on("employees", "select")

        with pytest.raises(DatabaseError):
            EmployeeResponsiblePartyResolver(db=mock_supabase).resolve_default_party()
