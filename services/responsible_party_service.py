"""
Responsible party resolver.

Billing requests need a creating employee. When a booking carries no
reviewer, the first employee on record is used. The lookup result is kept
on the resolver instance, so each orchestrator decides how long it lives.
"""

from typing import Optional, Protocol
import structlog

from config import get_supabase_client
from exceptions import NotFoundError, DatabaseError

logger = structlog.get_logger(__name__)


class ResponsiblePartyResolver(Protocol):
    """Anything that can name a fallback responsible employee."""

    def resolve_default_party(self) -> str:
        ...


class EmployeeResponsiblePartyResolver:
    """Resolves the default party from the employees table."""

    def __init__(self, db=None):
        self.db = db or get_supabase_client()
        self.table = "employees"
        self._default_party_id: Optional[str] = None

    def resolve_default_party(self) -> str:
        """
        Return the first employee's ID.

        Raises:
            NotFoundError: If there are no employees
        """
        if self._default_party_id is not None:
            return self._default_party_id

        try:
            result = (
                self.db.table(self.table)
                .select("id")
                .order("created_at")
                .limit(1)
                .execute()
            )
        except Exception as e:
            logger.error("resolve_default_party_failed", error=str(e))
            raise DatabaseError("select", str(e))

        if not result.data:
            logger.error("no_default_responsible_party")
            raise NotFoundError("Employee", "default", code="DEFAULT_EMPLOYEE_NOT_FOUND")

        self._default_party_id = str(result.data[0]["id"])

        logger.info("default_responsible_party_resolved", employee_id=self._default_party_id)

        return self._default_party_id
