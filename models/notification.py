"""
Department notification schemas.
"""

from typing import Optional
from pydantic import Field

from models.base import BaseSchema


class NotificationCreate(BaseSchema):
    """Notify a department about a new entity."""

    department: str = Field(..., min_length=1, max_length=100, description="Department name")
    entity_type: str = Field(default="billing_request", description="Kind of entity referenced")
    entity_id: str = Field(..., description="Referenced entity UUID")
    actor_id: Optional[str] = Field(None, description="Employee who triggered the notification")
