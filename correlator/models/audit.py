"""Audit log data model."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from ._base import new_id, utcnow


class AuditLogEntry(BaseModel):
    """Append-only record of a human-meaningful state change."""

    id: str = Field(default_factory=new_id)
    project_id: str
    user_id: Optional[str] = None  # None for the system actor
    header: str
    description: str
    created_at: datetime = Field(default_factory=utcnow)
