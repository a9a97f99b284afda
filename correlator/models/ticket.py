"""Ticket and ticket-history data models."""

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

from ._base import new_id, utcnow


class TicketStatus(str, Enum):
    """Lifecycle status of a ticket."""

    TODO = "todo"
    IN_PROGRESS = "in_progress"
    DONE = "done"


class ModerationStatus(str, Enum):
    """Review status gating visibility of AI-suggested tickets."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class Priority(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class Citation(BaseModel):
    """Quote from a transcript that motivated a ticket."""

    text: str
    timestamp: Optional[str] = None
    context: Optional[str] = None


class Ticket(BaseModel):
    """The atomic work-tracking unit."""

    id: str = Field(default_factory=new_id)
    project_id: str
    name: str
    description: Optional[str] = None
    priority: Optional[Priority] = None
    ticket_status: TicketStatus = TicketStatus.TODO
    creator_status: ModerationStatus = ModerationStatus.APPROVED
    creator_id: Optional[str] = None
    transcript_id: Optional[str] = None
    citations: List[Citation] = []
    assignee_ids: List[str] = []
    created_at: datetime = Field(default_factory=utcnow)


class TicketUpdate(BaseModel):
    """Append-only record of a ticket lifecycle change."""

    id: str = Field(default_factory=new_id)
    ticket_id: str
    user_id: Optional[str] = None  # None for the system actor
    prev_status: str
    after_status: str
    description: str
    created_at: datetime = Field(default_factory=utcnow)


STATUS_DISPLAY_NAMES = {
    "todo": "To Do",
    "in_progress": "In Progress",
    "done": "Done",
}


def format_status_change(old_status: Optional[str], new_status: Optional[str]) -> str:
    """Render a lifecycle change for humans, e.g. 'In Progress → Done'."""
    def display(status: Optional[str]) -> str:
        if not status or status == "none":
            return "None"
        return STATUS_DISPLAY_NAMES.get(status, status)

    return f"{display(old_status)} → {display(new_status)}"
