"""API request and response data models."""

from typing import List, Optional

from pydantic import BaseModel, Field

from .analysis import ProcessingStatus
from .ticket import TicketStatus


class WebhookResponse(BaseModel):
    """Response from the webhook handler."""

    success: bool = True


class WebhookStatus(BaseModel):
    """Liveness probe response."""

    status: str
    timestamp: str


class TranscriptCreate(BaseModel):
    """Transcript upload request."""

    name: str = Field(min_length=1)
    content: str = Field(min_length=1)
    project_id: str
    uploader_id: str


class AnalysisRequest(BaseModel):
    """On-demand commit/PR analysis request."""

    user_id: Optional[str] = None


class AnalysisStatusResponse(BaseModel):
    """Current analysis state of a commit or pull request."""

    id: str
    status: Optional[ProcessingStatus] = None
    result: Optional[dict] = None


class ModerationRequest(BaseModel):
    user_id: str


class BulkModerationRequest(BaseModel):
    ids: List[str]
    user_id: str


class BulkModerationResult(BaseModel):
    updated: int


class TicketStatusChange(BaseModel):
    ticket_status: TicketStatus
    user_id: str


class TicketLinkRequest(BaseModel):
    """Link (ticket_id set) or unlink (ticket_id null) a commit/PR."""

    ticket_id: Optional[str] = None
    user_id: str
