"""Transcript data model."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from ._base import new_id, utcnow
from .analysis import ProcessingStatus


class Transcript(BaseModel):
    """Meeting transcript from which tickets are generated."""

    id: str = Field(default_factory=new_id)
    project_id: str
    uploader_id: str
    name: str
    content: str
    processing_status: ProcessingStatus = ProcessingStatus.PENDING
    ai_analysis: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)
