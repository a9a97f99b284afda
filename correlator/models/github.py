"""Branch, commit and pull request data models."""

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

from ._base import new_id, utcnow
from .analysis import ProcessingStatus


class Branch(BaseModel):
    """A branch, unique per (project_id, name)."""

    id: str = Field(default_factory=new_id)
    project_id: str
    name: str
    url: Optional[str] = None
    author: Optional[str] = None
    author_email: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)


class Commit(BaseModel):
    """A commit, unique per (project_id, github_id) where github_id is the SHA."""

    id: str = Field(default_factory=new_id)
    project_id: str
    github_id: str
    message: str
    author: str
    author_email: Optional[str] = None
    url: Optional[str] = None
    diff: Optional[str] = None
    additions: int = 0
    deletions: int = 0
    changed_files: int = 0
    branch_id: Optional[str] = None
    pull_request_id: Optional[str] = None
    ticket_id: Optional[str] = None
    ai_analysis: Optional[Dict[str, Any]] = None
    ai_analysis_status: Optional[ProcessingStatus] = None
    created_at: datetime = Field(default_factory=utcnow)


class PullRequest(BaseModel):
    """A pull request, unique per (project_id, github_id) where github_id is the PR number."""

    id: str = Field(default_factory=new_id)
    project_id: str
    github_id: int
    title: str
    body: Optional[str] = None
    state: str  # 'open', 'closed' or 'draft'
    merged: bool = False
    author: str
    author_email: Optional[str] = None
    url: Optional[str] = None
    diff: Optional[str] = None
    base_branch: Optional[str] = None
    additions: int = 0
    deletions: int = 0
    changed_files: int = 0
    branch_id: Optional[str] = None
    ticket_id: Optional[str] = None
    ai_analysis: Optional[Dict[str, Any]] = None
    ai_analysis_status: Optional[ProcessingStatus] = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
