"""Project and membership data models."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from ._base import new_id, utcnow


class MemberRole(str, Enum):
    """Role of a user within a project."""

    ENGINEER = "engineer"
    PM = "pm"
    ADMIN = "admin"


class Project(BaseModel):
    """A project, optionally linked to one GitHub repository."""

    id: str = Field(default_factory=new_id)
    name: str
    description: Optional[str] = None
    github_repo_name: Optional[str] = None  # owner/repo
    github_repo_url: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)

    def context_line(self) -> str:
        """One-line project description used in analysis prompts."""
        return f"{self.name}: {self.description or 'No description'}"


class ProjectMember(BaseModel):
    """A user's membership in a project."""

    project_id: str
    user_id: str
    role: MemberRole
    display_name: Optional[str] = None
