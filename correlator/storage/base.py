"""
Persistence contract consumed by the correlation engine.

The engine only needs find-by-natural-key, create and update-by-id per
entity, a case-insensitive ticket-name lookup within a project, and a few
listing queries for the API. Implementations must enforce the natural-key
uniqueness constraints and raise ``DuplicateKeyError`` when a create
collides with an existing row.
"""

from abc import ABC, abstractmethod
from typing import Any, List, Optional, Sequence

from correlator.models import (
    AuditLogEntry,
    Branch,
    Commit,
    ModerationStatus,
    Project,
    ProjectMember,
    PullRequest,
    Ticket,
    TicketUpdate,
    Transcript,
)


class Store(ABC):
    """Abstract store for projects, GitHub entities, tickets and audit records."""

    async def initialize(self) -> None:
        """Open connections. Called on application startup."""

    async def close(self) -> None:
        """Release connections. Called on application shutdown."""

    # ========== Projects ==========

    @abstractmethod
    async def find_projects_by_repository(self, full_name: str) -> List[Project]:
        """Projects whose repo name equals ``full_name`` or whose repo URL contains it."""

    @abstractmethod
    async def get_project(self, project_id: str) -> Optional[Project]:
        ...

    @abstractmethod
    async def list_project_members(self, project_id: str) -> List[ProjectMember]:
        """Members in stable (join) order."""

    @abstractmethod
    async def count_open_assignments(self, project_id: str, user_id: str) -> int:
        """Tickets in the project assigned to the user with status todo or in_progress."""

    # ========== Branches ==========

    @abstractmethod
    async def find_branch(self, project_id: str, name: str) -> Optional[Branch]:
        ...

    @abstractmethod
    async def create_branch(self, branch: Branch) -> Branch:
        ...

    # ========== Commits ==========

    @abstractmethod
    async def find_commit(self, project_id: str, sha: str) -> Optional[Commit]:
        ...

    @abstractmethod
    async def get_commit(self, commit_id: str) -> Optional[Commit]:
        ...

    @abstractmethod
    async def create_commit(self, commit: Commit) -> Commit:
        ...

    @abstractmethod
    async def update_commit(self, commit_id: str, **fields: Any) -> Commit:
        """Update the given fields; raises NotFoundError if the row is gone."""

    # ========== Pull requests ==========

    @abstractmethod
    async def find_pull_request(self, project_id: str, number: int) -> Optional[PullRequest]:
        ...

    @abstractmethod
    async def get_pull_request(self, pr_id: str) -> Optional[PullRequest]:
        ...

    @abstractmethod
    async def create_pull_request(self, pull_request: PullRequest) -> PullRequest:
        ...

    @abstractmethod
    async def update_pull_request(self, pr_id: str, **fields: Any) -> PullRequest:
        ...

    # ========== Tickets ==========

    @abstractmethod
    async def find_tickets_by_names(self, project_id: str, names: Sequence[str]) -> List[Ticket]:
        """Case-insensitive name match, ordered by creation time then id."""

    @abstractmethod
    async def get_ticket(self, ticket_id: str) -> Optional[Ticket]:
        ...

    @abstractmethod
    async def update_ticket(self, ticket_id: str, **fields: Any) -> Ticket:
        ...

    @abstractmethod
    async def list_tickets(
        self,
        project_id: str,
        moderation_status: ModerationStatus,
    ) -> List[Ticket]:
        """Tickets with the given moderation status, newest first."""

    # ========== Transcripts ==========

    @abstractmethod
    async def create_transcript(self, transcript: Transcript) -> Transcript:
        ...

    @abstractmethod
    async def get_transcript(self, transcript_id: str) -> Optional[Transcript]:
        ...

    @abstractmethod
    async def update_transcript(self, transcript_id: str, **fields: Any) -> Transcript:
        ...

    @abstractmethod
    async def complete_transcript(
        self,
        transcript_id: str,
        ai_analysis: str,
        tickets: Sequence[Ticket],
    ) -> List[Ticket]:
        """Insert generated tickets and mark the transcript completed in one transaction."""

    # ========== Audit ==========

    @abstractmethod
    async def create_audit_log(self, entry: AuditLogEntry) -> AuditLogEntry:
        ...

    @abstractmethod
    async def create_ticket_update(self, update: TicketUpdate) -> TicketUpdate:
        ...

    @abstractmethod
    async def list_audit_logs(self, project_id: str, limit: int = 50, offset: int = 0) -> List[AuditLogEntry]:
        """Newest first."""
