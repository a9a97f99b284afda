"""Data models for the correlation engine."""

from .actor import SYSTEM, Actor, SystemActor, UserActor, actor_for, actor_user_id
from .analysis import (
    AnalysisJob,
    AnalysisKind,
    CodeAnalysisResult,
    CommitAnalysisResult,
    PRAnalysisResult,
    ProcessingStatus,
    TicketMatch,
    TicketSuggestion,
    TranscriptAnalysis,
)
from .audit import AuditLogEntry
from .github import Branch, Commit, PullRequest
from .project import MemberRole, Project, ProjectMember
from .ticket import (
    Citation,
    ModerationStatus,
    Priority,
    Ticket,
    TicketStatus,
    TicketUpdate,
    format_status_change,
)
from .transcript import Transcript
from .webhook import PullRequestPayload, PushCommit, PushPayload

__all__ = [
    # Actor models
    "Actor",
    "UserActor",
    "SystemActor",
    "SYSTEM",
    "actor_for",
    "actor_user_id",
    # Analysis models
    "ProcessingStatus",
    "AnalysisKind",
    "AnalysisJob",
    "TicketMatch",
    "CommitAnalysisResult",
    "PRAnalysisResult",
    "CodeAnalysisResult",
    "TicketSuggestion",
    "TranscriptAnalysis",
    # Entity models
    "Project",
    "ProjectMember",
    "MemberRole",
    "Branch",
    "Commit",
    "PullRequest",
    "Ticket",
    "TicketStatus",
    "ModerationStatus",
    "Priority",
    "Citation",
    "TicketUpdate",
    "Transcript",
    "AuditLogEntry",
    "format_status_change",
    # Webhook payloads
    "PushPayload",
    "PushCommit",
    "PullRequestPayload",
]
