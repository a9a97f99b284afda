"""
Data models for asynchronous AI analysis.

Covers the processing-state enum shared by transcripts, commits and pull
requests, the job payload carried on the Redis queue, and the typed results
parsed from the text-completion provider.
"""

from enum import Enum
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ._base import new_id
from .ticket import Citation, Priority


class ProcessingStatus(str, Enum):
    """State of an enrichment job."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class AnalysisKind(str, Enum):
    """Type of object an analysis job enriches."""

    TRANSCRIPT = "transcript"
    COMMIT = "commit"
    PULL_REQUEST = "pull_request"


class AnalysisJob(BaseModel):
    """Job payload on the analysis queue."""

    job_id: str = Field(default_factory=new_id)
    kind: AnalysisKind
    target_id: str
    user_id: Optional[str] = None  # Requesting user; None for system-triggered jobs


Level = Literal["low", "medium", "high"]


class _ProviderModel(BaseModel):
    """Provider payloads use camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TicketMatch(_ProviderModel):
    """Existing ticket the provider believes a change belongs to."""

    ticket_id: str
    ticket_title: str
    confidence: float = Field(ge=0.0, le=1.0)
    reasoning: str = ""


class CommitAnalysisResult(_ProviderModel):
    """Structured analysis of a single commit."""

    kind: Literal["commit"] = "commit"
    summary: str
    impact: List[str] = []
    complexity: Level = "medium"
    business_value: Optional[str] = None
    suggested_tickets: List[str] = []
    code_patterns: List[str] = []
    risk_level: Level = "medium"
    file_types: List[str] = []
    potential_matches: List[TicketMatch] = []
    is_fallback: bool = False

    @classmethod
    def fallback(cls) -> "CommitAnalysisResult":
        return cls(
            summary="Code changes were made but analysis failed",
            impact=["Unknown files"],
            code_patterns=["Unknown"],
            is_fallback=True,
        )


class PRAnalysisResult(CommitAnalysisResult):
    """Structured analysis of a pull request."""

    kind: Literal["pull_request"] = "pull_request"
    overall_goal: str = ""
    testing_needed: bool = True
    deployment_risk: Level = "medium"
    estimated_review_time: str = "30 minutes"

    @classmethod
    def fallback(cls) -> "PRAnalysisResult":
        return cls(
            summary="Pull request changes were made but analysis failed",
            overall_goal="Unknown objective",
            impact=["Unknown components"],
            business_value="Unknown business value",
            code_patterns=["Unknown"],
            is_fallback=True,
        )


CodeAnalysisResult = Annotated[
    Union[CommitAnalysisResult, PRAnalysisResult],
    Field(discriminator="kind"),
]


class TicketSuggestion(_ProviderModel):
    """Action item extracted from a transcript."""

    name: str = Field(min_length=1)
    description: str = ""
    priority: Priority = Priority.MEDIUM
    suggested_assignee_role: Literal["engineer", "pm", "admin", "any"] = "any"
    reasoning: str = ""
    citations: List[Citation] = []


class TranscriptAnalysis(_ProviderModel):
    """Provider result for a transcript."""

    summary: str = Field(min_length=1)
    key_topics: List[str]
    action_items: List[TicketSuggestion]
