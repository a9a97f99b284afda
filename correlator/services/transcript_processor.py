"""
Transcript enrichment: meeting transcript in, moderated ticket suggestions out.

Generated tickets start in lifecycle ``todo`` and moderation ``pending``,
assigned to the least-loaded member for the suggested role. The tickets and
the transcript's ``completed`` state are stored in one transaction; the
per-ticket audit and history entries are written afterwards.
"""

from datetime import datetime, timezone
from typing import List, Optional

from correlator.analyzers.llm_client import LLMClient
from correlator.analyzers.prompts import build_transcript_prompt
from correlator.analyzers.result_parser import parse_transcript_analysis
from correlator.models import (
    AnalysisJob,
    AnalysisKind,
    Citation,
    ModerationStatus,
    ProcessingStatus,
    Ticket,
    TicketStatus,
    TicketSuggestion,
    Transcript,
    TranscriptAnalysis,
    actor_for,
)
from correlator.services import notifier as notifications
from correlator.services.analysis_state import AnalysisStateMachine
from correlator.services.assignment import choose_assignee, load_workloads
from correlator.services.audit import AuditRecorder
from correlator.services.notifier import Notifier
from correlator.storage import Store
from correlator.utils.logging import get_logger, log_error_with_context
from correlator.utils.metrics import JobMetrics

logger = get_logger(__name__)

TRANSCRIPT_MAX_TOKENS = 2000


def format_analysis(transcript: Transcript, analysis: TranscriptAnalysis) -> str:
    """Human-readable analysis stored on the transcript."""
    tickets = "\n".join(
        f"{i}. {item.name} ({item.priority.value} priority) -> {item.suggested_assignee_role}"
        for i, item in enumerate(analysis.action_items, start=1)
    )
    return (
        f'AI Analysis of "{transcript.name}":\n\n'
        f"**Summary:** {analysis.summary}\n\n"
        f"**Key Topics:** {', '.join(analysis.key_topics)}\n\n"
        f"**Action Items Generated:** {len(analysis.action_items)} tickets created "
        f"with role-based assignments.\n\n"
        f"**Tickets Created:**\n{tickets}"
    )


def build_ticket(
    transcript: Transcript,
    item: TicketSuggestion,
    assignee_id: Optional[str],
) -> Ticket:
    citations = item.citations or [
        Citation(
            text=f"Generated from transcript: {transcript.name}",
            timestamp=datetime.now(timezone.utc).isoformat(),
            context="AI Analysis",
        )
    ]
    return Ticket(
        project_id=transcript.project_id,
        name=item.name,
        description=f"{item.description}\n\n**AI Reasoning:** {item.reasoning}",
        priority=item.priority,
        ticket_status=TicketStatus.TODO,
        creator_status=ModerationStatus.PENDING,
        creator_id=transcript.uploader_id,
        transcript_id=transcript.id,
        citations=citations,
        assignee_ids=[assignee_id] if assignee_id else [],
    )


class TranscriptProcessor:
    """Runs transcript analysis jobs."""

    def __init__(
        self,
        store: Store,
        llm_client: LLMClient,
        state_machine: AnalysisStateMachine,
        audit: AuditRecorder,
        notifier: Notifier,
    ):
        self._store = store
        self._llm = llm_client
        self._state = state_machine
        self._audit = audit
        self._notifier = notifier

    async def process(self, job: AnalysisJob, metrics: Optional[JobMetrics] = None) -> ProcessingStatus:
        """
        Analyse one transcript and store its generated tickets.

        Returns:
            The terminal state reached (``completed`` or ``failed``)

        Raises:
            NotFoundError: If the transcript no longer exists
            InvalidTransitionError: If the transcript cannot enter ``processing``
        """
        transcript = await self._state.mark_processing(AnalysisKind.TRANSCRIPT, job.target_id)
        log = logger.with_context(project_id=transcript.project_id, job_id=job.job_id)

        try:
            tickets = await self._generate(transcript, metrics)
        except Exception as e:
            log_error_with_context(
                log,
                f"Transcript analysis failed for {transcript.id}",
                e,
                transcript_id=transcript.id,
            )
            await self._state.mark_failed(AnalysisKind.TRANSCRIPT, transcript.id)
            await self._notifier.notify(
                transcript.project_id,
                notifications.ANALYSIS_FAILED,
                {"id": transcript.id, "type": AnalysisKind.TRANSCRIPT.value},
            )
            return ProcessingStatus.FAILED

        actor = actor_for(transcript.uploader_id)
        for ticket in tickets:
            await self._audit.record(
                transcript.project_id,
                "AI Ticket Generated",
                f'AI generated ticket "{ticket.name}" from transcript "{transcript.name}"',
                actor,
            )
            await self._audit.record_ticket_update(
                ticket.id,
                None,
                TicketStatus.TODO.value,
                actor,
                description=f'AI created ticket "{ticket.name}" with status "To Do" (pending review)',
            )

        await self._notifier.notify(
            transcript.project_id,
            notifications.TRANSCRIPT_COMPLETE,
            {"id": transcript.id, "ticket_count": len(tickets)},
        )
        log.info(f"Transcript {transcript.id} generated {len(tickets)} tickets")
        return ProcessingStatus.COMPLETED

    async def _generate(self, transcript: Transcript, metrics: Optional[JobMetrics]) -> List[Ticket]:
        members = await self._store.list_project_members(transcript.project_id)

        reply = await self._llm.complete(
            build_transcript_prompt(transcript, members),
            max_tokens=TRANSCRIPT_MAX_TOKENS,
            metrics=metrics,
        )
        analysis = parse_transcript_analysis(reply)

        workloads = await load_workloads(self._store, transcript.project_id, members)
        tickets = []
        for item in analysis.action_items:
            assignee = choose_assignee(members, workloads, item.suggested_assignee_role)
            tickets.append(build_ticket(transcript, item, assignee.user_id if assignee else None))

        return await self._state.complete_transcript(
            transcript.id,
            format_analysis(transcript, analysis),
            tickets,
        )
