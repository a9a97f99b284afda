"""Commit and pull request enrichment jobs."""

from typing import List, Optional

from correlator.analyzers.llm_client import LLMClient
from correlator.analyzers.prompts import build_commit_prompt, build_pull_request_prompt
from correlator.analyzers.result_parser import parse_code_analysis
from correlator.models import (
    AnalysisJob,
    AnalysisKind,
    ModerationStatus,
    ProcessingStatus,
    Ticket,
    TicketStatus,
    actor_for,
)
from correlator.services import notifier as notifications
from correlator.services.analysis_state import AnalysisStateMachine
from correlator.services.audit import AuditRecorder
from correlator.services.notifier import Notifier
from correlator.storage import Store
from correlator.utils.logging import get_logger, log_error_with_context
from correlator.utils.metrics import JobMetrics

logger = get_logger(__name__)

MAX_TOKENS = {
    AnalysisKind.COMMIT: 1200,
    AnalysisKind.PULL_REQUEST: 1400,
}

AUDIT_HEADERS = {
    AnalysisKind.COMMIT: ("AI Analysis Generated", "commit"),
    AnalysisKind.PULL_REQUEST: ("PR AI Analysis Generated", "PR"),
}

OPEN_STATUSES = (TicketStatus.TODO, TicketStatus.IN_PROGRESS)


class CodeAnalysisProcessor:
    """Runs commit and pull request analysis jobs."""

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

    async def _open_tickets(self, project_id: str) -> List[Ticket]:
        approved = await self._store.list_tickets(project_id, ModerationStatus.APPROVED)
        return [t for t in approved if t.ticket_status in OPEN_STATUSES]

    async def process(self, job: AnalysisJob, metrics: Optional[JobMetrics] = None) -> ProcessingStatus:
        """
        Analyse one commit or pull request.

        Returns:
            The terminal state reached (``completed`` or ``failed``)
        """
        kind = job.kind
        entity = await self._state.mark_processing(kind, job.target_id)
        log = logger.with_context(project_id=entity.project_id, job_id=job.job_id)

        try:
            project = await self._store.get_project(entity.project_id)
            project_context = project.context_line() if project else None
            open_tickets = await self._open_tickets(entity.project_id)

            if kind == AnalysisKind.COMMIT:
                prompt = build_commit_prompt(entity, open_tickets, project_context)
            else:
                prompt = build_pull_request_prompt(entity, [], open_tickets, project_context)

            reply = await self._llm.complete(prompt, max_tokens=MAX_TOKENS[kind], metrics=metrics)
            result = parse_code_analysis(kind, reply, [t.id for t in open_tickets])

            await self._state.mark_completed(
                kind,
                entity.id,
                result.model_dump(mode="json", by_alias=True),
            )
        except Exception as e:
            log_error_with_context(
                log,
                f"{kind.value} analysis failed for {entity.id}",
                e,
                target_id=entity.id,
            )
            await self._state.mark_failed(kind, entity.id)
            await self._notifier.notify(
                entity.project_id,
                notifications.ANALYSIS_FAILED,
                {"id": entity.id, "type": kind.value},
            )
            return ProcessingStatus.FAILED

        header, label = AUDIT_HEADERS[kind]
        await self._audit.record(
            entity.project_id,
            header,
            f"Auto-generated AI analysis for {label}: {result.summary}",
            actor_for(job.user_id),
        )
        await self._notifier.notify(
            entity.project_id,
            notifications.ANALYSIS_COMPLETE,
            {"id": entity.id, "type": kind.value, "summary": result.summary},
        )

        if result.is_fallback:
            log.warning(f"Stored fallback {kind.value} analysis for {entity.id}")
        else:
            log.info(f"Stored {kind.value} analysis for {entity.id}")
        return ProcessingStatus.COMPLETED
