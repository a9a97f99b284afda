"""
Pull request event processing.

Every delivery refreshes the stored pull request and records one audit entry
for the action. A merge of a pull request linked to a ticket that is not yet
done moves the ticket to done; this is the only lifecycle change the engine
makes without a user.
"""

from typing import List, Optional

from pydantic import BaseModel

from correlator.models import (
    SYSTEM,
    AnalysisKind,
    Project,
    PullRequest,
    PullRequestPayload,
    Ticket,
    TicketStatus,
)
from correlator.services import notifier as notifications
from correlator.services.analysis_orchestrator import AnalysisOrchestrator
from correlator.services.audit import AuditRecorder
from correlator.services.diff_fetcher import DiffFetcher
from correlator.services.entity_upsert import (
    find_referenced_tickets,
    linked_ticket,
    upsert_branch,
    upsert_pull_request,
)
from correlator.services.notifier import Notifier
from correlator.services.push_handler import linked_suffix
from correlator.services.reference_extractor import extract_ticket_references
from correlator.services.repository_resolver import find_project_for_repository
from correlator.storage import Store
from correlator.utils.logging import get_logger

logger = get_logger(__name__)

ACTION_TEXT = {
    "opened": "opened",
    "closed": "closed",
    "ready_for_review": "marked ready for review",
    "converted_to_draft": "converted to draft",
}


def action_text(payload: PullRequestPayload) -> str:
    if payload.is_merge:
        return "merged"
    return ACTION_TEXT.get(payload.action, "updated")


class PullRequestResult(BaseModel):
    """Outcome of one pull request delivery."""

    project_id: Optional[str] = None
    pull_request_id: Optional[str] = None
    created: bool = False
    ticket_id: Optional[str] = None
    auto_completed: bool = False


class PullRequestHandler:
    """Handles ``pull_request`` webhook deliveries."""

    def __init__(
        self,
        store: Store,
        audit: AuditRecorder,
        notifier: Notifier,
        diff_fetcher: DiffFetcher,
        orchestrator: AnalysisOrchestrator,
        settings=None,
    ):
        if settings is None:
            from correlator.config import settings as app_settings
            settings = app_settings

        self._store = store
        self._audit = audit
        self._notifier = notifier
        self._diffs = diff_fetcher
        self._orchestrator = orchestrator
        self._analysis_min_diff_chars = settings.pr_analysis_min_diff_chars

    async def handle(self, payload: PullRequestPayload) -> PullRequestResult:
        repository = payload.repository.full_name
        pr = payload.pull_request

        project = await find_project_for_repository(self._store, repository)
        if project is None:
            return PullRequestResult()

        log = logger.with_context(project_id=project.id, repository=repository)

        tickets = await find_referenced_tickets(
            self._store, project.id, extract_ticket_references(f"{pr.title} {pr.body or ''}")
        )
        ticket = linked_ticket(tickets)

        branch = await upsert_branch(
            self._store,
            project.id,
            pr.head.ref,
            url=f"https://github.com/{repository}/tree/{pr.head.ref}",
            author=pr.user.login,
            author_email=pr.user.email,
        )

        diff = await self._diffs.fetch_pull_request_diff(repository, pr.number)

        stored, created = await upsert_pull_request(
            self._store,
            PullRequest(
                project_id=project.id,
                github_id=pr.number,
                title=pr.title,
                body=pr.body,
                state="draft" if pr.draft else pr.state,
                merged=pr.merged,
                author=pr.user.login,
                author_email=pr.user.email,
                url=pr.html_url,
                diff=diff,
                base_branch=pr.base.ref,
                additions=pr.additions,
                deletions=pr.deletions,
                changed_files=pr.changed_files,
                branch_id=branch.id,
                ticket_id=ticket.id if ticket else None,
            ),
        )

        await self._notifier.notify(
            project.id,
            notifications.PULL_REQUEST,
            {
                "id": stored.id,
                "number": stored.github_id,
                "title": stored.title,
                "state": stored.state,
                "action": payload.action,
            },
        )

        if created and payload.action == "opened" and diff and len(diff) > self._analysis_min_diff_chars:
            await self._orchestrator.schedule_automatic_analysis(AnalysisKind.PULL_REQUEST, stored.id)

        text = action_text(payload)
        await self._audit.record(
            project.id,
            f"Pull Request {text[0].upper()}{text[1:]}",
            f'PR #{pr.number} "{pr.title}" {text}{linked_suffix(tickets)}',
            SYSTEM,
        )

        auto_completed = False
        if payload.is_merge and ticket is not None:
            auto_completed = await self._auto_complete(project, ticket, pr.number)

        log.info(f"Processed PR #{pr.number} ({payload.action})")
        return PullRequestResult(
            project_id=project.id,
            pull_request_id=stored.id,
            created=created,
            ticket_id=ticket.id if ticket else None,
            auto_completed=auto_completed,
        )

    async def _auto_complete(self, project: Project, ticket: Ticket, number: int) -> bool:
        """Move the linked ticket to done once; a ticket already done is left alone."""
        if ticket.ticket_status == TicketStatus.DONE:
            return False

        previous = ticket.ticket_status.value
        await self._store.update_ticket(ticket.id, ticket_status=TicketStatus.DONE)

        await self._audit.record_ticket_update(
            ticket.id,
            previous,
            TicketStatus.DONE.value,
            SYSTEM,
            description=f"Automatically completed when PR #{number} was merged",
        )
        await self._audit.record(
            project.id,
            "Ticket Auto-Completed",
            f'Ticket "{ticket.name}" marked as done (PR #{number} merged)',
            SYSTEM,
        )

        logger.info(
            f"Ticket {ticket.name} auto-completed by merge of PR #{number}",
            extra={"project_id": project.id, "ticket_id": ticket.id},
        )
        return True
