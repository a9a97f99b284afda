"""
User-driven ticket operations: moderation, lifecycle status and linking.

Each operation performs its primary mutation first and records the audit
entry only after it succeeded. A missing ticket, commit or pull request
raises ``NotFoundError`` before anything is written.
"""

from typing import List, Optional

from correlator.errors import NotFoundError
from correlator.models import (
    AuditLogEntry,
    Commit,
    ModerationStatus,
    PullRequest,
    Ticket,
    TicketStatus,
    actor_for,
    format_status_change,
)
from correlator.services.audit import AuditRecorder
from correlator.storage import Store
from correlator.utils.logging import get_logger

logger = get_logger(__name__)

MODERATION_HEADERS = {
    ModerationStatus.APPROVED: ("Ticket Approved", "approved"),
    ModerationStatus.REJECTED: ("Ticket Rejected", "rejected"),
}


class TicketService:
    """Moderation, status changes and commit/PR linking."""

    def __init__(self, store: Store, audit: AuditRecorder):
        self._store = store
        self._audit = audit

    async def _get_ticket(self, ticket_id: str) -> Ticket:
        ticket = await self._store.get_ticket(ticket_id)
        if ticket is None:
            raise NotFoundError("Ticket", ticket_id)
        return ticket

    # ========== Listings ==========

    async def list_approved(self, project_id: str) -> List[Ticket]:
        return await self._store.list_tickets(project_id, ModerationStatus.APPROVED)

    async def list_pending(self, project_id: str) -> List[Ticket]:
        return await self._store.list_tickets(project_id, ModerationStatus.PENDING)

    async def audit_log(self, project_id: str, limit: int = 50, offset: int = 0) -> List[AuditLogEntry]:
        return await self._store.list_audit_logs(project_id, limit=limit, offset=offset)

    # ========== Moderation ==========

    async def moderate(self, ticket_id: str, decision: ModerationStatus, user_id: str) -> Ticket:
        """
        Approve or reject a ticket.

        Raises:
            NotFoundError: If the ticket does not exist
            ValueError: If ``decision`` is not approved or rejected
        """
        if decision not in MODERATION_HEADERS:
            raise ValueError(f"Unsupported moderation decision: {decision}")

        ticket = await self._get_ticket(ticket_id)
        updated = await self._store.update_ticket(ticket.id, creator_status=decision)

        header, verb = MODERATION_HEADERS[decision]
        await self._audit.record(
            updated.project_id,
            header,
            f'Ticket "{updated.name}" was {verb}',
            actor_for(user_id),
        )
        return updated

    async def approve(self, ticket_id: str, user_id: str) -> Ticket:
        return await self.moderate(ticket_id, ModerationStatus.APPROVED, user_id)

    async def reject(self, ticket_id: str, user_id: str) -> Ticket:
        return await self.moderate(ticket_id, ModerationStatus.REJECTED, user_id)

    async def bulk_moderate(self, ticket_ids: List[str], decision: ModerationStatus, user_id: str) -> int:
        """
        Apply one decision to several tickets.

        Every id is checked before any ticket is changed, so a missing ticket
        aborts the whole batch with no mutation or audit entry.
        """
        for ticket_id in ticket_ids:
            await self._get_ticket(ticket_id)

        for ticket_id in ticket_ids:
            await self.moderate(ticket_id, decision, user_id)

        logger.info(
            f"Bulk {decision.value} applied to {len(ticket_ids)} tickets",
            extra={"ticket_ids": ticket_ids, "user_id": user_id},
        )
        return len(ticket_ids)

    # ========== Lifecycle ==========

    async def change_status(self, ticket_id: str, new_status: TicketStatus, user_id: str) -> Ticket:
        """Move a ticket to ``new_status``; a no-op move writes nothing."""
        ticket = await self._get_ticket(ticket_id)
        previous = ticket.ticket_status
        if previous == new_status:
            return ticket

        updated = await self._store.update_ticket(ticket.id, ticket_status=new_status)

        actor = actor_for(user_id)
        change = format_status_change(previous.value, new_status.value)
        await self._audit.record_ticket_update(
            ticket.id,
            previous.value,
            new_status.value,
            actor,
            description=f"Status changed: {change}",
        )
        await self._audit.record(
            updated.project_id,
            "Ticket Status Changed",
            f'Ticket "{updated.name}" status changed: {change}',
            actor,
        )
        return updated

    # ========== Linking ==========

    async def _link_target(self, project_id: str, ticket_id: Optional[str]) -> Optional[Ticket]:
        if ticket_id is None:
            return None
        ticket = await self._get_ticket(ticket_id)
        if ticket.project_id != project_id:
            raise NotFoundError("Ticket", ticket_id)
        return ticket

    async def link_commit(self, commit_id: str, ticket_id: Optional[str], user_id: str) -> Commit:
        """Link a commit to a ticket, or unlink it when ``ticket_id`` is None."""
        commit = await self._store.get_commit(commit_id)
        if commit is None:
            raise NotFoundError("Commit", commit_id)

        ticket = await self._link_target(commit.project_id, ticket_id)
        updated = await self._store.update_commit(commit.id, ticket_id=ticket.id if ticket else None)

        headline = commit.message.split("\n", 1)[0]
        if ticket:
            header = "Commit Linked"
            description = f'Commit "{headline}" linked to ticket "{ticket.name}"'
        else:
            header = "Commit Unlinked"
            description = f'Commit "{headline}" unlinked from its ticket'

        await self._audit.record(commit.project_id, header, description, actor_for(user_id))
        return updated

    async def link_pull_request(self, pr_id: str, ticket_id: Optional[str], user_id: str) -> PullRequest:
        """Link a pull request to a ticket, or unlink it when ``ticket_id`` is None."""
        pull_request = await self._store.get_pull_request(pr_id)
        if pull_request is None:
            raise NotFoundError("Pull request", pr_id)

        ticket = await self._link_target(pull_request.project_id, ticket_id)
        updated = await self._store.update_pull_request(
            pull_request.id, ticket_id=ticket.id if ticket else None
        )

        label = f'PR #{pull_request.github_id} "{pull_request.title}"'
        if ticket:
            header = "Pull Request Linked"
            description = f'{label} linked to ticket "{ticket.name}"'
        else:
            header = "Pull Request Unlinked"
            description = f"{label} unlinked from its ticket"

        await self._audit.record(pull_request.project_id, header, description, actor_for(user_id))
        return updated
