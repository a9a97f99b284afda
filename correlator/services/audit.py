"""
Audit trail recorder.

Writes human-readable AuditLogEntry and TicketUpdate rows. Recording is a
best-effort side effect: every failure is logged and swallowed so that the
primary mutation that triggered it is never rolled back or failed.
"""

from typing import Optional

from correlator.models import (
    Actor,
    AuditLogEntry,
    TicketUpdate,
    actor_user_id,
    format_status_change,
)
from correlator.storage import Store
from correlator.utils.logging import get_logger, log_error_with_context

logger = get_logger(__name__)


class AuditRecorder:
    """Swallow-and-log wrapper around audit writes."""

    def __init__(self, store: Store):
        self._store = store

    async def record(
        self,
        project_id: str,
        header: str,
        description: str,
        actor: Actor,
    ) -> Optional[AuditLogEntry]:
        """
        Append an audit entry for a project.

        Returns:
            The stored entry, or None if the write failed
        """
        entry = AuditLogEntry(
            project_id=project_id,
            user_id=actor_user_id(actor),
            header=header,
            description=description,
        )

        try:
            stored = await self._store.create_audit_log(entry)
        except Exception as e:
            log_error_with_context(
                logger,
                f"Failed to record audit entry '{header}'",
                e,
                project_id=project_id,
                header=header,
            )
            return None

        logger.debug(
            f"Audit: {header}: {description}",
            extra={"project_id": project_id, "header": header},
        )
        return stored

    async def record_ticket_update(
        self,
        ticket_id: str,
        prev_status: Optional[str],
        after_status: str,
        actor: Actor,
        description: Optional[str] = None,
    ) -> Optional[TicketUpdate]:
        """
        Append a lifecycle change for a ticket.

        ``prev_status`` of None is stored as the literal ``none`` (ticket creation).
        """
        prev = prev_status or "none"
        update = TicketUpdate(
            ticket_id=ticket_id,
            user_id=actor_user_id(actor),
            prev_status=prev,
            after_status=after_status,
            description=description or f"Status changed: {format_status_change(prev, after_status)}",
        )

        try:
            return await self._store.create_ticket_update(update)
        except Exception as e:
            log_error_with_context(
                logger,
                "Failed to record ticket update",
                e,
                ticket_id=ticket_id,
            )
            return None
