"""
Ticket listing, moderation, lifecycle and commit/PR linking endpoints.
"""

from typing import List

from fastapi import APIRouter, Depends, Query

from correlator.api import to_http_exception
from correlator.dependencies import get_ticket_service
from correlator.models import AuditLogEntry, Commit, ModerationStatus, PullRequest, Ticket
from correlator.models.api_response import (
    BulkModerationRequest,
    BulkModerationResult,
    ModerationRequest,
    TicketLinkRequest,
    TicketStatusChange,
)
from correlator.services.ticket_service import TicketService
from correlator.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/api", tags=["tickets"])


# ========== Listings ==========


@router.get("/projects/{project_id}/tickets", response_model=List[Ticket])
async def list_tickets(
    project_id: str,
    service: TicketService = Depends(get_ticket_service),
) -> List[Ticket]:
    """Approved tickets only; suggestions awaiting review are not listed."""
    try:
        return await service.list_approved(project_id)
    except Exception as e:
        raise to_http_exception(e, "list tickets")


@router.get("/projects/{project_id}/tickets/pending", response_model=List[Ticket])
async def list_pending_tickets(
    project_id: str,
    service: TicketService = Depends(get_ticket_service),
) -> List[Ticket]:
    """Review queue of AI-suggested tickets."""
    try:
        return await service.list_pending(project_id)
    except Exception as e:
        raise to_http_exception(e, "list pending tickets")


@router.get("/projects/{project_id}/audit-log", response_model=List[AuditLogEntry])
async def get_audit_log(
    project_id: str,
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
    service: TicketService = Depends(get_ticket_service),
) -> List[AuditLogEntry]:
    try:
        return await service.audit_log(project_id, limit=limit, offset=offset)
    except Exception as e:
        raise to_http_exception(e, "get audit log")


# ========== Moderation ==========


@router.post("/tickets/bulk-approve", response_model=BulkModerationResult)
async def bulk_approve(
    request: BulkModerationRequest,
    service: TicketService = Depends(get_ticket_service),
) -> BulkModerationResult:
    try:
        updated = await service.bulk_moderate(request.ids, ModerationStatus.APPROVED, request.user_id)
    except Exception as e:
        raise to_http_exception(e, "bulk approve tickets")
    return BulkModerationResult(updated=updated)


@router.post("/tickets/bulk-reject", response_model=BulkModerationResult)
async def bulk_reject(
    request: BulkModerationRequest,
    service: TicketService = Depends(get_ticket_service),
) -> BulkModerationResult:
    try:
        updated = await service.bulk_moderate(request.ids, ModerationStatus.REJECTED, request.user_id)
    except Exception as e:
        raise to_http_exception(e, "bulk reject tickets")
    return BulkModerationResult(updated=updated)


@router.post("/tickets/{ticket_id}/approve", response_model=Ticket)
async def approve_ticket(
    ticket_id: str,
    request: ModerationRequest,
    service: TicketService = Depends(get_ticket_service),
) -> Ticket:
    try:
        return await service.approve(ticket_id, request.user_id)
    except Exception as e:
        raise to_http_exception(e, "approve ticket")


@router.post("/tickets/{ticket_id}/reject", response_model=Ticket)
async def reject_ticket(
    ticket_id: str,
    request: ModerationRequest,
    service: TicketService = Depends(get_ticket_service),
) -> Ticket:
    try:
        return await service.reject(ticket_id, request.user_id)
    except Exception as e:
        raise to_http_exception(e, "reject ticket")


# ========== Lifecycle ==========


@router.post("/tickets/{ticket_id}/status", response_model=Ticket)
async def change_ticket_status(
    ticket_id: str,
    request: TicketStatusChange,
    service: TicketService = Depends(get_ticket_service),
) -> Ticket:
    try:
        return await service.change_status(ticket_id, request.ticket_status, request.user_id)
    except Exception as e:
        raise to_http_exception(e, "change ticket status")


# ========== Linking ==========


@router.put("/commits/{commit_id}/ticket", response_model=Commit)
async def link_commit(
    commit_id: str,
    request: TicketLinkRequest,
    service: TicketService = Depends(get_ticket_service),
) -> Commit:
    """Link a commit to a ticket, or unlink it with ``ticket_id: null``."""
    try:
        return await service.link_commit(commit_id, request.ticket_id, request.user_id)
    except Exception as e:
        raise to_http_exception(e, "link commit")


@router.put("/pull-requests/{pr_id}/ticket", response_model=PullRequest)
async def link_pull_request(
    pr_id: str,
    request: TicketLinkRequest,
    service: TicketService = Depends(get_ticket_service),
) -> PullRequest:
    """Link a pull request to a ticket, or unlink it with ``ticket_id: null``."""
    try:
        return await service.link_pull_request(pr_id, request.ticket_id, request.user_id)
    except Exception as e:
        raise to_http_exception(e, "link pull request")
