"""
Push event processing.

For each push to a branch of a tracked repository: upsert the branch, fetch
commit diffs (best effort, bounded concurrency), then record every commit in
delivery order. Only newly created commits whose change size exceeds the
minor-change threshold get a "Commit Pushed" audit entry; smaller commits are
still stored.
"""

from typing import Dict, List, Optional

from pydantic import BaseModel

from correlator.models import (
    SYSTEM,
    AnalysisKind,
    Branch,
    Commit,
    Project,
    PushCommit,
    PushPayload,
    Ticket,
)
from correlator.services import notifier as notifications
from correlator.services.analysis_orchestrator import AnalysisOrchestrator
from correlator.services.audit import AuditRecorder
from correlator.services.diff_fetcher import DiffFetcher, count_diff_lines
from correlator.services.entity_upsert import (
    find_or_create_commit,
    find_referenced_tickets,
    linked_ticket,
    upsert_branch,
)
from correlator.services.notifier import Notifier
from correlator.services.reference_extractor import extract_ticket_references
from correlator.services.repository_resolver import find_project_for_repository
from correlator.storage import Store
from correlator.utils.logging import get_logger

logger = get_logger(__name__)


class PushResult(BaseModel):
    """Outcome of one push delivery."""

    project_id: Optional[str] = None
    branch_id: Optional[str] = None
    created: List[str] = []  # SHAs recorded by this delivery
    skipped: List[str] = []  # SHAs already recorded


def linked_suffix(tickets: List[Ticket]) -> str:
    if not tickets:
        return ""
    return f" (linked to {', '.join(t.name for t in tickets)})"


def change_stats(commit: PushCommit, diff: Optional[str]) -> Dict[str, int]:
    """Line counts from the diff, or file counts from the payload without one."""
    if diff:
        additions, deletions = count_diff_lines(diff)
        changed_files = sum(1 for line in diff.splitlines() if line.startswith("diff --git "))
    else:
        additions = len(commit.added) + len(commit.modified)
        deletions = len(commit.removed)
        changed_files = 0
    if not changed_files:
        changed_files = len(set(commit.added) | set(commit.removed) | set(commit.modified))
    return {"additions": additions, "deletions": deletions, "changed_files": changed_files}


class PushHandler:
    """Handles ``push`` webhook deliveries."""

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
        self._minor_change_threshold = settings.minor_change_threshold
        self._analysis_min_diff_chars = settings.commit_analysis_min_diff_chars

    async def handle(self, payload: PushPayload) -> PushResult:
        repository = payload.repository.full_name
        branch_name = payload.branch_name

        if not payload.commits or branch_name is None:
            logger.info(
                f"Ignoring push to {payload.ref} with {len(payload.commits)} commit(s)",
                extra={"repository": repository, "event_type": "push"},
            )
            return PushResult()

        project = await find_project_for_repository(self._store, repository)
        if project is None:
            return PushResult()

        log = logger.with_context(project_id=project.id, repository=repository)

        first_author = payload.commits[0].author
        branch = await upsert_branch(
            self._store,
            project.id,
            branch_name,
            url=f"https://github.com/{repository}/tree/{branch_name}",
            author=first_author.name,
            author_email=first_author.email,
        )

        diffs = await self._diffs.fetch_commit_diffs(repository, [c.id for c in payload.commits])

        result = PushResult(project_id=project.id, branch_id=branch.id)
        for push_commit in payload.commits:
            created = await self._record_commit(
                project, branch, push_commit, diffs.get(push_commit.id)
            )
            if created:
                result.created.append(push_commit.id)
            else:
                result.skipped.append(push_commit.id)

        log.info(
            f"Processed {len(payload.commits)} commits on {branch_name}: "
            f"{len(result.created)} new, {len(result.skipped)} already recorded",
        )
        return result

    async def _record_commit(
        self,
        project: Project,
        branch: Branch,
        push_commit: PushCommit,
        diff: Optional[str],
    ) -> bool:
        existing = await self._store.find_commit(project.id, push_commit.id)
        if existing:
            await self._backfill_analysis(existing, diff)
            return False

        tickets = await find_referenced_tickets(
            self._store, project.id, extract_ticket_references(push_commit.message)
        )
        ticket = linked_ticket(tickets)
        stats = change_stats(push_commit, diff)

        commit, created = await find_or_create_commit(
            self._store,
            Commit(
                project_id=project.id,
                github_id=push_commit.id,
                message=push_commit.message,
                author=push_commit.author.name,
                author_email=push_commit.author.email,
                url=push_commit.url,
                diff=diff,
                branch_id=branch.id,
                ticket_id=ticket.id if ticket else None,
                **stats,
            ),
        )
        if not created:
            return False

        await self._notifier.notify(
            project.id,
            notifications.COMMIT,
            {
                "id": commit.id,
                "message": commit.message,
                "author": commit.author,
                "additions": commit.additions,
                "deletions": commit.deletions,
                "changed_files": commit.changed_files,
            },
        )

        if diff and len(diff) > self._analysis_min_diff_chars:
            await self._orchestrator.schedule_automatic_analysis(AnalysisKind.COMMIT, commit.id)

        if commit.additions + commit.deletions > self._minor_change_threshold:
            await self._audit.record(
                project.id,
                "Commit Pushed",
                f'{push_commit.author.name} pushed "{push_commit.headline}" to {branch.name}'
                f"{linked_suffix(tickets)}",
                SYSTEM,
            )

        return True

    async def _backfill_analysis(self, commit: Commit, diff: Optional[str]) -> None:
        """Store a newly available diff on a never-analysed commit and schedule its analysis."""
        if commit.ai_analysis_status is not None or not diff:
            return

        if commit.diff is None:
            await self._store.update_commit(commit.id, diff=diff)

        if len(diff) > self._analysis_min_diff_chars:
            await self._orchestrator.schedule_automatic_analysis(AnalysisKind.COMMIT, commit.id)
