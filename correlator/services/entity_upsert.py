"""
Idempotent create-or-fetch for branches, commits and pull requests.

Natural keys are the only idempotency mechanism. Every create first looks the
key up; a lost create race (``DuplicateKeyError``) is resolved by re-reading
the winner's row and continuing as if our own create had succeeded.
"""

from datetime import datetime, timezone
from typing import Iterable, List, Optional, Tuple

from correlator.errors import DuplicateKeyError
from correlator.models import Branch, Commit, PullRequest, Ticket
from correlator.storage import Store
from correlator.utils.logging import get_logger

logger = get_logger(__name__)

# Fields refreshed on every pull request delivery
PULL_REQUEST_MUTABLE_FIELDS = (
    "title",
    "body",
    "state",
    "merged",
    "author",
    "author_email",
    "url",
    "base_branch",
    "additions",
    "deletions",
    "changed_files",
    "branch_id",
    "ticket_id",
)


async def find_referenced_tickets(store: Store, project_id: str, references: Iterable[str]) -> List[Ticket]:
    """Project tickets whose name matches one of ``references`` (case-insensitive), in stable order."""
    names = sorted(set(references))
    if not names:
        return []
    return await store.find_tickets_by_names(project_id, names)


def linked_ticket(tickets: List[Ticket]) -> Optional[Ticket]:
    """The ticket a commit or pull request links to: the first match."""
    if len(tickets) > 1:
        logger.debug(
            f"{len(tickets)} tickets referenced; linking to {tickets[0].name}",
            extra={"project_id": tickets[0].project_id, "references": [t.name for t in tickets]},
        )
    return tickets[0] if tickets else None


async def upsert_branch(
    store: Store,
    project_id: str,
    name: str,
    url: Optional[str] = None,
    author: Optional[str] = None,
    author_email: Optional[str] = None,
) -> Branch:
    """Return the branch for (project, name), creating it on first reference."""
    existing = await store.find_branch(project_id, name)
    if existing:
        return existing

    branch = Branch(
        project_id=project_id,
        name=name,
        url=url,
        author=author,
        author_email=author_email,
    )
    try:
        created = await store.create_branch(branch)
    except DuplicateKeyError:
        winner = await store.find_branch(project_id, name)
        if winner is None:
            raise
        logger.info(f"Branch {name} created concurrently; using existing row", extra={"project_id": project_id})
        return winner

    logger.info(f"Created branch {name}", extra={"project_id": project_id, "branch_id": created.id})
    return created


async def find_or_create_commit(store: Store, commit: Commit) -> Tuple[Commit, bool]:
    """
    Return the commit for (project, SHA) and whether this call created it.

    An existing commit is returned untouched.
    """
    existing = await store.find_commit(commit.project_id, commit.github_id)
    if existing:
        return existing, False

    try:
        created = await store.create_commit(commit)
    except DuplicateKeyError:
        winner = await store.find_commit(commit.project_id, commit.github_id)
        if winner is None:
            raise
        return winner, False

    return created, True


async def upsert_pull_request(store: Store, pull_request: PullRequest) -> Tuple[PullRequest, bool]:
    """
    Create the pull request or refresh its mutable fields.

    Returns the stored pull request and whether this call created it. A
    missing diff on a later delivery does not erase a previously stored one.
    """
    existing = await store.find_pull_request(pull_request.project_id, pull_request.github_id)

    if existing is None:
        try:
            created = await store.create_pull_request(pull_request)
            return created, True
        except DuplicateKeyError:
            existing = await store.find_pull_request(pull_request.project_id, pull_request.github_id)
            if existing is None:
                raise

    fields = {name: getattr(pull_request, name) for name in PULL_REQUEST_MUTABLE_FIELDS}
    fields["updated_at"] = datetime.now(timezone.utc)
    if pull_request.diff is not None:
        fields["diff"] = pull_request.diff

    updated = await store.update_pull_request(existing.id, **fields)
    return updated, False
