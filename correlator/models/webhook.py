"""GitHub webhook payload models (only the fields the engine consumes)."""

from typing import List, Optional

from pydantic import BaseModel


class GitHubRepository(BaseModel):
    full_name: str
    html_url: Optional[str] = None


class CommitAuthor(BaseModel):
    name: str
    email: Optional[str] = None
    username: Optional[str] = None


class PushCommit(BaseModel):
    """Commit entry of a push payload."""

    id: str  # SHA
    message: str
    timestamp: Optional[str] = None
    url: Optional[str] = None
    author: CommitAuthor
    added: List[str] = []
    removed: List[str] = []
    modified: List[str] = []

    @property
    def headline(self) -> str:
        return self.message.split("\n", 1)[0]


class PushPayload(BaseModel):
    """Payload of a ``push`` event."""

    ref: str
    before: Optional[str] = None
    after: Optional[str] = None
    compare: Optional[str] = None
    commits: List[PushCommit] = []
    repository: GitHubRepository

    @property
    def branch_name(self) -> Optional[str]:
        """Branch named by the ref, or None for tag and other refs."""
        prefix = "refs/heads/"
        if self.ref.startswith(prefix):
            return self.ref[len(prefix):]
        return None


class GitHubUser(BaseModel):
    login: str
    email: Optional[str] = None


class GitRef(BaseModel):
    ref: str
    sha: Optional[str] = None


class PullRequestData(BaseModel):
    number: int
    title: str
    body: Optional[str] = None
    state: str  # 'open' or 'closed'
    draft: bool = False
    merged: bool = False
    user: GitHubUser
    head: GitRef
    base: GitRef
    html_url: Optional[str] = None
    additions: int = 0
    deletions: int = 0
    changed_files: int = 0


class PullRequestPayload(BaseModel):
    """Payload of a ``pull_request`` event."""

    action: str
    pull_request: PullRequestData
    repository: GitHubRepository

    @property
    def is_merge(self) -> bool:
        return self.action == "closed" and self.pull_request.merged
