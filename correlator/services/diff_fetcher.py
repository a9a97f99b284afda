"""
GitHub diff retrieval.

Fetches unified diffs for commits and pull requests from the GitHub REST API
using the ``application/vnd.github.v3.diff`` media type. Fetching is best
effort: callers get ``None`` when the diff cannot be retrieved and carry on
with the rest of the delivery.
"""

import asyncio
from typing import Dict, Optional, Sequence, Tuple

import httpx

from correlator.errors import DiffFetchError
from correlator.utils.logging import get_logger
from correlator.utils.metrics import track_api_call
from correlator.utils.resilience import (
    CircuitBreaker,
    create_github_circuit_breaker,
    handle_partial_failure,
)

logger = get_logger(__name__)

DIFF_MEDIA_TYPE = "application/vnd.github.v3.diff"
USER_AGENT = "ticket-correlator"


def count_diff_lines(diff: Optional[str]) -> Tuple[int, int]:
    """
    Count added and removed lines in a unified diff.

    File header lines (``+++`` / ``---``) are not counted.
    """
    if not diff:
        return 0, 0

    additions = deletions = 0
    for line in diff.splitlines():
        if line.startswith("+") and not line.startswith("+++"):
            additions += 1
        elif line.startswith("-") and not line.startswith("---"):
            deletions += 1
    return additions, deletions


class DiffFetcher:
    """
    Async GitHub diff client.

    Args:
        api_url: GitHub API base URL
        token: Optional token sent as ``Authorization: token ...``
        timeout: Per-request timeout in seconds
        concurrency: Maximum in-flight requests for ``fetch_commit_diffs``
        transport: Optional httpx transport (tests use ``httpx.MockTransport``)
        circuit_breaker: Breaker shared by all GitHub calls
    """

    def __init__(
        self,
        api_url: Optional[str] = None,
        token: Optional[str] = None,
        timeout: Optional[float] = None,
        concurrency: Optional[int] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        circuit_breaker: Optional[CircuitBreaker] = None,
    ):
        if api_url is None or timeout is None or concurrency is None:
            from correlator.config import settings
            api_url = api_url or settings.github_api_url
            token = token if token is not None else settings.github_token
            timeout = timeout if timeout is not None else settings.diff_fetch_timeout_seconds
            concurrency = concurrency if concurrency is not None else settings.diff_fetch_concurrency

        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        self.concurrency = max(1, concurrency)
        self.circuit_breaker = circuit_breaker or create_github_circuit_breaker()

        headers = {
            "Accept": DIFF_MEDIA_TYPE,
            "User-Agent": USER_AGENT,
        }
        if token:
            headers["Authorization"] = f"token {token}"

        self._client = httpx.AsyncClient(
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    async def close(self) -> None:
        await self._client.aclose()

    async def _get_diff(self, path: str) -> str:
        url = f"{self.api_url}{path}"

        async def _request() -> str:
            async with track_api_call(None, "github", logger, endpoint=url):
                response = await self._client.get(url)
                response.raise_for_status()
                return response.text

        try:
            return await self.circuit_breaker.call(_request)
        except Exception as e:
            raise DiffFetchError(f"Failed to fetch diff from {url}: {e}") from e

    async def fetch_commit_diff(self, repo_full_name: str, sha: str) -> Optional[str]:
        """Unified diff of one commit, or None if it could not be fetched."""
        try:
            return await self._get_diff(f"/repos/{repo_full_name}/commits/{sha}")
        except DiffFetchError as e:
            logger.warning(str(e), extra={"repository": repo_full_name, "sha": sha})
            return None

    async def fetch_pull_request_diff(self, repo_full_name: str, number: int) -> Optional[str]:
        """Unified diff of a pull request, or None if it could not be fetched."""
        try:
            return await self._get_diff(f"/repos/{repo_full_name}/pulls/{number}")
        except DiffFetchError as e:
            logger.warning(str(e), extra={"repository": repo_full_name, "pr_number": number})
            return None

    async def fetch_commit_diffs(
        self,
        repo_full_name: str,
        shas: Sequence[str],
    ) -> Dict[str, Optional[str]]:
        """
        Fetch diffs for several commits concurrently.

        At most ``concurrency`` requests are in flight. Every SHA appears in
        the result; failed fetches map to None.
        """
        semaphore = asyncio.Semaphore(self.concurrency)

        async def _bounded(sha: str) -> Tuple[str, Optional[str]]:
            async with semaphore:
                return sha, await self.fetch_commit_diff(repo_full_name, sha)

        results = await asyncio.gather(*(_bounded(sha) for sha in shas))
        diffs = dict(results)

        if shas:
            failed = [sha for sha, diff in diffs.items() if diff is None]
            handle_partial_failure(
                operation_name="fetch_commit_diffs",
                total_items=len(diffs),
                successful_items=len(diffs) - len(failed),
                errors=[f"diff unavailable for {sha}" for sha in failed],
                context={"repository": repo_full_name},
            )

        return diffs
