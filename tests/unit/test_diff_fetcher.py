"""
Unit tests for GitHub diff retrieval.
"""

import httpx
import pytest

from correlator.services.diff_fetcher import DiffFetcher, count_diff_lines

DIFF = """diff --git a/app.py b/app.py
--- a/app.py
+++ b/app.py
@@ -1,2 +1,3 @@
-old
+new
+newer
 context
"""


def test_count_diff_lines_ignores_file_headers():
    assert count_diff_lines(DIFF) == (2, 1)
    assert count_diff_lines(None) == (0, 0)


async def test_fetch_commit_diff_sends_diff_media_type():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, text=DIFF)

    fetcher = DiffFetcher(
        api_url="https://api.github.test/",
        token="secret",
        timeout=5,
        concurrency=2,
        transport=httpx.MockTransport(handler),
    )

    assert await fetcher.fetch_commit_diff("acme/webapp", "abc") == DIFF

    request = seen[0]
    assert str(request.url) == "https://api.github.test/repos/acme/webapp/commits/abc"
    assert request.headers["Accept"] == "application/vnd.github.v3.diff"
    assert request.headers["Authorization"] == "token secret"
    assert request.headers["User-Agent"] == "ticket-correlator"
    await fetcher.close()


async def test_fetch_pull_request_diff_path():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/repos/acme/webapp/pulls/42"
        return httpx.Response(200, text=DIFF)

    fetcher = DiffFetcher(
        api_url="https://api.github.test",
        timeout=5,
        concurrency=1,
        transport=httpx.MockTransport(handler),
    )

    assert await fetcher.fetch_pull_request_diff("acme/webapp", 42) == DIFF
    await fetcher.close()


async def test_no_token_sends_no_authorization_header():
    def handler(request: httpx.Request) -> httpx.Response:
        assert "Authorization" not in request.headers
        return httpx.Response(200, text=DIFF)

    fetcher = DiffFetcher(
        api_url="https://api.github.test",
        token="",
        timeout=5,
        concurrency=1,
        transport=httpx.MockTransport(handler),
    )

    assert await fetcher.fetch_commit_diff("acme/webapp", "abc") == DIFF
    await fetcher.close()


@pytest.mark.parametrize("status", [403, 404, 500])
async def test_http_errors_yield_none(status):
    fetcher = DiffFetcher(
        api_url="https://api.github.test",
        timeout=5,
        concurrency=1,
        transport=httpx.MockTransport(lambda request: httpx.Response(status)),
    )

    assert await fetcher.fetch_commit_diff("acme/webapp", "abc") is None
    await fetcher.close()


async def test_transport_error_yields_none():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectTimeout("timed out", request=request)

    fetcher = DiffFetcher(
        api_url="https://api.github.test",
        timeout=5,
        concurrency=1,
        transport=httpx.MockTransport(handler),
    )

    assert await fetcher.fetch_pull_request_diff("acme/webapp", 1) is None
    await fetcher.close()


async def test_fetch_commit_diffs_partial_failure():
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/bad"):
            return httpx.Response(404)
        return httpx.Response(200, text=DIFF)

    fetcher = DiffFetcher(
        api_url="https://api.github.test",
        timeout=5,
        concurrency=2,
        transport=httpx.MockTransport(handler),
    )

    diffs = await fetcher.fetch_commit_diffs("acme/webapp", ["a", "bad", "c"])

    assert diffs == {"a": DIFF, "bad": None, "c": DIFF}
    await fetcher.close()
