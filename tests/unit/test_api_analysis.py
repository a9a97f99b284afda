"""
Unit tests for transcript and commit/PR analysis endpoints.
"""

import json

import pytest

from correlator.models import Commit, ProcessingStatus, PullRequest
from correlator.services.redis_client import RedisClient


@pytest.fixture
def commit(store, project) -> Commit:
    commit = Commit(project_id=project.id, github_id="sha1", message="Fix", author="ada")
    store.commits[commit.id] = commit
    return commit


def queued_jobs(queue) -> list:
    return [json.loads(raw) for raw in queue.lrange(RedisClient.JOB_QUEUE_KEY, 0, -1)]


def test_create_transcript(client, store, project, queue):
    response = client.post(
        "/api/transcripts",
        json={"name": "Standup", "content": "We need SSO", "project_id": project.id, "uploader_id": "u1"},
    )

    assert response.status_code == 201
    body = response.json()
    assert body["processing_status"] == "pending"
    assert store.transcripts[body["id"]].processing_status == ProcessingStatus.PENDING
    assert queued_jobs(queue)[0]["target_id"] == body["id"]


def test_create_transcript_unknown_project(client):
    response = client.post(
        "/api/transcripts",
        json={"name": "Standup", "content": "...", "project_id": "missing", "uploader_id": "u1"},
    )

    assert response.status_code == 404


def test_create_transcript_validation(client, project):
    response = client.post(
        "/api/transcripts",
        json={"name": "", "content": "...", "project_id": project.id, "uploader_id": "u1"},
    )

    assert response.status_code == 422


def test_get_and_reprocess_transcript(client, store, project, queue):
    created = client.post(
        "/api/transcripts",
        json={"name": "Standup", "content": "...", "project_id": project.id, "uploader_id": "u1"},
    ).json()
    store.transcripts[created["id"]].processing_status = ProcessingStatus.FAILED

    assert client.get(f"/api/transcripts/{created['id']}").json()["processing_status"] == "failed"

    response = client.post(f"/api/transcripts/{created['id']}/reprocess")

    assert response.status_code == 200
    assert response.json()["processing_status"] == "processing"
    assert len(queued_jobs(queue)) == 2


def test_get_missing_transcript(client):
    assert client.get("/api/transcripts/missing").status_code == 404


def test_request_commit_analysis(client, store, commit, queue):
    response = client.post(f"/api/commits/{commit.id}/analysis", json={"user_id": "u1"})

    assert response.status_code == 202
    assert response.json() == {"id": commit.id, "status": "pending", "result": None}
    job = queued_jobs(queue)[0]
    assert (job["kind"], job["target_id"], job["user_id"]) == ("commit", commit.id, "u1")


def test_get_commit_analysis(client, store, commit):
    store.commits[commit.id] = commit.model_copy(
        update={"ai_analysis_status": ProcessingStatus.COMPLETED, "ai_analysis": {"summary": "ok"}}
    )

    response = client.get(f"/api/commits/{commit.id}/analysis")

    assert response.json() == {"id": commit.id, "status": "completed", "result": {"summary": "ok"}}


def test_never_analysed_commit_has_null_status(client, commit):
    assert client.get(f"/api/commits/{commit.id}/analysis").json()["status"] is None


def test_request_pull_request_analysis_retry(client, store, project):
    pr = PullRequest(
        project_id=project.id,
        github_id=42,
        title="Login",
        state="open",
        author="ada",
        ai_analysis_status=ProcessingStatus.FAILED,
    )
    store.pull_requests[pr.id] = pr

    response = client.post(f"/api/pull-requests/{pr.id}/analysis", json={})

    assert response.status_code == 202
    assert response.json()["status"] == "processing"


def test_analysis_for_missing_commit(client):
    assert client.post("/api/commits/missing/analysis", json={}).status_code == 404
    assert client.get("/api/pull-requests/missing/analysis").status_code == 404
