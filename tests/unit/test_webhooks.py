"""
Unit tests for the GitHub webhook endpoint.
"""

import hashlib
import hmac
import json
from unittest.mock import AsyncMock
from urllib.parse import urlencode

import pytest

from conftest import sample_diff
from correlator.config import settings
from correlator.models import TicketStatus


def generate_signature(payload: bytes, secret: str) -> str:
    return "sha256=" + hmac.new(secret.encode(), payload, hashlib.sha256).hexdigest()


def post_event(client, event: str, payload: dict, **headers):
    return client.post(
        "/api/webhooks/github",
        content=json.dumps(payload),
        headers={"Content-Type": "application/json", "X-GitHub-Event": event, **headers},
    )


def test_liveness_probe(client):
    response = client.get("/api/webhooks/github")

    assert response.status_code == 200
    assert response.json()["status"] == "GitHub webhook endpoint is ready"
    assert "timestamp" in response.json()


def test_push_end_to_end(client, store, project, push_payload, github_diffs):
    ticket = store.add_ticket(project.id, "AUTH-7")
    github_diffs["sha1"] = sample_diff(added=10)

    response = post_event(
        client, "push", push_payload([{"id": "sha1", "message": "Fix login bug, closes AUTH-7"}])
    )

    assert response.status_code == 200
    assert response.json() == {"success": True}
    assert len(store.branches) == 1
    commit = next(iter(store.commits.values()))
    assert commit.ticket_id == ticket.id
    assert [e.header for e in store.audit_logs] == ["Commit Pushed"]


def test_unknown_repository_acknowledged(client, store, push_payload):
    response = post_event(client, "push", push_payload([{"id": "sha1"}], repository="acme/widgets"))

    assert response.status_code == 200
    assert store.branches == {}
    assert store.commits == {}


def test_form_encoded_payload(client, store, project, pull_request_payload):
    body = urlencode({"payload": json.dumps(pull_request_payload())})

    response = client.post(
        "/api/webhooks/github",
        content=body,
        headers={"Content-Type": "application/x-www-form-urlencoded", "X-GitHub-Event": "pull_request"},
    )

    assert response.status_code == 200
    assert len(store.pull_requests) == 1


def test_form_without_payload_is_error(client):
    response = client.post(
        "/api/webhooks/github",
        content="foo=bar",
        headers={"Content-Type": "application/x-www-form-urlencoded", "X-GitHub-Event": "push"},
    )

    assert response.status_code == 500
    assert response.json() == {"error": "Webhook processing failed"}


def test_invalid_json_is_error(client):
    response = client.post(
        "/api/webhooks/github",
        content="{not json",
        headers={"Content-Type": "application/json", "X-GitHub-Event": "push"},
    )

    assert response.status_code == 500


def test_other_events_are_ignored(client, store, project):
    response = post_event(client, "issues", {"action": "opened", "repository": {"full_name": "acme/webapp"}})

    assert response.status_code == 200
    assert store.audit_logs == []


def test_merge_redelivery_completes_ticket_once(client, store, project, pull_request_payload):
    ticket = store.add_ticket(project.id, "AUTH-7", ticket_status=TicketStatus.IN_PROGRESS)
    merge = pull_request_payload(action="closed", state="closed", merged=True, title="Closes AUTH-7")

    assert post_event(client, "pull_request", merge).status_code == 200
    assert post_event(client, "pull_request", merge).status_code == 200

    assert store.tickets[ticket.id].ticket_status == TicketStatus.DONE
    assert store.audit_headers(project.id).count("Ticket Auto-Completed") == 1


class TestSignature:
    @pytest.fixture(autouse=True)
    def secret(self, monkeypatch):
        monkeypatch.setattr(settings, "webhook_secret", "s3cret")

    def test_missing_signature_rejected(self, client, push_payload):
        response = post_event(client, "push", push_payload([{"id": "sha1"}]))

        assert response.status_code == 401
        assert "Invalid webhook signature" in response.json()["detail"]

    def test_wrong_signature_rejected(self, client, store, project, push_payload):
        response = post_event(
            client,
            "push",
            push_payload([{"id": "sha1"}]),
            **{"X-Hub-Signature-256": generate_signature(b"other", "s3cret")},
        )

        assert response.status_code == 401
        assert store.commits == {}

    def test_valid_signature_accepted(self, client, store, project, push_payload):
        body = json.dumps(push_payload([{"id": "sha1"}])).encode()

        response = client.post(
            "/api/webhooks/github",
            content=body,
            headers={
                "Content-Type": "application/json",
                "X-GitHub-Event": "push",
                "X-Hub-Signature-256": generate_signature(body, "s3cret"),
            },
        )

        assert response.status_code == 200
        assert len(store.commits) == 1


def test_audit_failures_do_not_undo_merge(client, store, project, pull_request_payload, monkeypatch):
    ticket = store.add_ticket(project.id, "AUTH-7", ticket_status=TicketStatus.IN_PROGRESS)
    monkeypatch.setattr(store, "create_audit_log", AsyncMock(side_effect=RuntimeError("audit table locked")))
    monkeypatch.setattr(store, "create_ticket_update", AsyncMock(side_effect=RuntimeError("audit table locked")))
    merge = pull_request_payload(action="closed", state="closed", merged=True, title="Closes AUTH-7")

    response = post_event(client, "pull_request", merge)

    assert response.status_code == 200
    assert store.tickets[ticket.id].ticket_status == TicketStatus.DONE
    pull_request = next(iter(store.pull_requests.values()))
    assert pull_request.merged is True
    assert pull_request.ticket_id == ticket.id
    assert store.audit_logs == []
