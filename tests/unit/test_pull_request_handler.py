"""
Unit tests for pull request event processing.
"""

from datetime import timedelta

from conftest import sample_diff
from correlator.models import ProcessingStatus, PullRequestPayload, TicketStatus


def pr_event(pull_request_payload, **kwargs) -> PullRequestPayload:
    return PullRequestPayload.model_validate(pull_request_payload(**kwargs))


async def test_opened_pr_is_created_and_linked(store, project, pull_request_handler, pull_request_payload):
    ticket = store.add_ticket(project.id, "AUTH-7")

    result = await pull_request_handler.handle(
        pr_event(pull_request_payload, title="Login page", body="Closes AUTH-7")
    )

    assert result.created is True
    pr = await store.find_pull_request(project.id, 42)
    assert pr.ticket_id == ticket.id
    assert pr.state == "open"
    assert pr.base_branch == "main"
    assert pr.author == "ada"
    assert pr.branch_id == (await store.find_branch(project.id, "feature/login")).id

    entries = [e for e in store.audit_logs if e.header == "Pull Request Opened"]
    assert len(entries) == 1
    assert entries[0].description == 'PR #42 "Login page" opened (linked to AUTH-7)'


async def test_redelivery_updates_in_place(store, project, pull_request_handler, pull_request_payload):
    await pull_request_handler.handle(pr_event(pull_request_payload, title="WIP"))
    result = await pull_request_handler.handle(
        pr_event(pull_request_payload, action="edited", title="Login page")
    )

    assert result.created is False
    assert len(store.pull_requests) == 1
    assert (await store.find_pull_request(project.id, 42)).title == "Login page"
    assert store.audit_headers(project.id) == ["Pull Request Opened", "Pull Request Updated"]


async def test_draft_state(store, project, pull_request_handler, pull_request_payload):
    await pull_request_handler.handle(pr_event(pull_request_payload, draft=True))

    assert (await store.find_pull_request(project.id, 42)).state == "draft"


async def test_later_delivery_keeps_stored_diff(store, project, pull_request_handler, pull_request_payload, github_diffs):
    github_diffs["pulls/42"] = sample_diff(added=4)
    await pull_request_handler.handle(pr_event(pull_request_payload))

    del github_diffs["pulls/42"]
    await pull_request_handler.handle(pr_event(pull_request_payload, action="synchronize"))

    assert (await store.find_pull_request(project.id, 42)).diff == sample_diff(added=4)


async def test_first_reference_wins(store, project, pull_request_handler, pull_request_payload):
    first = store.add_ticket(project.id, "AUTH-7")
    store.add_ticket(project.id, "UI-2", created_at=first.created_at + timedelta(seconds=1))

    await pull_request_handler.handle(pr_event(pull_request_payload, title="UI-2 and AUTH-7"))

    assert (await store.find_pull_request(project.id, 42)).ticket_id == first.id


async def test_merge_auto_completes_linked_ticket_once(store, project, pull_request_handler, pull_request_payload):
    ticket = store.add_ticket(project.id, "AUTH-7", ticket_status=TicketStatus.IN_PROGRESS)
    merge = pr_event(
        pull_request_payload,
        action="closed",
        state="closed",
        merged=True,
        title="Fix login, closes AUTH-7",
    )

    first = await pull_request_handler.handle(merge)
    second = await pull_request_handler.handle(merge)

    assert first.auto_completed is True
    assert second.auto_completed is False
    assert store.tickets[ticket.id].ticket_status == TicketStatus.DONE
    assert store.audit_headers(project.id).count("Ticket Auto-Completed") == 1
    assert store.audit_headers(project.id).count("Pull Request Merged") == 2

    updates = [u for u in store.ticket_updates if u.ticket_id == ticket.id]
    assert len(updates) == 1
    assert updates[0].prev_status == "in_progress"
    assert updates[0].after_status == "done"
    assert updates[0].user_id is None


async def test_closed_without_merge_does_not_complete(store, project, pull_request_handler, pull_request_payload):
    ticket = store.add_ticket(project.id, "AUTH-7")

    await pull_request_handler.handle(
        pr_event(pull_request_payload, action="closed", state="closed", title="closes AUTH-7")
    )

    assert store.tickets[ticket.id].ticket_status == TicketStatus.TODO
    assert "Pull Request Closed" in store.audit_headers(project.id)


async def test_opened_with_large_diff_schedules_analysis(
    store, project, pull_request_handler, pull_request_payload, github_diffs, redis_client
):
    github_diffs["pulls/42"] = sample_diff(added=30)

    result = await pull_request_handler.handle(pr_event(pull_request_payload))

    assert store.pull_requests[result.pull_request_id].ai_analysis_status == ProcessingStatus.PENDING
    assert await redis_client.get_queue_length() == 1


async def test_unknown_repository(store, project, pull_request_handler, pull_request_payload):
    result = await pull_request_handler.handle(pr_event(pull_request_payload, repository="acme/widgets"))

    assert result.pull_request_id is None
    assert store.pull_requests == {}
