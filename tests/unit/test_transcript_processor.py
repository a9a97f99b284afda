"""
Unit tests for transcript analysis jobs.
"""

import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from correlator.errors import AnalysisProviderError
from correlator.models import (
    AnalysisJob,
    AnalysisKind,
    MemberRole,
    ModerationStatus,
    ProcessingStatus,
    TicketStatus,
    Transcript,
)
from correlator.services.analysis_state import AnalysisStateMachine
from correlator.services.transcript_processor import TranscriptProcessor

ANALYSIS = {
    "summary": "Sprint planning for the login revamp.",
    "keyTopics": ["login", "billing"],
    "actionItems": [
        {
            "name": "Build login form",
            "description": "New login form with SSO",
            "priority": "high",
            "suggestedAssigneeRole": "engineer",
            "reasoning": "Frontend work",
            "citations": [{"text": "We need SSO on login", "timestamp": "00:04"}],
        },
        {
            "name": "Write release notes",
            "description": "Announce the new login",
            "priority": "low",
            "suggestedAssigneeRole": "pm",
            "reasoning": "Communication task",
        },
    ],
}


@pytest.fixture
def llm():
    client = MagicMock()
    client.complete = AsyncMock(return_value=json.dumps(ANALYSIS))
    return client


@pytest.fixture
def processor(store, llm, audit, notifier) -> TranscriptProcessor:
    return TranscriptProcessor(store, llm, AnalysisStateMachine(store), audit, notifier)


@pytest.fixture
async def transcript(store, project) -> Transcript:
    store.add_member(project.id, "pm-1", MemberRole.PM)
    store.add_member(project.id, "eng-busy", MemberRole.ENGINEER)
    store.add_member(project.id, "eng-free", MemberRole.ENGINEER)
    store.add_ticket(project.id, "OLD-1", assignee_ids=["eng-busy"])
    return await store.create_transcript(
        Transcript(project_id=project.id, uploader_id="pm-1", name="Sprint planning", content="...")
    )


def job_for(transcript: Transcript) -> AnalysisJob:
    return AnalysisJob(kind=AnalysisKind.TRANSCRIPT, target_id=transcript.id, user_id=transcript.uploader_id)


async def test_generates_pending_tickets(store, processor, transcript):
    status = await processor.process(job_for(transcript))

    assert status == ProcessingStatus.COMPLETED
    stored = store.transcripts[transcript.id]
    assert stored.processing_status == ProcessingStatus.COMPLETED
    assert "Build login form" in stored.ai_analysis
    assert "**Tickets Created:**" in stored.ai_analysis

    generated = [t for t in store.tickets.values() if t.transcript_id == transcript.id]
    assert len(generated) == 2
    for ticket in generated:
        assert ticket.ticket_status == TicketStatus.TODO
        assert ticket.creator_status == ModerationStatus.PENDING
        assert ticket.creator_id == "pm-1"


async def test_role_based_assignment(store, processor, transcript):
    await processor.process(job_for(transcript))

    by_name = {t.name: t for t in store.tickets.values() if t.transcript_id == transcript.id}
    assert by_name["Build login form"].assignee_ids == ["eng-free"]
    assert by_name["Write release notes"].assignee_ids == ["pm-1"]


async def test_description_and_default_citation(store, processor, transcript):
    await processor.process(job_for(transcript))

    by_name = {t.name: t for t in store.tickets.values() if t.transcript_id == transcript.id}
    form = by_name["Build login form"]
    assert form.description == "New login form with SSO\n\n**AI Reasoning:** Frontend work"
    assert form.citations[0].text == "We need SSO on login"

    notes = by_name["Write release notes"]
    assert notes.citations[0].text == "Generated from transcript: Sprint planning"
    assert notes.citations[0].context == "AI Analysis"


async def test_history_and_audit_attributed_to_uploader(store, processor, transcript):
    await processor.process(job_for(transcript))

    generated = {t.id for t in store.tickets.values() if t.transcript_id == transcript.id}
    updates = [u for u in store.ticket_updates if u.ticket_id in generated]
    assert len(updates) == 2
    assert all(u.prev_status == "none" and u.after_status == "todo" for u in updates)
    assert all(u.user_id == "pm-1" for u in updates)

    audit = [e for e in store.audit_logs if e.header == "AI Ticket Generated"]
    assert len(audit) == 2
    assert all(e.user_id == "pm-1" for e in audit)


async def test_provider_failure_marks_failed(store, llm, processor, transcript):
    llm.complete.side_effect = AnalysisProviderError("provider down")

    status = await processor.process(job_for(transcript))

    stored = store.transcripts[transcript.id]
    assert status == ProcessingStatus.FAILED
    assert stored.processing_status == ProcessingStatus.FAILED
    assert stored.ai_analysis is None
    assert not [t for t in store.tickets.values() if t.transcript_id == transcript.id]


async def test_invalid_structure_marks_failed(store, llm, processor, transcript):
    llm.complete.return_value = json.dumps({"summary": "no action items"})

    status = await processor.process(job_for(transcript))

    assert status == ProcessingStatus.FAILED
    assert store.transcripts[transcript.id].processing_status == ProcessingStatus.FAILED
