"""
Transcript upload and commit/PR analysis endpoints.

Every write here returns as soon as the synchronous state is stored and the
job is queued; clients poll the GET endpoints (or listen for notifications)
for the terminal state.
"""

from fastapi import APIRouter, Depends, HTTPException

from correlator.api import to_http_exception
from correlator.dependencies import get_orchestrator
from correlator.models import AnalysisKind, Transcript
from correlator.models.api_response import (
    AnalysisRequest,
    AnalysisStatusResponse,
    TranscriptCreate,
)
from correlator.services.analysis_orchestrator import AnalysisOrchestrator
from correlator.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/api", tags=["analysis"])


def _status_response(entity) -> AnalysisStatusResponse:
    return AnalysisStatusResponse(
        id=entity.id,
        status=entity.ai_analysis_status,
        result=entity.ai_analysis,
    )


# ========== Transcripts ==========


@router.post("/transcripts", response_model=Transcript, status_code=201)
async def create_transcript(
    request: TranscriptCreate,
    orchestrator: AnalysisOrchestrator = Depends(get_orchestrator),
) -> Transcript:
    """Store a transcript in ``pending`` and queue its analysis."""
    try:
        return await orchestrator.create_transcript(
            request.project_id,
            request.uploader_id,
            request.name,
            request.content,
        )
    except Exception as e:
        raise to_http_exception(e, "create transcript")


@router.post("/transcripts/{transcript_id}/reprocess", response_model=Transcript)
async def reprocess_transcript(
    transcript_id: str,
    orchestrator: AnalysisOrchestrator = Depends(get_orchestrator),
) -> Transcript:
    try:
        return await orchestrator.reprocess_transcript(transcript_id)
    except Exception as e:
        raise to_http_exception(e, "reprocess transcript")


@router.get("/transcripts/{transcript_id}", response_model=Transcript)
async def get_transcript(
    transcript_id: str,
    orchestrator: AnalysisOrchestrator = Depends(get_orchestrator),
) -> Transcript:
    try:
        return await orchestrator.state.load(AnalysisKind.TRANSCRIPT, transcript_id)
    except Exception as e:
        raise to_http_exception(e, "get transcript")


# ========== Commits and pull requests ==========


async def _request_analysis(
    orchestrator: AnalysisOrchestrator,
    kind: AnalysisKind,
    target_id: str,
    request: AnalysisRequest,
) -> AnalysisStatusResponse:
    try:
        entity = await orchestrator.request_code_analysis(kind, target_id, request.user_id)
    except Exception as e:
        raise to_http_exception(e, f"request {kind.value} analysis")
    return _status_response(entity)


async def _analysis_status(
    orchestrator: AnalysisOrchestrator,
    kind: AnalysisKind,
    target_id: str,
) -> AnalysisStatusResponse:
    try:
        entity = await orchestrator.state.load(kind, target_id)
    except Exception as e:
        raise to_http_exception(e, f"get {kind.value} analysis")
    return _status_response(entity)


@router.post("/commits/{commit_id}/analysis", response_model=AnalysisStatusResponse, status_code=202)
async def request_commit_analysis(
    commit_id: str,
    request: AnalysisRequest,
    orchestrator: AnalysisOrchestrator = Depends(get_orchestrator),
) -> AnalysisStatusResponse:
    """Trigger, or retry, AI analysis of a commit."""
    return await _request_analysis(orchestrator, AnalysisKind.COMMIT, commit_id, request)


@router.get("/commits/{commit_id}/analysis", response_model=AnalysisStatusResponse)
async def get_commit_analysis(
    commit_id: str,
    orchestrator: AnalysisOrchestrator = Depends(get_orchestrator),
) -> AnalysisStatusResponse:
    return await _analysis_status(orchestrator, AnalysisKind.COMMIT, commit_id)


@router.post(
    "/pull-requests/{pr_id}/analysis",
    response_model=AnalysisStatusResponse,
    status_code=202,
)
async def request_pull_request_analysis(
    pr_id: str,
    request: AnalysisRequest,
    orchestrator: AnalysisOrchestrator = Depends(get_orchestrator),
) -> AnalysisStatusResponse:
    """Trigger, or retry, AI analysis of a pull request."""
    return await _request_analysis(orchestrator, AnalysisKind.PULL_REQUEST, pr_id, request)


@router.get("/pull-requests/{pr_id}/analysis", response_model=AnalysisStatusResponse)
async def get_pull_request_analysis(
    pr_id: str,
    orchestrator: AnalysisOrchestrator = Depends(get_orchestrator),
) -> AnalysisStatusResponse:
    return await _analysis_status(orchestrator, AnalysisKind.PULL_REQUEST, pr_id)
