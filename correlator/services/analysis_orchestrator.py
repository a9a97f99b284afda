"""
Scheduling side of AI enrichment.

Writes the synchronous state (``pending`` on creation, ``processing`` on a
manual retry) inside the triggering request and hands the work to the
Redis queue. The worker process performs the enrichment itself.
"""

from typing import Optional

from correlator.errors import InvalidTransitionError, NotFoundError
from correlator.models import (
    AnalysisJob,
    AnalysisKind,
    ProcessingStatus,
    Transcript,
)
from correlator.services.analysis_state import AnalysisStateMachine
from correlator.storage import Store
from correlator.utils.logging import get_logger, log_error_with_context

logger = get_logger(__name__)

IN_FLIGHT = (ProcessingStatus.PENDING, ProcessingStatus.PROCESSING)


class AnalysisOrchestrator:
    """Creates analysis requests and enqueues analysis jobs."""

    def __init__(self, store: Store, redis_client, state_machine: Optional[AnalysisStateMachine] = None):
        self._store = store
        self._redis = redis_client
        self.state = state_machine or AnalysisStateMachine(store)

    async def _enqueue(self, kind: AnalysisKind, target_id: str, user_id: Optional[str]) -> AnalysisJob:
        job = AnalysisJob(kind=kind, target_id=target_id, user_id=user_id)
        try:
            await self._redis.enqueue_analysis(job)
        except Exception as e:
            log_error_with_context(
                logger,
                f"Failed to enqueue {kind.value} analysis",
                e,
                job_id=job.job_id,
                target_id=target_id,
            )
            await self.state.mark_failed(kind, target_id)
            raise
        return job

    # ========== Transcripts ==========

    async def create_transcript(
        self,
        project_id: str,
        uploader_id: str,
        name: str,
        content: str,
    ) -> Transcript:
        """
        Store a new transcript in ``pending`` and schedule its analysis.

        Raises:
            NotFoundError: If the project does not exist
        """
        project = await self._store.get_project(project_id)
        if project is None:
            raise NotFoundError("Project", project_id)

        transcript = await self._store.create_transcript(
            Transcript(
                project_id=project_id,
                uploader_id=uploader_id,
                name=name,
                content=content,
                processing_status=ProcessingStatus.PENDING,
            )
        )
        logger.info(
            f"Transcript {transcript.id} created",
            extra={"project_id": project_id, "transcript_id": transcript.id},
        )

        await self._enqueue(AnalysisKind.TRANSCRIPT, transcript.id, uploader_id)
        return transcript

    async def reprocess_transcript(self, transcript_id: str) -> Transcript:
        """Move a finished transcript back to ``processing`` and schedule it again."""
        transcript = await self.state.mark_processing(AnalysisKind.TRANSCRIPT, transcript_id)
        await self._enqueue(AnalysisKind.TRANSCRIPT, transcript_id, transcript.uploader_id)
        return transcript

    # ========== Commits and pull requests ==========

    async def request_code_analysis(
        self,
        kind: AnalysisKind,
        target_id: str,
        user_id: Optional[str] = None,
    ):
        """
        Trigger analysis of a commit or pull request.

        A never-analysed target enters ``pending``; a completed or failed one
        re-enters ``processing`` (manual retry).

        Raises:
            NotFoundError: If the target does not exist
            InvalidTransitionError: If an analysis is already queued or running
        """
        entity = await self.state.load(kind, target_id)
        current = self.state.status_of(kind, entity)

        if current in IN_FLIGHT:
            raise InvalidTransitionError(
                f"{kind.value} {target_id} already has an analysis {current.value}"
            )

        if current is None:
            updated = await self.state.mark_pending(kind, target_id)
        else:
            updated = await self.state.mark_processing(kind, target_id)

        await self._enqueue(kind, target_id, user_id)
        return updated

    async def schedule_automatic_analysis(self, kind: AnalysisKind, target_id: str) -> bool:
        """
        Best-effort analysis trigger used during webhook ingestion.

        Returns:
            True if the job was enqueued
        """
        try:
            await self.state.mark_pending(kind, target_id)
            await self._enqueue(kind, target_id, None)
        except Exception as e:
            log_error_with_context(
                logger,
                f"Automatic {kind.value} analysis not scheduled",
                e,
                target_id=target_id,
            )
            return False
        return True
