"""
Processing-state machine shared by transcripts, commits and pull requests.

    None ──► pending ──► processing ──► completed
                │            ▲   │
                │            │   └────► failed
                └──► failed  └── completed / failed (manual retry)

Entering ``processing`` clears any previous result. ``completed`` stores the
result in the same write as the state; ``failed`` stores no result.
``pending`` may fail directly when the job could not be scheduled.
"""

from typing import Any, Dict, List, Optional, Sequence, Tuple

from correlator.errors import InvalidTransitionError, NotFoundError
from correlator.models import AnalysisKind, ProcessingStatus, Ticket
from correlator.storage import Store
from correlator.utils.logging import get_logger, log_state_transition

logger = get_logger(__name__)

ALLOWED_TRANSITIONS: Dict[Optional[ProcessingStatus], Tuple[ProcessingStatus, ...]] = {
    None: (ProcessingStatus.PENDING,),
    ProcessingStatus.PENDING: (ProcessingStatus.PROCESSING, ProcessingStatus.FAILED),
    ProcessingStatus.PROCESSING: (
        ProcessingStatus.PROCESSING,
        ProcessingStatus.COMPLETED,
        ProcessingStatus.FAILED,
    ),
    ProcessingStatus.COMPLETED: (ProcessingStatus.PROCESSING,),
    ProcessingStatus.FAILED: (ProcessingStatus.PROCESSING,),
}

_ENTITY_NAMES = {
    AnalysisKind.TRANSCRIPT: "Transcript",
    AnalysisKind.COMMIT: "Commit",
    AnalysisKind.PULL_REQUEST: "Pull request",
}


def can_transition(current: Optional[ProcessingStatus], target: ProcessingStatus) -> bool:
    return target in ALLOWED_TRANSITIONS.get(current, ())


def check_transition(
    current: Optional[ProcessingStatus],
    target: ProcessingStatus,
    kind: AnalysisKind,
    target_id: str,
) -> None:
    if not can_transition(current, target):
        raise InvalidTransitionError(
            f"Cannot move {kind.value} {target_id} from "
            f"{current.value if current else 'none'} to {target.value}"
        )


class AnalysisStateMachine:
    """Validated state writes for the three analysable entity kinds."""

    def __init__(self, store: Store):
        self._store = store

    async def load(self, kind: AnalysisKind, target_id: str):
        """
        Fetch the analysable entity.

        Raises:
            NotFoundError: If it does not exist
        """
        if kind == AnalysisKind.TRANSCRIPT:
            entity = await self._store.get_transcript(target_id)
        elif kind == AnalysisKind.COMMIT:
            entity = await self._store.get_commit(target_id)
        else:
            entity = await self._store.get_pull_request(target_id)

        if entity is None:
            raise NotFoundError(_ENTITY_NAMES[kind], target_id)
        return entity

    @staticmethod
    def status_of(kind: AnalysisKind, entity) -> Optional[ProcessingStatus]:
        if kind == AnalysisKind.TRANSCRIPT:
            return entity.processing_status
        return entity.ai_analysis_status

    async def _write(self, kind: AnalysisKind, target_id: str, status: ProcessingStatus, result: Any):
        if kind == AnalysisKind.TRANSCRIPT:
            return await self._store.update_transcript(
                target_id, processing_status=status, ai_analysis=result
            )
        if kind == AnalysisKind.COMMIT:
            return await self._store.update_commit(
                target_id, ai_analysis_status=status, ai_analysis=result
            )
        return await self._store.update_pull_request(
            target_id, ai_analysis_status=status, ai_analysis=result
        )

    async def transition(
        self,
        kind: AnalysisKind,
        target_id: str,
        target: ProcessingStatus,
        result: Any = None,
    ):
        """
        Move the entity to ``target``, validating the move first.

        Returns:
            The updated entity

        Raises:
            NotFoundError: If the entity does not exist
            InvalidTransitionError: If the move is not allowed
        """
        entity = await self.load(kind, target_id)
        current = self.status_of(kind, entity)
        check_transition(current, target, kind, target_id)

        stored_result = result if target == ProcessingStatus.COMPLETED else None
        updated = await self._write(kind, target_id, target, stored_result)

        log_state_transition(
            logger,
            kind.value,
            target_id,
            current.value if current else None,
            target.value,
        )
        return updated

    async def mark_pending(self, kind: AnalysisKind, target_id: str):
        return await self.transition(kind, target_id, ProcessingStatus.PENDING)

    async def mark_processing(self, kind: AnalysisKind, target_id: str):
        return await self.transition(kind, target_id, ProcessingStatus.PROCESSING)

    async def mark_completed(self, kind: AnalysisKind, target_id: str, result: Dict[str, Any]):
        return await self.transition(kind, target_id, ProcessingStatus.COMPLETED, result)

    async def mark_failed(self, kind: AnalysisKind, target_id: str):
        return await self.transition(kind, target_id, ProcessingStatus.FAILED)

    async def complete_transcript(
        self,
        transcript_id: str,
        analysis_text: str,
        tickets: Sequence[Ticket],
    ) -> List[Ticket]:
        """Persist generated tickets together with the ``completed`` state."""
        transcript = await self.load(AnalysisKind.TRANSCRIPT, transcript_id)
        check_transition(
            transcript.processing_status,
            ProcessingStatus.COMPLETED,
            AnalysisKind.TRANSCRIPT,
            transcript_id,
        )

        created = await self._store.complete_transcript(transcript_id, analysis_text, tickets)

        log_state_transition(
            logger,
            AnalysisKind.TRANSCRIPT.value,
            transcript_id,
            transcript.processing_status.value,
            ProcessingStatus.COMPLETED.value,
        )
        return created
