"""Business logic services package."""

from correlator.services.redis_client import RedisClient, RedisConnectionError
from correlator.services.notifier import Notifier
from correlator.services.audit import AuditRecorder
from correlator.services.diff_fetcher import DiffFetcher
from correlator.services.reference_extractor import extract_ticket_references
from correlator.services.analysis_state import AnalysisStateMachine
from correlator.services.analysis_orchestrator import AnalysisOrchestrator
from correlator.services.push_handler import PushHandler
from correlator.services.pull_request_handler import PullRequestHandler
from correlator.services.transcript_processor import TranscriptProcessor
from correlator.services.code_analysis_processor import CodeAnalysisProcessor
from correlator.services.ticket_service import TicketService

__all__ = [
    'RedisClient',
    'RedisConnectionError',
    'Notifier',
    'AuditRecorder',
    'DiffFetcher',
    'extract_ticket_references',
    'AnalysisStateMachine',
    'AnalysisOrchestrator',
    'PushHandler',
    'PullRequestHandler',
    'TranscriptProcessor',
    'CodeAnalysisProcessor',
    'TicketService',
]
