"""
Service wiring for the API.

Long-lived clients (store, Redis, GitHub) are process singletons created on
first use; request-scoped services are assembled through FastAPI ``Depends``
so tests can override any collaborator with ``app.dependency_overrides``.
"""

from typing import Optional

from fastapi import Depends

from correlator.services.analysis_orchestrator import AnalysisOrchestrator
from correlator.services.audit import AuditRecorder
from correlator.services.diff_fetcher import DiffFetcher
from correlator.services.notifier import Notifier
from correlator.services.pull_request_handler import PullRequestHandler
from correlator.services.push_handler import PushHandler
from correlator.services.redis_client import RedisClient
from correlator.services.ticket_service import TicketService
from correlator.storage import MySQLStore, Store

_store: Optional[Store] = None
_redis_client: Optional[RedisClient] = None
_diff_fetcher: Optional[DiffFetcher] = None


def get_store() -> Store:
    global _store
    if _store is None:
        _store = MySQLStore()
    return _store


def get_redis_client() -> RedisClient:
    global _redis_client
    if _redis_client is None:
        _redis_client = RedisClient()
    return _redis_client


def get_diff_fetcher() -> DiffFetcher:
    global _diff_fetcher
    if _diff_fetcher is None:
        _diff_fetcher = DiffFetcher()
    return _diff_fetcher


def get_audit_recorder(store: Store = Depends(get_store)) -> AuditRecorder:
    return AuditRecorder(store)


def get_notifier(redis_client: RedisClient = Depends(get_redis_client)) -> Notifier:
    return Notifier(redis_client)


def get_orchestrator(
    store: Store = Depends(get_store),
    redis_client: RedisClient = Depends(get_redis_client),
) -> AnalysisOrchestrator:
    return AnalysisOrchestrator(store, redis_client)


def get_push_handler(
    store: Store = Depends(get_store),
    audit: AuditRecorder = Depends(get_audit_recorder),
    notifier: Notifier = Depends(get_notifier),
    diff_fetcher: DiffFetcher = Depends(get_diff_fetcher),
    orchestrator: AnalysisOrchestrator = Depends(get_orchestrator),
) -> PushHandler:
    return PushHandler(store, audit, notifier, diff_fetcher, orchestrator)


def get_pull_request_handler(
    store: Store = Depends(get_store),
    audit: AuditRecorder = Depends(get_audit_recorder),
    notifier: Notifier = Depends(get_notifier),
    diff_fetcher: DiffFetcher = Depends(get_diff_fetcher),
    orchestrator: AnalysisOrchestrator = Depends(get_orchestrator),
) -> PullRequestHandler:
    return PullRequestHandler(store, audit, notifier, diff_fetcher, orchestrator)


def get_ticket_service(
    store: Store = Depends(get_store),
    audit: AuditRecorder = Depends(get_audit_recorder),
) -> TicketService:
    return TicketService(store, audit)


async def close_clients() -> None:
    """Release the process singletons (application shutdown)."""
    global _store, _redis_client, _diff_fetcher
    if _store is not None:
        await _store.close()
        _store = None
    if _redis_client is not None:
        await _redis_client.close()
        _redis_client = None
    if _diff_fetcher is not None:
        await _diff_fetcher.close()
        _diff_fetcher = None
