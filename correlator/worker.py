"""
Worker process for the analysis queue.

Pops analysis jobs from Redis and runs transcript and commit/PR enrichment
with at most ``MAX_WORKERS`` jobs in flight. Several worker processes may
share one queue. Shuts down gracefully on SIGTERM/SIGINT, letting in-flight
jobs finish.

Run with ``python -m correlator.worker``.
"""

import asyncio
import signal
import sys
from typing import Optional, Set

from correlator.analyzers.llm_client import LLMClient
from correlator.errors import InvalidTransitionError, NotFoundError
from correlator.models import AnalysisJob, AnalysisKind, ProcessingStatus
from correlator.services.analysis_state import AnalysisStateMachine
from correlator.services.audit import AuditRecorder
from correlator.services.code_analysis_processor import CodeAnalysisProcessor
from correlator.services.notifier import Notifier
from correlator.services.redis_client import RedisClient
from correlator.services.transcript_processor import TranscriptProcessor
from correlator.storage import MySQLStore, Store
from correlator.utils.logging import get_logger, log_error_with_context
from correlator.utils.metrics import JobMetrics

logger = get_logger(__name__)

DEQUEUE_TIMEOUT_SECONDS = 5


class Worker:
    """Polls the analysis queue and dispatches jobs to their processor."""

    def __init__(
        self,
        store: Optional[Store] = None,
        redis_client: Optional[RedisClient] = None,
        llm_client: Optional[LLMClient] = None,
        settings=None,
    ):
        if settings is None:
            from correlator.config import settings as app_settings
            settings = app_settings

        self.store = store or MySQLStore()
        self.redis_client = redis_client or RedisClient()
        llm = llm_client or LLMClient()

        self.state = AnalysisStateMachine(self.store)
        audit = AuditRecorder(self.store)
        notifier = Notifier(self.redis_client)
        self.transcripts = TranscriptProcessor(self.store, llm, self.state, audit, notifier)
        self.code_analysis = CodeAnalysisProcessor(self.store, llm, self.state, audit, notifier)

        self.job_timeout = settings.analysis_timeout_seconds
        self.max_workers = settings.max_workers
        self.running = False
        self._stopped = False
        self._semaphore = asyncio.Semaphore(self.max_workers)
        self._tasks: Set[asyncio.Task] = set()

    async def start(self) -> None:
        """
        Start the worker process.

        Initializes connections and begins polling the job queue.
        """
        logger.info("Starting worker process...")

        try:
            await self.store.initialize()
            await self.redis_client.initialize()
            logger.info("Store and Redis connections initialized")

            self.running = True
            self._register_signal_handlers()

            logger.info(f"Worker process started ({self.max_workers} concurrent jobs)")
            await self._process_jobs()

        except Exception as e:
            logger.error(f"Failed to start worker: {e}", exc_info=True)
            raise

    async def stop(self) -> None:
        """
        Stop the worker process gracefully.

        Waits for in-flight jobs before closing connections.
        """
        if self._stopped:
            return
        self._stopped = True
        self.running = False
        logger.info("Stopping worker process...")

        if self._tasks:
            logger.info(f"Waiting for {len(self._tasks)} in-flight job(s) to complete...")
            await asyncio.gather(*self._tasks, return_exceptions=True)

        await self.redis_client.close()
        await self.store.close()

        logger.info("Worker process stopped")

    async def _process_jobs(self) -> None:
        """Main loop: take a job whenever a slot is free."""
        logger.info("Starting job processing loop...")

        while self.running:
            await self._semaphore.acquire()
            try:
                # Blocking pop with a timeout so the running flag is checked periodically
                job = await self.redis_client.dequeue_analysis(timeout=DEQUEUE_TIMEOUT_SECONDS)
            except asyncio.CancelledError:
                self._semaphore.release()
                logger.info("Job processing cancelled")
                break
            except Exception as e:
                self._semaphore.release()
                logger.error(f"Error dequeuing job: {e}", exc_info=True)
                await asyncio.sleep(1)
                continue

            if job is None:
                self._semaphore.release()
                continue

            task = asyncio.create_task(self._run_slot(job))
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)

        logger.info("Job processing loop stopped")

    async def _run_slot(self, job: AnalysisJob) -> None:
        try:
            await self.process_job(job)
        finally:
            self._semaphore.release()

    async def process_job(self, job: AnalysisJob) -> Optional[ProcessingStatus]:
        """
        Run one job to its terminal state.

        Returns:
            ``completed`` or ``failed``, or None when the job was skipped
            because its target vanished or is not in a runnable state
        """
        metrics = JobMetrics(job.job_id, job.kind.value, job.target_id)
        metrics.start()
        log = logger.with_context(job_id=job.job_id)

        processor = self.transcripts if job.kind == AnalysisKind.TRANSCRIPT else self.code_analysis

        try:
            status = await asyncio.wait_for(processor.process(job, metrics), timeout=self.job_timeout)
        except (NotFoundError, InvalidTransitionError) as e:
            log.warning(f"Skipping {job.kind.value} job for {job.target_id}: {e}")
            metrics.complete("skipped", str(e))
            return None
        except asyncio.TimeoutError:
            log.error(f"{job.kind.value} job for {job.target_id} timed out after {self.job_timeout}s")
            await self._mark_failed(job)
            metrics.complete(ProcessingStatus.FAILED.value, "timeout")
            return ProcessingStatus.FAILED
        except Exception as e:
            log_error_with_context(log, f"{job.kind.value} job for {job.target_id} crashed", e)
            await self._mark_failed(job)
            metrics.complete(ProcessingStatus.FAILED.value, str(e))
            return ProcessingStatus.FAILED

        metrics.complete(status.value)
        return status

    async def _mark_failed(self, job: AnalysisJob) -> None:
        try:
            await self.state.mark_failed(job.kind, job.target_id)
        except Exception as e:
            log_error_with_context(
                logger,
                f"Could not mark {job.kind.value} {job.target_id} as failed",
                e,
                job_id=job.job_id,
            )

    def _register_signal_handlers(self) -> None:
        """Register signal handlers for graceful shutdown."""

        def signal_handler(signum, frame):
            signal_name = signal.Signals(signum).name
            logger.info(f"Received signal {signal_name}, initiating graceful shutdown...")
            self.running = False

        signal.signal(signal.SIGTERM, signal_handler)
        signal.signal(signal.SIGINT, signal_handler)

        logger.info("Signal handlers registered (SIGTERM, SIGINT)")


async def main():
    """Main entry point for worker process."""
    from correlator.config import settings
    from correlator.utils.logging import setup_logging

    setup_logging(settings.log_level.upper())
    logger.info("Worker process starting...")

    worker = Worker()

    try:
        await worker.start()
    except KeyboardInterrupt:
        logger.info("Keyboard interrupt received")
    except Exception as e:
        logger.error(f"Worker process failed: {e}", exc_info=True)
        sys.exit(1)
    finally:
        await worker.stop()


if __name__ == "__main__":
    asyncio.run(main())
